from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from licita.core.clock import as_utc
from licita.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from licita.crud.notifications import list_notifications
from licita.services.bidding_service import integrity_conflict


async def test_create_bidding_starts_as_draft(container, db, seed, bidding_data):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())

    assert bidding.status == "DRAFT"
    assert bidding.public_entity_id == seed.owner.public_entity_id
    assert bidding.published_at is None


async def test_create_bidding_requires_entity_profile(container, db, seed, bidding_data):
    with pytest.raises(NotFoundError, match="Public entity profile not found"):
        await container.biddings.create_bidding(db, seed.supplier, bidding_data())


async def test_admin_creates_bidding_on_behalf_of_entity(container, db, seed, bidding_data):
    data = bidding_data(public_entity_id=seed.other_owner.public_entity_id)
    bidding = await container.biddings.create_bidding(db, seed.admin, data)

    assert bidding.public_entity_id == seed.other_owner.public_entity_id


async def test_duplicate_bidding_number_conflicts(container, db, seed, bidding_data):
    await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-777/2025"))

    with pytest.raises(ConflictError, match="Bidding number already exists"):
        await container.biddings.create_bidding(db, seed.other_owner, bidding_data("PE-777/2025"))


@pytest.mark.parametrize(
    "field, offset, message",
    [
        ("closing_date", timedelta(minutes=30), "Opening date must be before closing date"),
        ("delivery_deadline", timedelta(hours=2), "Closing date must be before delivery deadline"),
    ],
)
async def test_create_bidding_validates_date_order(container, db, seed, bidding_data, clock, field, offset, message):
    with pytest.raises(ValidationError, match=message):
        await container.biddings.create_bidding(db, seed.owner, bidding_data(**{field: clock.now() + offset}))


async def test_update_validates_resulting_dates(container, db, seed, bidding_data, clock):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())

    with pytest.raises(ValidationError, match="Closing date must be before delivery deadline"):
        await container.biddings.update_bidding(
            db, seed.owner, bidding.id, {"closing_date": clock.now() + timedelta(hours=5)}
        )

    updated = await container.biddings.update_bidding(
        db,
        seed.owner,
        bidding.id,
        {"title": "Aquisição de notebooks", "delivery_deadline": clock.now() + timedelta(days=10)},
    )
    assert updated.title == "Aquisição de notebooks"
    assert as_utc(updated.delivery_deadline) == clock.now() + timedelta(days=10)


async def test_update_rejects_foreign_owner(container, db, seed, bidding_data):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())

    with pytest.raises(AuthorizationError):
        await container.biddings.update_bidding(db, seed.other_owner, bidding.id, {"title": "Outro"})


async def test_update_rejects_number_taken_by_another_bidding(container, db, seed, bidding_data):
    await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-001/2025"))
    second = await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-002/2025"))

    with pytest.raises(ConflictError):
        await container.biddings.update_bidding(db, seed.owner, second.id, {"bidding_number": "PE-001/2025"})


@pytest.mark.parametrize("field", ["title", "description", "bidding_number", "type", "is_public", "closing_date"])
async def test_update_rejects_empty_required_field(container, db, seed, bidding_data, field):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())

    with pytest.raises(ValidationError, match=f"{field} cannot be empty"):
        await container.biddings.update_bidding(db, seed.owner, bidding.id, {field: None})

    stored = await container.biddings.get_bidding(db, bidding.id)
    assert stored.title == "Aquisição de computadores"
    assert stored.bidding_number == "PE-001/2025"


def test_only_number_constraint_reports_duplicate_number():
    duplicate = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: biddings.bidding_number"))
    not_null = IntegrityError("UPDATE", {}, Exception("NOT NULL constraint failed: biddings.title"))

    assert integrity_conflict(duplicate).message == "Bidding number already exists"
    assert integrity_conflict(not_null).message == "Bidding conflicts with existing data"


async def test_publish_sets_timestamp_and_notifies_suppliers(container, db, seed, bidding_data, clock):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())

    published = await container.biddings.publish_bidding(db, seed.owner, bidding.id)

    assert published.status == "PUBLISHED"
    assert as_utc(published.published_at) == clock.now()
    notifications, total = await list_notifications(db, seed.supplier.user_id)
    assert total == 1
    assert notifications[0].type == "NEW_BIDDING"
    assert notifications[0].payload["biddingId"] == bidding.id


async def test_publish_twice_is_rejected(container, db, seed, bidding_data):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())
    await container.biddings.publish_bidding(db, seed.owner, bidding.id)

    with pytest.raises(ValidationError, match="Only DRAFT biddings can be published"):
        await container.biddings.publish_bidding(db, seed.owner, bidding.id)


async def test_publish_after_opening_date_is_rejected(container, db, seed, bidding_data, clock):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())
    clock.advance(hours=1)

    with pytest.raises(ValidationError, match="Opening date must be in the future"):
        await container.biddings.publish_bidding(db, seed.owner, bidding.id)
    assert (await container.biddings.get_bidding(db, bidding.id)).status == "DRAFT"


async def test_cancel_open_bidding(container, db, seed, open_bidding):
    bidding_id = await open_bidding()

    cancelled = await container.biddings.cancel_bidding(db, seed.owner, bidding_id)

    assert cancelled.status == "CANCELLED"
    with pytest.raises(ValidationError):
        await container.biddings.cancel_bidding(db, seed.owner, bidding_id)


async def test_delete_only_draft(container, db, seed, bidding_data):
    draft = await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-001/2025"))
    published = await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-002/2025"))
    await container.biddings.publish_bidding(db, seed.owner, published.id)

    await container.biddings.delete_bidding(db, seed.owner, draft.id)
    with pytest.raises(NotFoundError):
        await container.biddings.get_bidding(db, draft.id)

    with pytest.raises(ValidationError, match="Only DRAFT biddings can be deleted"):
        await container.biddings.delete_bidding(db, seed.owner, published.id)


async def test_draft_is_hidden_from_public(container, db, seed, bidding_data):
    bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())

    assert (await container.biddings.get_visible_bidding(db, bidding.id, seed.owner)).id == bidding.id
    with pytest.raises(NotFoundError):
        await container.biddings.get_visible_bidding(db, bidding.id, None)
    with pytest.raises(NotFoundError):
        await container.biddings.get_visible_bidding(db, bidding.id, seed.supplier)


async def test_public_listing_shows_only_published_biddings(container, db, seed, bidding_data):
    await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-001/2025"))
    published = await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-002/2025"))
    await container.biddings.publish_bidding(db, seed.owner, published.id)

    public, total = await container.biddings.list_biddings(db, None)
    assert total == 1
    assert [bidding.id for bidding in public] == [published.id]

    _, admin_total = await container.biddings.list_biddings(db, seed.admin)
    assert admin_total == 2
    _, mine_total = await container.biddings.list_biddings(db, seed.owner, mine=True)
    assert mine_total == 2
    _, other_total = await container.biddings.list_biddings(db, seed.other_owner, mine=True)
    assert other_total == 0


async def test_moderation_is_admin_only(container, db, seed, bidding_data):
    first = await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-001/2025"))
    second = await container.biddings.create_bidding(db, seed.owner, bidding_data("PE-002/2025"))

    with pytest.raises(AuthorizationError):
        await container.biddings.moderate_bidding(db, seed.owner, first.id, "approve")

    assert (await container.biddings.moderate_bidding(db, seed.admin, first.id, "approve")).status == "PUBLISHED"
    assert (await container.biddings.moderate_bidding(db, seed.admin, second.id, "reject")).status == "CANCELLED"
    with pytest.raises(ValidationError, match="Unknown moderation action"):
        await container.biddings.moderate_bidding(db, seed.admin, first.id, "archive")


async def test_stale_status_change_raises_conflict(container, database, seed, bidding_data):
    async with database.session() as db:
        bidding = await container.biddings.create_bidding(db, seed.owner, bidding_data())

    async with database.session() as first, database.session() as second:
        stale = await container.biddings.get_bidding(second, bidding.id)
        await container.biddings.publish_bidding(first, seed.owner, bidding.id)

        with pytest.raises(ConflictError, match="modified by another request"):
            await container.biddings.advance(second, stale, "cancel")
        await second.rollback()

    async with database.session() as db:
        assert (await container.biddings.get_bidding(db, bidding.id)).status == "PUBLISHED"
