import asyncio
from datetime import timedelta

from licita.crud.notifications import create_notification, list_notifications


async def publish(container, database, seed, data):
    async with database.session() as db:
        bidding = await container.biddings.create_bidding(db, seed.owner, data)
        await container.biddings.publish_bidding(db, seed.owner, bidding.id)
    return bidding.id


async def status_of(container, database, bidding_id):
    async with database.session() as db:
        return (await container.biddings.get_bidding(db, bidding_id)).status


async def test_open_sweep_waits_for_opening_date(container, database, seed, bidding_data, clock):
    bidding_id = await publish(container, database, seed, bidding_data())

    assert await container.scheduler.sweep_open_transitions() == 0
    assert await status_of(container, database, bidding_id) == "PUBLISHED"

    clock.advance(hours=1)
    assert await container.scheduler.sweep_open_transitions() == 1
    assert await status_of(container, database, bidding_id) == "OPEN"


async def test_sweeps_are_idempotent(container, database, seed, bidding_data, clock):
    bidding_id = await publish(container, database, seed, bidding_data())
    clock.advance(hours=2)

    assert await container.scheduler.sweep_open_transitions() == 1
    assert await container.scheduler.sweep_open_transitions() == 0
    assert await container.scheduler.sweep_close_transitions() == 1
    assert await container.scheduler.sweep_close_transitions() == 0
    assert await status_of(container, database, bidding_id) == "CLOSED"


async def test_sweep_notifies_admins(container, database, db, seed, bidding_data, clock):
    await publish(container, database, seed, bidding_data())
    clock.advance(hours=1)
    await container.scheduler.sweep_open_transitions()

    notifications, _ = await list_notifications(db, seed.admin.user_id)
    assert [n.payload["status"] for n in notifications if n.type == "BIDDING_STATUS_CHANGED"] == ["OPEN"]


async def test_failed_bidding_does_not_stop_sweep(container, database, seed, bidding_data, clock, monkeypatch):
    broken = await publish(container, database, seed, bidding_data("PE-001/2025"))
    healthy = await publish(container, database, seed, bidding_data("PE-002/2025"))
    clock.advance(hours=1)

    original = container.biddings.advance

    async def flaky_advance(db, bidding, event, **context):
        if bidding.id == broken:
            raise RuntimeError("database hiccup")
        return await original(db, bidding, event, **context)

    monkeypatch.setattr(container.biddings, "advance", flaky_advance)

    assert await container.scheduler.sweep_open_transitions() == 1
    assert await status_of(container, database, broken) == "PUBLISHED"
    assert await status_of(container, database, healthy) == "OPEN"


async def test_closing_soon_notifies_participants(container, database, db, seed, bidding_data, clock, items):
    start = clock.now()
    bidding_id = await publish(
        container,
        database,
        seed,
        bidding_data(closing_date=start + timedelta(hours=25), delivery_deadline=start + timedelta(hours=30)),
    )
    clock.advance(hours=1)
    await container.scheduler.sweep_open_transitions()
    await container.proposals.create_proposal(db, seed.supplier, {"bidding_id": bidding_id, "items": items})

    assert await container.scheduler.notify_closing_soon(2) == 0
    assert await container.scheduler.notify_closing_soon(24) == 1

    notifications, _ = await list_notifications(db, seed.supplier.user_id)
    closing = [n for n in notifications if n.type == "BIDDING_CLOSING_SOON"]
    assert len(closing) == 1
    assert closing[0].payload == {"biddingId": bidding_id, "hoursLeft": 24}
    other, _ = await list_notifications(db, seed.other_supplier.user_id)
    assert not [n for n in other if n.user_id == seed.other_supplier.user_id]


async def test_purge_removes_only_old_read_notifications(container, db, seed, clock):
    old = clock.now() - timedelta(days=31)
    for is_read, created_at in [(True, old), (False, old), (True, clock.now())]:
        await create_notification(
            db,
            user_id=seed.citizen.user_id,
            type="INFO",
            title="Aviso",
            message="Mensagem",
            is_read=is_read,
            created_at=created_at,
        )
    await db.commit()

    assert await container.scheduler.purge_read_notifications() == 1
    _, total = await list_notifications(db, seed.citizen.user_id)
    assert total == 2


def test_jobs_cover_all_periodic_tasks(container):
    names = [name for name, _, _ in container.scheduler.jobs()]
    assert names == ["open-biddings", "close-biddings", "closing-in-24h", "closing-in-2h", "purge-notifications"]


async def test_start_and_stop_manage_background_tasks(container, monkeypatch):
    runs = []

    async def job():
        runs.append(1)

    monkeypatch.setattr(container.scheduler, "jobs", lambda: [("heartbeat", 3600, job)])

    container.scheduler.start()
    container.scheduler.start()
    await asyncio.sleep(0.01)
    assert len(container.scheduler._tasks) == 1

    await container.scheduler.stop()
    assert container.scheduler._tasks == []
    assert runs == [1]
