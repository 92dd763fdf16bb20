from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from licita.core.clock import Clock, as_utc
from licita.core.errors import ConflictError, NotFoundError, ValidationError, AuthorizationError
from licita.core.logging_config import logger
from licita.crud import biddings as biddings_crud
from licita.models.biddings import Bidding
from licita.models.enums import BiddingStatus
from licita.services.actor import Actor
from licita.services.notifications import NotificationService
from licita.services.state_machine import BiddingStateMachine, DELETED

EDITABLE_FIELDS = (
    "title",
    "description",
    "bidding_number",
    "type",
    "estimated_value",
    "opening_date",
    "closing_date",
    "delivery_deadline",
    "delivery_location",
    "is_public",
    "requirements",
    "evaluation_criteria",
)

DATE_FIELDS = ("opening_date", "closing_date", "delivery_deadline")

REQUIRED_FIELDS = ("title", "description", "bidding_number", "type", "is_public") + DATE_FIELDS

PUBLIC_STATUSES = (
    BiddingStatus.PUBLISHED.value,
    BiddingStatus.OPEN.value,
    BiddingStatus.CLOSED.value,
    BiddingStatus.AWARDED.value,
)


def validate_dates(opening_date: datetime, closing_date: datetime, delivery_deadline: datetime) -> None:
    if as_utc(opening_date) >= as_utc(closing_date):
        raise ValidationError("Opening date must be before closing date")
    if as_utc(closing_date) >= as_utc(delivery_deadline):
        raise ValidationError("Closing date must be before delivery deadline")


def integrity_conflict(e: IntegrityError) -> ConflictError:
    # уникален только номер; остальные нарушения отдаются без ложного сообщения
    if "bidding_number" in str(e.orig):
        return ConflictError("Bidding number already exists")
    return ConflictError("Bidding conflicts with existing data")


class BiddingService:
    def __init__(self, clock: Clock, notifications: NotificationService):
        self.clock = clock
        self.notifications = notifications

    async def get_bidding(self, db: AsyncSession, bidding_id: str) -> Bidding:
        bidding = await biddings_crud.get_bidding_by_id(db, bidding_id)
        if not bidding:
            raise NotFoundError("Bidding not found")
        return bidding

    async def get_visible_bidding(self, db: AsyncSession, bidding_id: str, actor: Actor | None) -> Bidding:
        """Черновики и закрытые лицитации видны только владельцу и администратору."""
        bidding = await self.get_bidding(db, bidding_id)
        if actor and actor.owns_entity(bidding.public_entity_id):
            return bidding
        if not bidding.is_public or bidding.status not in PUBLIC_STATUSES:
            raise NotFoundError("Bidding not found")
        return bidding

    async def list_biddings(
        self,
        db: AsyncSession,
        actor: Actor | None,
        page: int = 1,
        per_page: int = 10,
        status: str | None = None,
        type: str | None = None,
        search: str | None = None,
        mine: bool = False,
    ) -> tuple[list[Bidding], int]:
        if mine:
            if not actor or not actor.public_entity_id:
                raise NotFoundError("Public entity profile not found")
            return await biddings_crud.list_biddings(
                db, page, per_page, status=status, type=type, search=search,
                public_entity_id=actor.public_entity_id,
            )
        if actor and actor.is_admin:
            return await biddings_crud.list_biddings(db, page, per_page, status=status, type=type, search=search)
        return await biddings_crud.list_biddings(
            db, page, per_page, status=status, type=type, search=search,
            statuses=PUBLIC_STATUSES, public_only=True,
        )

    async def advance(self, db: AsyncSession, bidding: Bidding, event: str, **context) -> str:
        """
        Единственная точка смены статуса лицитации.

        Проверяет переход по таблице BiddingStateMachine и сохраняет его условным
        UPDATE по текущему статусу. Не коммитит: вызывающий код решает, в какой
        транзакции выполняется переход.
        """
        machine = BiddingStateMachine(bidding, self.clock.now(), **context)
        source = bidding.status
        target = await machine.fire(event)
        if target in (source, DELETED):
            return target

        extra = {}
        if target == BiddingStatus.PUBLISHED.value:
            extra["published_at"] = self.clock.now()
        if not await biddings_crud.compare_and_set_status(db, bidding.id, source, target, **extra):
            logger.warning(f"Bidding {bidding.id}: concurrent status change detected during '{event}'")
            raise ConflictError("Bidding was modified by another request", {"biddingId": bidding.id})
        return target

    async def create_bidding(self, db: AsyncSession, actor: Actor, data: dict) -> Bidding:
        public_entity_id = actor.public_entity_id
        if actor.is_admin and data.get("public_entity_id"):
            public_entity_id = data["public_entity_id"]
        if not public_entity_id:
            raise NotFoundError("Public entity profile not found")

        if await biddings_crud.get_bidding_by_number(db, data["bidding_number"]):
            raise ConflictError("Bidding number already exists")

        fields = {key: data[key] for key in EDITABLE_FIELDS if key in data}
        for key in DATE_FIELDS:
            fields[key] = as_utc(fields[key])
        validate_dates(fields["opening_date"], fields["closing_date"], fields["delivery_deadline"])

        try:
            bidding = await biddings_crud.create_bidding(
                db, public_entity_id=public_entity_id, status=BiddingStatus.DRAFT.value, **fields
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error(f"Error creating bidding {data['bidding_number']}: {str(e)}")
            raise integrity_conflict(e)

        logger.info(f"Bidding {bidding.id} ({bidding.bidding_number}) created by user {actor.user_id}")
        return bidding

    async def update_bidding(self, db: AsyncSession, actor: Actor, bidding_id: str, data: dict) -> Bidding:
        bidding = await self.get_bidding(db, bidding_id)
        actor.require_entity_owner(bidding.public_entity_id, "edit this bidding")

        proposal_count = await biddings_crud.count_proposals(db, bidding.id)
        await self.advance(db, bidding, "edit", proposal_count=proposal_count)

        changes = {key: data[key] for key in EDITABLE_FIELDS if key in data}
        for key in REQUIRED_FIELDS:
            if key in changes and changes[key] is None:
                raise ValidationError(f"{key} cannot be empty", {"field": key})
        for key in DATE_FIELDS:
            if key in changes:
                changes[key] = as_utc(changes[key])
        if any(key in changes for key in DATE_FIELDS):
            validate_dates(
                changes.get("opening_date", bidding.opening_date),
                changes.get("closing_date", bidding.closing_date),
                changes.get("delivery_deadline", bidding.delivery_deadline),
            )

        number = changes.get("bidding_number")
        if number and number != bidding.bidding_number:
            if await biddings_crud.get_bidding_by_number(db, number):
                raise ConflictError("Bidding number already exists")

        for key, value in changes.items():
            setattr(bidding, key, value)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error(f"Error updating bidding {bidding_id}: {str(e)}")
            raise integrity_conflict(e)

        logger.info(f"Bidding {bidding_id} updated by user {actor.user_id}: {sorted(changes)}")
        return bidding

    async def publish_bidding(self, db: AsyncSession, actor: Actor, bidding_id: str) -> Bidding:
        bidding = await self.get_bidding(db, bidding_id)
        actor.require_entity_owner(bidding.public_entity_id, "publish this bidding")
        await self._commit_transition(db, bidding, "publish")
        await self.notifications.notify_new_bidding(bidding)
        return bidding

    async def cancel_bidding(self, db: AsyncSession, actor: Actor, bidding_id: str) -> Bidding:
        bidding = await self.get_bidding(db, bidding_id)
        actor.require_entity_owner(bidding.public_entity_id, "cancel this bidding")
        await self._commit_transition(db, bidding, "cancel")
        return bidding

    async def delete_bidding(self, db: AsyncSession, actor: Actor, bidding_id: str) -> None:
        bidding = await self.get_bidding(db, bidding_id)
        actor.require_entity_owner(bidding.public_entity_id, "delete this bidding")

        await self.advance(
            db,
            bidding,
            "delete",
            proposal_count=await biddings_crud.count_proposals(db, bidding.id),
            has_contract=await biddings_crud.has_contract(db, bidding.id),
        )
        await biddings_crud.delete_bidding(db, bidding.id)
        await db.commit()
        logger.info(f"Bidding {bidding_id} deleted by user {actor.user_id}")

    async def moderate_bidding(self, db: AsyncSession, actor: Actor, bidding_id: str, action: str) -> Bidding:
        """Модерация администратора: те же охраняемые переходы publish/cancel."""
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can moderate biddings")
        if action == "approve":
            return await self.publish_bidding(db, actor, bidding_id)
        if action == "reject":
            return await self.cancel_bidding(db, actor, bidding_id)
        raise ValidationError(f"Unknown moderation action: {action}")

    async def _commit_transition(self, db: AsyncSession, bidding: Bidding, event: str) -> str:
        try:
            target = await self.advance(db, bidding, event)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return target
