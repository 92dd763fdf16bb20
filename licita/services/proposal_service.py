from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from licita.core.clock import Clock, as_utc
from licita.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from licita.core.logging_config import logger
from licita.crud import proposals as proposals_crud
from licita.models.biddings import Bidding
from licita.models.enums import BiddingStatus, ProposalStatus
from licita.models.proposals import Proposal
from licita.services.actor import Actor
from licita.services.bidding_service import BiddingService
from licita.services.notifications import NotificationService
from licita.services.state_machine import ProposalStateMachine, DELETED


class ProposalService:
    def __init__(self, clock: Clock, notifications: NotificationService, biddings: BiddingService):
        self.clock = clock
        self.notifications = notifications
        self.biddings = biddings

    async def get_proposal(self, db: AsyncSession, proposal_id: str) -> Proposal:
        proposal = await proposals_crud.get_proposal_by_id(db, proposal_id)
        if not proposal:
            raise NotFoundError("Proposal not found")
        return proposal

    async def get_visible_proposal(self, db: AsyncSession, actor: Actor, proposal_id: str) -> Proposal:
        proposal = await self.get_proposal(db, proposal_id)
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)
        if not (self._is_supplier_owner(actor, proposal) or actor.owns_entity(bidding.public_entity_id)):
            raise AuthorizationError("You are not allowed to view this proposal")
        return proposal

    async def list_proposals(
        self,
        db: AsyncSession,
        actor: Actor,
        bidding_id: str,
        page: int = 1,
        per_page: int = 10,
        status: str | None = None,
    ) -> tuple[list[Proposal], int]:
        """Владелец лицитации видит все предложения, поставщик только своё."""
        bidding = await self.biddings.get_bidding(db, bidding_id)
        if actor.owns_entity(bidding.public_entity_id):
            return await proposals_crud.list_proposals(db, bidding_id, page, per_page, status=status)
        if actor.supplier_id:
            return await proposals_crud.list_proposals(
                db, bidding_id, page, per_page, status=status, supplier_id=actor.supplier_id
            )
        raise AuthorizationError("You are not allowed to list proposals of this bidding")

    @staticmethod
    def _is_supplier_owner(actor: Actor, proposal: Proposal) -> bool:
        return actor.is_admin or (actor.supplier_id is not None and actor.supplier_id == proposal.supplier_id)

    def _require_supplier_owner(self, actor: Actor, proposal: Proposal, action: str) -> None:
        if not self._is_supplier_owner(actor, proposal):
            raise AuthorizationError(f"You are not allowed to {action} this proposal")

    def _validate_valid_until(self, data: dict) -> None:
        valid_until = data.get("valid_until")
        if valid_until is not None and as_utc(valid_until) <= self.clock.now():
            raise ValidationError("Valid until date must be in the future")

    async def advance(
        self,
        db: AsyncSession,
        proposal: Proposal,
        bidding: Bidding,
        event: str,
        values: dict | None = None,
        **context,
    ) -> str:
        """
        Проверяет переход предложения по таблице и сохраняет его условным UPDATE; без коммита.

        values пишутся тем же UPDATE, что и статус.
        """
        machine = ProposalStateMachine(proposal, bidding, self.clock.now(), **context)
        source = proposal.status
        target = await machine.fire(event)
        if target in (source, DELETED):
            return target

        extra = dict(values or {})
        if target == ProposalStatus.SUBMITTED.value:
            extra["submitted_at"] = self.clock.now()
        if not await proposals_crud.compare_and_set_status(db, proposal.id, source, target, **extra):
            logger.warning(f"Proposal {proposal.id}: concurrent status change detected during '{event}'")
            raise ConflictError("Proposal was modified by another request", {"proposalId": proposal.id})
        return target

    async def _commit_transition(
        self, db: AsyncSession, proposal: Proposal, bidding: Bidding, event: str, values: dict | None = None
    ) -> str:
        try:
            target = await self.advance(db, proposal, bidding, event, values)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return target

    async def create_proposal(self, db: AsyncSession, actor: Actor, data: dict) -> Proposal:
        supplier_id = actor.supplier_id
        if actor.is_admin and data.get("supplier_id"):
            supplier_id = data["supplier_id"]
        if not supplier_id:
            raise NotFoundError("Supplier profile not found")

        bidding = await self.biddings.get_bidding(db, data["bidding_id"])
        if bidding.status != BiddingStatus.OPEN.value:
            raise ValidationError("Bidding is not open for proposals")
        if as_utc(bidding.closing_date) <= self.clock.now():
            raise ValidationError("Proposal deadline has passed")
        if await proposals_crud.get_proposal_for_supplier(db, bidding.id, supplier_id):
            raise ConflictError("Supplier already has a proposal for this bidding")
        self._validate_valid_until(data)

        try:
            proposal = await proposals_crud.create_proposal(
                db,
                items=data.get("items") or [],
                bidding_id=bidding.id,
                supplier_id=supplier_id,
                description=data.get("description"),
                notes=data.get("notes"),
                valid_until=as_utc(data.get("valid_until")),
                status=ProposalStatus.DRAFT.value,
            )
            await db.commit()
        except IntegrityError as e:
            # параллельная вставка той же пары (лицитация, поставщик)
            await db.rollback()
            logger.warning(f"Duplicate proposal for bidding {bidding.id} by supplier {supplier_id}: {str(e)}")
            raise ConflictError("Supplier already has a proposal for this bidding")

        logger.info(f"Proposal {proposal.id} created for bidding {bidding.id}, total {proposal.total_value}")
        return proposal

    async def update_proposal(self, db: AsyncSession, actor: Actor, proposal_id: str, data: dict) -> Proposal:
        proposal = await self.get_proposal(db, proposal_id)
        self._require_supplier_owner(actor, proposal, "edit")
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)

        await self.advance(db, proposal, bidding, "edit")
        self._validate_valid_until(data)

        for key in ("description", "notes"):
            if key in data:
                setattr(proposal, key, data[key])
        if "valid_until" in data:
            proposal.valid_until = as_utc(data["valid_until"])
        if data.get("items") is not None:
            proposals_crud.replace_items(proposal, data["items"])

        await db.commit()
        logger.info(f"Proposal {proposal_id} updated, total {proposal.total_value}")
        return proposal

    async def submit_proposal(self, db: AsyncSession, actor: Actor, proposal_id: str) -> Proposal:
        proposal = await self.get_proposal(db, proposal_id)
        self._require_supplier_owner(actor, proposal, "submit")
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)

        await self._commit_transition(db, proposal, bidding, "submit")
        await self.notifications.notify_proposal_received(bidding, proposal)
        return proposal

    async def withdraw_proposal(self, db: AsyncSession, actor: Actor, proposal_id: str) -> Proposal:
        proposal = await self.get_proposal(db, proposal_id)
        self._require_supplier_owner(actor, proposal, "withdraw")
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)

        await self._commit_transition(db, proposal, bidding, "withdraw")
        return proposal

    async def evaluate_proposal(
        self, db: AsyncSession, actor: Actor, proposal_id: str, result: dict | None = None
    ) -> Proposal:
        proposal = await self.get_proposal(db, proposal_id)
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)
        actor.require_entity_owner(bidding.public_entity_id, "evaluate this proposal")

        result = result or {}
        score = result.get("score")
        if score is not None and not 0 <= score <= 100:
            raise ValidationError("Score must be between 0 and 100")
        values = {
            "evaluation": result.get("evaluation"),
            "score": score,
            "evaluation_notes": result.get("notes"),
            "evaluated_at": self.clock.now(),
        }
        await self._commit_transition(db, proposal, bidding, "evaluate", values)
        logger.info(f"Proposal {proposal_id} evaluated by user {actor.user_id}, score {values['score']}")
        await self.notifications.notify_proposal_status_change(proposal, proposal.status)
        return proposal

    async def accept_proposal(self, db: AsyncSession, actor: Actor, proposal_id: str) -> Proposal:
        """
        Принимает предложение и переводит лицитацию в AWARDED одной транзакцией.

        Оба условных UPDATE выполняются до коммита; если лицитация уже не CLOSED
        (например, параллельно принято другое предложение), откатываются оба.
        """
        proposal = await self.get_proposal(db, proposal_id)
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)
        actor.require_entity_owner(bidding.public_entity_id, "accept this proposal")

        if bidding.status == BiddingStatus.AWARDED.value:
            raise ConflictError("Bidding has already been awarded", {"biddingId": bidding.id})

        try:
            await self.advance(db, proposal, bidding, "accept")
            await self.biddings.advance(db, bidding, "award")
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Accepting proposal {proposal_id} failed, transaction rolled back: {str(e)}")
            raise

        logger.info(f"Proposal {proposal_id} accepted, bidding {bidding.id} awarded")
        await self.notifications.notify_proposal_status_change(proposal, proposal.status)
        return proposal

    async def reject_proposal(
        self, db: AsyncSession, actor: Actor, proposal_id: str, reason: str | None = None
    ) -> Proposal:
        proposal = await self.get_proposal(db, proposal_id)
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)
        actor.require_entity_owner(bidding.public_entity_id, "reject this proposal")

        await self._commit_transition(db, proposal, bidding, "reject", {"rejection_reason": reason})
        logger.info(f"Proposal {proposal_id} rejected by user {actor.user_id}: {reason}")
        await self.notifications.notify_proposal_status_change(proposal, proposal.status)
        return proposal

    async def delete_proposal(self, db: AsyncSession, actor: Actor, proposal_id: str) -> None:
        proposal = await self.get_proposal(db, proposal_id)
        self._require_supplier_owner(actor, proposal, "delete")
        bidding = await self.biddings.get_bidding(db, proposal.bidding_id)

        await self.advance(
            db, proposal, bidding, "delete", has_contract=await proposals_crud.has_contract(db, proposal.id)
        )
        await proposals_crud.delete_proposal(db, proposal)
        await db.commit()
        logger.info(f"Proposal {proposal_id} deleted by user {actor.user_id}")
