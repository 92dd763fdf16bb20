from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from licita.core.clock import Clock, as_utc
from licita.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from licita.core.logging_config import logger
from licita.crud import contracts as contracts_crud
from licita.crud.biddings import get_bidding_by_id
from licita.crud.proposals import get_proposal_by_id
from licita.models.contracts import Contract
from licita.models.enums import ContractStatus, ProposalStatus
from licita.services.actor import Actor
from licita.services.notifications import NotificationService
from licita.services.state_machine import ContractStateMachine


def validate_period(start_date, end_date) -> None:
    if as_utc(start_date) >= as_utc(end_date):
        raise ValidationError("Start date must be before end date")


class ContractService:
    def __init__(self, clock: Clock, notifications: NotificationService):
        self.clock = clock
        self.notifications = notifications

    async def get_contract(self, db: AsyncSession, contract_id: str) -> Contract:
        contract = await contracts_crud.get_contract_by_id(db, contract_id)
        if not contract:
            raise NotFoundError("Contract not found")
        return contract

    @staticmethod
    def _is_party(actor: Actor, contract: Contract) -> bool:
        return actor.owns_entity(contract.public_entity_id) or (
            actor.supplier_id is not None and actor.supplier_id == contract.supplier_id
        )

    async def get_visible_contract(self, db: AsyncSession, actor: Actor, contract_id: str) -> Contract:
        contract = await self.get_contract(db, contract_id)
        if not self._is_party(actor, contract):
            raise AuthorizationError("You are not allowed to view this contract")
        return contract

    async def advance(self, db: AsyncSession, contract: Contract, event: str) -> str:
        machine = ContractStateMachine(contract, self.clock.now())
        source = contract.status
        target = await machine.fire(event)
        if target == source:
            return target
        if not await contracts_crud.compare_and_set_status(db, contract.id, source, target):
            logger.warning(f"Contract {contract.id}: concurrent status change detected during '{event}'")
            raise ConflictError("Contract was modified by another request", {"contractId": contract.id})
        return target

    async def create_contract(self, db: AsyncSession, actor: Actor, data: dict) -> Contract:
        if not actor.is_admin and not actor.public_entity_id:
            raise NotFoundError("Public entity profile not found")

        proposal = await get_proposal_by_id(db, data["proposal_id"])
        if not proposal:
            raise NotFoundError("Proposal not found")
        if proposal.status != ProposalStatus.ACCEPTED.value:
            raise ValidationError("Only accepted proposals can generate contracts")
        bidding = await get_bidding_by_id(db, proposal.bidding_id)
        if not bidding:
            raise NotFoundError("Bidding not found")
        if not actor.owns_entity(bidding.public_entity_id):
            raise AuthorizationError("Proposal does not belong to a bidding of this public entity")

        if await contracts_crud.get_contract_by_proposal(db, proposal.id):
            raise ConflictError("A contract already exists for this proposal")
        if await contracts_crud.get_contract_by_number(db, data["contract_number"]):
            raise ConflictError("Contract number already exists")
        validate_period(data["start_date"], data["end_date"])

        try:
            contract = await contracts_crud.create_contract(
                db,
                bidding_id=bidding.id,
                proposal_id=proposal.id,
                public_entity_id=bidding.public_entity_id,
                supplier_id=proposal.supplier_id,
                contract_number=data["contract_number"],
                title=data.get("title"),
                description=data.get("description"),
                total_value=proposal.total_value,
                start_date=as_utc(data["start_date"]),
                end_date=as_utc(data["end_date"]),
                status=ContractStatus.DRAFT.value,
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error(f"Error creating contract {data['contract_number']}: {str(e)}")
            raise ConflictError("Contract number or proposal already used")

        logger.info(f"Contract {contract.id} ({contract.contract_number}) created from proposal {proposal.id}")
        return contract

    async def update_contract(self, db: AsyncSession, actor: Actor, contract_id: str, data: dict) -> Contract:
        contract = await self.get_contract(db, contract_id)
        actor.require_entity_owner(contract.public_entity_id, "edit this contract")
        await self.advance(db, contract, "edit")

        for key in ("start_date", "end_date"):
            if key in data and data[key] is None:
                raise ValidationError(f"{key} cannot be empty")
        if "start_date" in data or "end_date" in data:
            validate_period(data.get("start_date", contract.start_date), data.get("end_date", contract.end_date))

        for key in ("title", "description"):
            if key in data:
                setattr(contract, key, data[key])
        for key in ("start_date", "end_date"):
            if key in data:
                setattr(contract, key, as_utc(data[key]))
        await db.commit()
        logger.info(f"Contract {contract_id} updated by user {actor.user_id}")
        return contract

    async def sign_contract(self, db: AsyncSession, actor: Actor, contract_id: str) -> Contract:
        contract = await self.get_contract(db, contract_id)
        if not self._is_party(actor, contract):
            raise AuthorizationError("You are not allowed to sign this contract")
        await self.advance(db, contract, "sign")

        contract.signed_at = self.clock.now()
        await db.commit()
        logger.info(f"Contract {contract_id} signed by user {actor.user_id}")
        return contract

    async def _owner_transition(self, db: AsyncSession, actor: Actor, contract_id: str, event: str) -> Contract:
        contract = await self.get_contract(db, contract_id)
        actor.require_entity_owner(contract.public_entity_id, f"{event} this contract")
        try:
            await self.advance(db, contract, event)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self.notifications.notify_admins(
            "CONTRACT_STATUS_CHANGED",
            "Contract status changed",
            f"Contract {contract.contract_number} is now {contract.status}",
            payload={"contractId": contract.id, "status": contract.status},
        )
        return contract

    async def activate_contract(self, db: AsyncSession, actor: Actor, contract_id: str) -> Contract:
        return await self._owner_transition(db, actor, contract_id, "activate")

    async def suspend_contract(self, db: AsyncSession, actor: Actor, contract_id: str) -> Contract:
        return await self._owner_transition(db, actor, contract_id, "suspend")

    async def complete_contract(self, db: AsyncSession, actor: Actor, contract_id: str) -> Contract:
        return await self._owner_transition(db, actor, contract_id, "complete")

    async def terminate_contract(self, db: AsyncSession, actor: Actor, contract_id: str) -> Contract:
        return await self._owner_transition(db, actor, contract_id, "terminate")
