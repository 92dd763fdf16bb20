from datetime import datetime
from transitions import MachineError
from transitions.extensions.asyncio import AsyncMachine
from licita.core.clock import as_utc
from licita.core.errors import ValidationError
from licita.core.logging_config import logger
from licita.models.enums import BiddingStatus, ProposalStatus, ContractStatus

# Псевдо-состояние: запись физически удаляется сервисом
DELETED = "DELETED"


class EntityStateMachine:
    """
    Единая таблица переходов для сущности.

    Машина не меняет саму сущность: fire() проверяет исходное состояние и
    guard-условия и возвращает целевое состояние, а сервис сохраняет его
    условным UPDATE по текущему статусу.
    """
    entity_name = "Entity"
    states: list = []
    transitions: list = []
    invalid_messages: dict = {}

    def __init__(self, entity, now: datetime):
        self.entity = entity
        self.entity_id = entity.id
        self.now = as_utc(now)
        self.machine = AsyncMachine(
            model=self,
            states=self.states,
            transitions=self.transitions,
            initial=entity.status,
            auto_transitions=False,
            send_event=True,
            after_state_change="_log_state_change",
        )

    async def fire(self, event: str) -> str:
        source = self.state
        try:
            fired = await self.trigger(event)
        except MachineError:
            message = self.invalid_messages.get(
                event, f"{self.entity_name} cannot {event} while {source}"
            )
            logger.warning(f"{self.entity_name} {self.entity_id}: rejected '{event}' from {source}")
            raise ValidationError(message, {"status": source, "event": event})
        if not fired:
            raise ValidationError(f"{self.entity_name} cannot {event} while {source}")
        return self.state

    def allowed_events(self) -> list[str]:
        return sorted(self.machine.get_triggers(self.state))

    def _log_state_change(self, event):
        dest = event.transition.dest
        if dest is None:
            logger.debug(f"{self.entity_name} {self.entity_id}: '{event.event.name}' allowed in {self.state}")
            return
        logger.info(
            f"{self.entity_name} {self.entity_id}: {event.transition.source} -> {dest} via '{event.event.name}'"
        )


class BiddingStateMachine(EntityStateMachine):
    entity_name = "Bidding"
    states = [status.value for status in BiddingStatus] + [DELETED]

    transitions = [
        {"trigger": "edit", "source": ["DRAFT", "PUBLISHED"], "dest": None,
         "conditions": "_require_no_proposals"},
        {"trigger": "publish", "source": "DRAFT", "dest": "PUBLISHED",
         "conditions": "_require_future_opening"},
        {"trigger": "open_for_proposals", "source": "PUBLISHED", "dest": "OPEN",
         "conditions": "_require_opening_reached"},
        {"trigger": "close_for_proposals", "source": "OPEN", "dest": "CLOSED",
         "conditions": "_require_closing_reached"},
        {"trigger": "award", "source": "CLOSED", "dest": "AWARDED"},
        {"trigger": "cancel", "source": ["DRAFT", "PUBLISHED", "OPEN", "CLOSED"], "dest": "CANCELLED"},
        {"trigger": "delete", "source": "DRAFT", "dest": DELETED,
         "conditions": "_require_no_dependents"},
    ]

    invalid_messages = {
        "edit": "Bidding cannot be edited in its current status",
        "publish": "Only DRAFT biddings can be published",
        "open_for_proposals": "Only PUBLISHED biddings can be opened",
        "close_for_proposals": "Only OPEN biddings can be closed",
        "award": "Only CLOSED biddings can be awarded",
        "cancel": "Bidding cannot be cancelled in its current status",
        "delete": "Only DRAFT biddings can be deleted",
    }

    def __init__(self, bidding, now: datetime, proposal_count: int = 0, has_contract: bool = False):
        self.proposal_count = proposal_count
        self.has_contract = has_contract
        super().__init__(bidding, now)

    def _require_no_proposals(self, event) -> bool:
        if self.proposal_count > 0:
            raise ValidationError("Bidding with proposals cannot be edited")
        return True

    def _require_future_opening(self, event) -> bool:
        if as_utc(self.entity.opening_date) <= self.now:
            raise ValidationError("Opening date must be in the future")
        return True

    def _require_opening_reached(self, event) -> bool:
        if self.now < as_utc(self.entity.opening_date):
            raise ValidationError("Opening date has not been reached")
        return True

    def _require_closing_reached(self, event) -> bool:
        if self.now < as_utc(self.entity.closing_date):
            raise ValidationError("Closing date has not been reached")
        return True

    def _require_no_dependents(self, event) -> bool:
        if self.proposal_count > 0 or self.has_contract:
            raise ValidationError("Bidding with proposals or contracts cannot be deleted")
        return True


class ProposalStateMachine(EntityStateMachine):
    entity_name = "Proposal"
    states = [status.value for status in ProposalStatus] + [DELETED]

    transitions = [
        {"trigger": "edit", "source": "DRAFT", "dest": None,
         "conditions": "_require_before_closing"},
        {"trigger": "submit", "source": "DRAFT", "dest": "SUBMITTED",
         "conditions": ["_require_bidding_open", "_require_before_closing", "_require_items"]},
        {"trigger": "evaluate", "source": "SUBMITTED", "dest": "UNDER_REVIEW",
         "conditions": "_require_bidding_closed"},
        {"trigger": "accept", "source": "UNDER_REVIEW", "dest": "ACCEPTED"},
        {"trigger": "reject", "source": "UNDER_REVIEW", "dest": "REJECTED"},
        {"trigger": "withdraw", "source": ["SUBMITTED", "UNDER_REVIEW"], "dest": "WITHDRAWN",
         "conditions": "_require_bidding_not_finished"},
        {"trigger": "delete", "source": "DRAFT", "dest": DELETED,
         "conditions": "_require_no_contract"},
    ]

    invalid_messages = {
        "edit": "Only DRAFT proposals can be edited",
        "submit": "Only DRAFT proposals can be submitted",
        "evaluate": "Only SUBMITTED proposals can be evaluated",
        "accept": "Only proposals UNDER_REVIEW can be accepted",
        "reject": "Only proposals UNDER_REVIEW can be rejected",
        "withdraw": "Proposal cannot be withdrawn in its current status",
        "delete": "Only DRAFT proposals can be deleted",
    }

    def __init__(self, proposal, bidding, now: datetime, has_contract: bool = False):
        self.bidding = bidding
        self.has_contract = has_contract
        super().__init__(proposal, now)

    def _require_bidding_open(self, event) -> bool:
        if self.bidding.status != BiddingStatus.OPEN.value:
            raise ValidationError("Bidding is not open for proposals")
        return True

    def _require_before_closing(self, event) -> bool:
        if as_utc(self.bidding.closing_date) <= self.now:
            raise ValidationError("Proposal deadline has passed")
        return True

    def _require_items(self, event) -> bool:
        if not self.entity.items:
            raise ValidationError("Proposal must have at least one item")
        return True

    def _require_bidding_closed(self, event) -> bool:
        if self.bidding.status != BiddingStatus.CLOSED.value:
            raise ValidationError("Proposals can only be evaluated after the bidding is closed")
        return True

    def _require_bidding_not_finished(self, event) -> bool:
        if self.bidding.status in (BiddingStatus.CLOSED.value, BiddingStatus.AWARDED.value):
            raise ValidationError("Proposal cannot be withdrawn after the bidding is closed")
        return True

    def _require_no_contract(self, event) -> bool:
        if self.has_contract:
            raise ValidationError("Proposal with a contract cannot be deleted")
        return True


class ContractStateMachine(EntityStateMachine):
    entity_name = "Contract"
    states = [status.value for status in ContractStatus]

    transitions = [
        {"trigger": "edit", "source": "DRAFT", "dest": None},
        {"trigger": "sign", "source": "DRAFT", "dest": None},
        {"trigger": "activate", "source": "DRAFT", "dest": "ACTIVE",
         "conditions": "_require_signed"},
        {"trigger": "suspend", "source": "ACTIVE", "dest": "SUSPENDED"},
        {"trigger": "complete", "source": "ACTIVE", "dest": "COMPLETED"},
        {"trigger": "terminate", "source": ["DRAFT", "ACTIVE", "SUSPENDED"], "dest": "TERMINATED"},
    ]

    invalid_messages = {
        "edit": "Only DRAFT contracts can be edited",
        "sign": "Only DRAFT contracts can be signed",
        "activate": "Only DRAFT contracts can be activated",
        "suspend": "Only ACTIVE contracts can be suspended",
        "complete": "Only ACTIVE contracts can be completed",
        "terminate": "Contract is already finished",
    }

    def _require_signed(self, event) -> bool:
        if not self.entity.signed_at:
            raise ValidationError("Contract must be signed before activation")
        return True
