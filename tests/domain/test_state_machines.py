from datetime import timedelta
from types import SimpleNamespace

import pytest

from licita.core.clock import utcnow
from licita.core.errors import ValidationError
from licita.services.state_machine import (
    DELETED,
    BiddingStateMachine,
    ContractStateMachine,
    ProposalStateMachine,
)

NOW = utcnow().replace(microsecond=0)


def make_bidding(status="DRAFT", opening_in=timedelta(hours=1), closing_in=timedelta(hours=2)):
    return SimpleNamespace(
        id="b-1",
        status=status,
        opening_date=NOW + opening_in,
        closing_date=NOW + closing_in,
    )


def make_proposal(status="DRAFT", items=("item",)):
    return SimpleNamespace(id="p-1", status=status, items=list(items))


async def test_publish_moves_draft_to_published():
    machine = BiddingStateMachine(make_bidding(), NOW)
    assert await machine.fire("publish") == "PUBLISHED"


async def test_publish_requires_future_opening_date():
    machine = BiddingStateMachine(make_bidding(opening_in=timedelta(0)), NOW)
    with pytest.raises(ValidationError, match="Opening date must be in the future"):
        await machine.fire("publish")


async def test_publish_rejected_outside_draft():
    machine = BiddingStateMachine(make_bidding(status="OPEN"), NOW)
    with pytest.raises(ValidationError, match="Only DRAFT biddings can be published"):
        await machine.fire("publish")


async def test_open_waits_for_opening_date():
    machine = BiddingStateMachine(make_bidding(status="PUBLISHED"), NOW)
    with pytest.raises(ValidationError, match="Opening date has not been reached"):
        await machine.fire("open_for_proposals")


async def test_open_and_close_once_dates_are_reached():
    bidding = make_bidding(status="PUBLISHED", opening_in=-timedelta(minutes=5))
    assert await BiddingStateMachine(bidding, NOW).fire("open_for_proposals") == "OPEN"

    bidding = make_bidding(status="OPEN", opening_in=-timedelta(hours=2), closing_in=-timedelta(seconds=1))
    assert await BiddingStateMachine(bidding, NOW).fire("close_for_proposals") == "CLOSED"


async def test_close_waits_for_closing_date():
    machine = BiddingStateMachine(make_bidding(status="OPEN"), NOW)
    with pytest.raises(ValidationError, match="Closing date has not been reached"):
        await machine.fire("close_for_proposals")


async def test_award_only_from_closed():
    assert await BiddingStateMachine(make_bidding(status="CLOSED"), NOW).fire("award") == "AWARDED"
    with pytest.raises(ValidationError):
        await BiddingStateMachine(make_bidding(status="OPEN"), NOW).fire("award")


@pytest.mark.parametrize("status", ["DRAFT", "PUBLISHED", "OPEN", "CLOSED"])
async def test_cancel_allowed_before_award(status):
    assert await BiddingStateMachine(make_bidding(status=status), NOW).fire("cancel") == "CANCELLED"


@pytest.mark.parametrize("status", ["AWARDED", "CANCELLED"])
async def test_terminal_bidding_states_cannot_be_cancelled(status):
    with pytest.raises(ValidationError, match="cannot be cancelled"):
        await BiddingStateMachine(make_bidding(status=status), NOW).fire("cancel")


async def test_edit_keeps_state_and_blocks_when_proposals_exist():
    assert await BiddingStateMachine(make_bidding(status="PUBLISHED"), NOW).fire("edit") == "PUBLISHED"

    machine = BiddingStateMachine(make_bidding(), NOW, proposal_count=1)
    with pytest.raises(ValidationError, match="Bidding with proposals cannot be edited"):
        await machine.fire("edit")


async def test_edit_rejected_once_open():
    with pytest.raises(ValidationError, match="cannot be edited"):
        await BiddingStateMachine(make_bidding(status="OPEN"), NOW).fire("edit")


async def test_delete_only_draft_without_dependents():
    assert await BiddingStateMachine(make_bidding(), NOW).fire("delete") == DELETED

    with pytest.raises(ValidationError, match="proposals or contracts"):
        await BiddingStateMachine(make_bidding(), NOW, has_contract=True).fire("delete")
    with pytest.raises(ValidationError, match="Only DRAFT biddings can be deleted"):
        await BiddingStateMachine(make_bidding(status="PUBLISHED"), NOW).fire("delete")


async def test_rejected_event_reports_source_state():
    machine = BiddingStateMachine(make_bidding(status="AWARDED"), NOW)
    with pytest.raises(ValidationError) as excinfo:
        await machine.fire("publish")
    assert excinfo.value.details == {"status": "AWARDED", "event": "publish"}


def test_allowed_events_follow_transition_table():
    assert BiddingStateMachine(make_bidding(), NOW).allowed_events() == ["cancel", "delete", "edit", "publish"]
    assert BiddingStateMachine(make_bidding(status="CLOSED"), NOW).allowed_events() == ["award", "cancel"]
    assert BiddingStateMachine(make_bidding(status="AWARDED"), NOW).allowed_events() == []


async def test_submit_requires_open_bidding_and_items():
    open_bidding = make_bidding(status="OPEN", opening_in=-timedelta(hours=1))
    assert await ProposalStateMachine(make_proposal(), open_bidding, NOW).fire("submit") == "SUBMITTED"

    with pytest.raises(ValidationError, match="at least one item"):
        await ProposalStateMachine(make_proposal(items=()), open_bidding, NOW).fire("submit")
    with pytest.raises(ValidationError, match="not open for proposals"):
        await ProposalStateMachine(make_proposal(), make_bidding(status="PUBLISHED"), NOW).fire("submit")


async def test_submit_after_closing_date_is_rejected():
    bidding = make_bidding(status="OPEN", opening_in=-timedelta(hours=2), closing_in=-timedelta(seconds=1))
    with pytest.raises(ValidationError, match="deadline has passed"):
        await ProposalStateMachine(make_proposal(), bidding, NOW).fire("submit")


async def test_evaluate_only_after_bidding_closed():
    proposal = make_proposal(status="SUBMITTED")
    with pytest.raises(ValidationError, match="after the bidding is closed"):
        await ProposalStateMachine(proposal, make_bidding(status="OPEN"), NOW).fire("evaluate")
    assert await ProposalStateMachine(proposal, make_bidding(status="CLOSED"), NOW).fire("evaluate") == "UNDER_REVIEW"


@pytest.mark.parametrize("event, target", [("accept", "ACCEPTED"), ("reject", "REJECTED")])
async def test_decision_from_under_review(event, target):
    machine = ProposalStateMachine(make_proposal(status="UNDER_REVIEW"), make_bidding(status="CLOSED"), NOW)
    assert await machine.fire(event) == target


async def test_accept_requires_review():
    machine = ProposalStateMachine(make_proposal(status="SUBMITTED"), make_bidding(status="CLOSED"), NOW)
    with pytest.raises(ValidationError, match="UNDER_REVIEW"):
        await machine.fire("accept")


async def test_withdraw_blocked_after_bidding_closed():
    open_bidding = make_bidding(status="OPEN", opening_in=-timedelta(hours=1))
    proposal = make_proposal(status="SUBMITTED")
    assert await ProposalStateMachine(proposal, open_bidding, NOW).fire("withdraw") == "WITHDRAWN"

    with pytest.raises(ValidationError, match="after the bidding is closed"):
        await ProposalStateMachine(make_proposal(status="SUBMITTED"), make_bidding(status="CLOSED"), NOW).fire("withdraw")


async def test_proposal_delete_only_draft():
    bidding = make_bidding(status="OPEN")
    assert await ProposalStateMachine(make_proposal(), bidding, NOW).fire("delete") == DELETED
    with pytest.raises(ValidationError, match="Only DRAFT proposals can be deleted"):
        await ProposalStateMachine(make_proposal(status="SUBMITTED"), bidding, NOW).fire("delete")


async def test_contract_activation_requires_signature():
    unsigned = SimpleNamespace(id="c-1", status="DRAFT", signed_at=None)
    with pytest.raises(ValidationError, match="signed before activation"):
        await ContractStateMachine(unsigned, NOW).fire("activate")

    signed = SimpleNamespace(id="c-1", status="DRAFT", signed_at=NOW)
    assert await ContractStateMachine(signed, NOW).fire("activate") == "ACTIVE"


async def test_contract_lifecycle_edges():
    def contract(status):
        return SimpleNamespace(id="c-1", status=status, signed_at=NOW)

    assert await ContractStateMachine(contract("ACTIVE"), NOW).fire("suspend") == "SUSPENDED"
    assert await ContractStateMachine(contract("ACTIVE"), NOW).fire("complete") == "COMPLETED"
    assert await ContractStateMachine(contract("SUSPENDED"), NOW).fire("terminate") == "TERMINATED"
    assert await ContractStateMachine(contract("DRAFT"), NOW).fire("sign") == "DRAFT"

    with pytest.raises(ValidationError, match="already finished"):
        await ContractStateMachine(contract("COMPLETED"), NOW).fire("terminate")
    with pytest.raises(ValidationError, match="Only DRAFT contracts can be edited"):
        await ContractStateMachine(contract("ACTIVE"), NOW).fire("edit")
