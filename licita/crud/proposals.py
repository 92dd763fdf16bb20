from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from licita.models.contracts import Contract
from licita.models.proposals import Proposal, ProposalItem
from licita.core.logging_config import logger


async def get_proposal_by_id(db: AsyncSession, proposal_id: str) -> Proposal | None:
    result = await db.execute(
        select(Proposal).filter(Proposal.id == proposal_id).execution_options(populate_existing=True)
    )
    proposal = result.scalars().first()
    if not proposal:
        logger.warning(f"Proposal {proposal_id} not found")
    return proposal


async def get_proposal_for_supplier(db: AsyncSession, bidding_id: str, supplier_id: str) -> Proposal | None:
    result = await db.execute(
        select(Proposal).filter(Proposal.bidding_id == bidding_id, Proposal.supplier_id == supplier_id)
    )
    return result.scalars().first()


async def list_proposals(
    db: AsyncSession,
    bidding_id: str,
    page: int = 1,
    per_page: int = 10,
    status: str | None = None,
    supplier_id: str | None = None,
) -> tuple[list[Proposal], int]:
    query = select(Proposal).filter(Proposal.bidding_id == bidding_id)
    if status:
        query = query.filter(Proposal.status == status)
    if supplier_id:
        query = query.filter(Proposal.supplier_id == supplier_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    query = query.order_by(Proposal.created_at.asc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)
    return result.scalars().all(), total


def build_items(items: list[dict]) -> list[ProposalItem]:
    """Позиции предложения с пересчитанной суммой по каждой строке."""
    return [
        ProposalItem(
            position=index,
            description=item["description"],
            quantity=item["quantity"],
            unit_price=item["unit_price"],
            total_price=item["quantity"] * item["unit_price"],
            brand=item.get("brand"),
            model=item.get("model"),
        )
        for index, item in enumerate(items)
    ]


async def create_proposal(db: AsyncSession, items: list[dict], **fields) -> Proposal:
    db_items = build_items(items)
    db_proposal = Proposal(
        items=db_items,
        total_value=sum((item.total_price for item in db_items), 0),
        **fields,
    )
    db.add(db_proposal)
    await db.flush()
    return db_proposal


def replace_items(proposal: Proposal, items: list[dict]) -> None:
    proposal.items = build_items(items)
    proposal.total_value = sum((item.total_price for item in proposal.items), 0)


async def compare_and_set_status(
    db: AsyncSession, proposal_id: str, expected: str, new_status: str, **extra
) -> bool:
    result = await db.execute(
        update(Proposal)
        .where(Proposal.id == proposal_id, Proposal.status == expected)
        .values(status=new_status, **extra)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount == 1


async def has_contract(db: AsyncSession, proposal_id: str) -> bool:
    result = await db.execute(select(Contract.id).filter(Contract.proposal_id == proposal_id).limit(1))
    return result.scalars().first() is not None


async def delete_proposal(db: AsyncSession, proposal: Proposal) -> None:
    # позиции удаляются каскадом relationship
    await db.delete(proposal)
    await db.flush()


async def list_supplier_ids(db: AsyncSession, bidding_id: str) -> list[str]:
    result = await db.execute(
        select(Proposal.supplier_id).filter(Proposal.bidding_id == bidding_id).distinct()
    )
    return result.scalars().all()
