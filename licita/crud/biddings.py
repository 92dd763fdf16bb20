from datetime import datetime
from sqlalchemy import func, update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from licita.models.biddings import Bidding
from licita.models.contracts import Contract
from licita.models.proposals import Proposal
from licita.core.logging_config import logger


async def get_bidding_by_id(db: AsyncSession, bidding_id: str) -> Bidding | None:
    # populate_existing: статус читается из базы, даже если объект уже в сессии
    result = await db.execute(
        select(Bidding).filter(Bidding.id == bidding_id).execution_options(populate_existing=True)
    )
    bidding = result.scalars().first()
    if not bidding:
        logger.warning(f"Bidding {bidding_id} not found")
    return bidding


async def get_bidding_by_number(db: AsyncSession, bidding_number: str) -> Bidding | None:
    result = await db.execute(select(Bidding).filter(Bidding.bidding_number == bidding_number))
    return result.scalars().first()


async def count_proposals(db: AsyncSession, bidding_id: str) -> int:
    result = await db.execute(
        select(func.count(Proposal.id)).filter(Proposal.bidding_id == bidding_id)
    )
    return result.scalar() or 0


async def has_contract(db: AsyncSession, bidding_id: str) -> bool:
    result = await db.execute(select(Contract.id).filter(Contract.bidding_id == bidding_id).limit(1))
    return result.scalars().first() is not None


async def list_biddings(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 10,
    status: str | None = None,
    type: str | None = None,
    public_entity_id: str | None = None,
    statuses: tuple[str, ...] | None = None,
    public_only: bool = False,
    search: str | None = None,
) -> tuple[list[Bidding], int]:
    """Страница лицитаций и общее количество по тем же фильтрам."""
    query = select(Bidding)
    if statuses:
        query = query.filter(Bidding.status.in_(statuses))
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(Bidding.title.ilike(pattern), Bidding.description.ilike(pattern), Bidding.bidding_number.ilike(pattern))
        )
    if status:
        query = query.filter(Bidding.status == status)
    if type:
        query = query.filter(Bidding.type == type)
    if public_entity_id:
        query = query.filter(Bidding.public_entity_id == public_entity_id)
    if public_only:
        query = query.filter(Bidding.is_public.is_(True))

    total_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(total_query)).scalar() or 0

    query = query.order_by(Bidding.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)
    return result.scalars().all(), total


async def create_bidding(db: AsyncSession, **fields) -> Bidding:
    db_bidding = Bidding(**fields)
    db.add(db_bidding)
    await db.flush()
    return db_bidding


async def compare_and_set_status(
    db: AsyncSession, bidding_id: str, expected: str, new_status: str, **extra
) -> bool:
    """
    Условное обновление статуса: срабатывает, только если статус в базе всё ещё expected.
    Возвращает False, если запись уже изменена другим запросом.
    """
    result = await db.execute(
        update(Bidding)
        .where(Bidding.id == bidding_id, Bidding.status == expected)
        .values(status=new_status, **extra)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount == 1


async def delete_bidding(db: AsyncSession, bidding_id: str) -> bool:
    result = await db.execute(
        delete(Bidding).where(Bidding.id == bidding_id).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def find_due_for_opening(db: AsyncSession, now: datetime) -> list[Bidding]:
    result = await db.execute(
        select(Bidding).filter(Bidding.status == "PUBLISHED", Bidding.opening_date <= now)
    )
    return result.scalars().all()


async def find_due_for_closing(db: AsyncSession, now: datetime) -> list[Bidding]:
    result = await db.execute(
        select(Bidding).filter(Bidding.status == "OPEN", Bidding.closing_date <= now)
    )
    return result.scalars().all()


async def find_closing_between(db: AsyncSession, start: datetime, end: datetime) -> list[Bidding]:
    result = await db.execute(
        select(Bidding).filter(
            Bidding.status == "OPEN",
            Bidding.closing_date >= start,
            Bidding.closing_date <= end,
        )
    )
    return result.scalars().all()
