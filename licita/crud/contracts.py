from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from licita.models.contracts import Contract
from licita.core.logging_config import logger


async def get_contract_by_id(db: AsyncSession, contract_id: str) -> Contract | None:
    result = await db.execute(
        select(Contract).filter(Contract.id == contract_id).execution_options(populate_existing=True)
    )
    contract = result.scalars().first()
    if not contract:
        logger.warning(f"Contract {contract_id} not found")
    return contract


async def get_contract_by_number(db: AsyncSession, contract_number: str) -> Contract | None:
    result = await db.execute(select(Contract).filter(Contract.contract_number == contract_number))
    return result.scalars().first()


async def get_contract_by_proposal(db: AsyncSession, proposal_id: str) -> Contract | None:
    result = await db.execute(select(Contract).filter(Contract.proposal_id == proposal_id))
    return result.scalars().first()


async def create_contract(db: AsyncSession, **fields) -> Contract:
    db_contract = Contract(**fields)
    db.add(db_contract)
    await db.flush()
    return db_contract


async def compare_and_set_status(
    db: AsyncSession, contract_id: str, expected: str, new_status: str, **extra
) -> bool:
    result = await db.execute(
        update(Contract)
        .where(Contract.id == contract_id, Contract.status == expected)
        .values(status=new_status, **extra)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount == 1
