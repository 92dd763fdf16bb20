from datetime import datetime
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from licita.models.users import User, PublicEntity, Supplier, UserSession


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).filter(User.id == user_id))
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).filter(User.email == email.lower()))
    return result.scalars().first()


async def get_public_entity_by_user(db: AsyncSession, user_id: str) -> PublicEntity | None:
    result = await db.execute(select(PublicEntity).filter(PublicEntity.user_id == user_id))
    return result.scalars().first()


async def get_public_entity_by_id(db: AsyncSession, public_entity_id: str) -> PublicEntity | None:
    result = await db.execute(select(PublicEntity).filter(PublicEntity.id == public_entity_id))
    return result.scalars().first()


async def get_supplier_by_user(db: AsyncSession, user_id: str) -> Supplier | None:
    result = await db.execute(select(Supplier).filter(Supplier.user_id == user_id))
    return result.scalars().first()


async def get_supplier_by_id(db: AsyncSession, supplier_id: str) -> Supplier | None:
    result = await db.execute(select(Supplier).filter(Supplier.id == supplier_id))
    return result.scalars().first()


async def create_user(db: AsyncSession, **fields) -> User:
    db_user = User(**fields)
    db.add(db_user)
    await db.flush()
    return db_user


async def create_public_entity(db: AsyncSession, **fields) -> PublicEntity:
    entity = PublicEntity(**fields)
    db.add(entity)
    await db.flush()
    return entity


async def create_supplier(db: AsyncSession, **fields) -> Supplier:
    supplier = Supplier(**fields)
    db.add(supplier)
    await db.flush()
    return supplier


async def set_user_status(db: AsyncSession, user_id: str, status: str) -> bool:
    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(status=status)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount > 0


async def list_users(db: AsyncSession, status: str | None = None) -> list[User]:
    query = select(User).order_by(User.created_at)
    if status:
        query = query.filter(User.status == status)
    result = await db.execute(query)
    return result.scalars().all()


async def list_user_ids_by_role(db: AsyncSession, role: str) -> list[str]:
    result = await db.execute(select(User.id).filter(User.role == role, User.status == "ACTIVE"))
    return result.scalars().all()


async def create_user_session(db: AsyncSession, **fields) -> UserSession:
    db_session = UserSession(**fields)
    db.add(db_session)
    await db.flush()
    return db_session


async def get_user_session(db: AsyncSession, session_id: str) -> UserSession | None:
    result = await db.execute(select(UserSession).filter(UserSession.id == session_id))
    return result.scalars().first()


async def deactivate_user_session(db: AsyncSession, session_id: str) -> None:
    await db.execute(
        update(UserSession)
        .where(UserSession.id == session_id)
        .values(is_active=False)
        .execution_options(synchronize_session="evaluate")
    )


async def touch_last_login(db: AsyncSession, user_id: str, when: datetime) -> None:
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(last_login_at=when)
        .execution_options(synchronize_session="evaluate")
    )
