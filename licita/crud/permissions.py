from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from licita.models.permissions import UserPermission


async def list_permissions(db: AsyncSession, user_id: str, active_only: bool = False) -> list[UserPermission]:
    query = select(UserPermission).filter(UserPermission.user_id == user_id)
    if active_only:
        query = query.filter(UserPermission.is_active.is_(True))
    result = await db.execute(query.order_by(UserPermission.permission))
    return result.scalars().all()


async def get_permission(db: AsyncSession, user_id: str, permission: str) -> UserPermission | None:
    result = await db.execute(
        select(UserPermission).filter(
            UserPermission.user_id == user_id,
            UserPermission.permission == permission,
        )
    )
    return result.scalars().first()
