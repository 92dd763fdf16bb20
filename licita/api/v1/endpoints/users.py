from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from licita.api.dependencies import get_container, get_db, rate_limit, require_permissions
from licita.core.container import Container
from licita.models.enums import Permission, UserRole
from licita.schemas.auth import UserOut, UserStatusUpdate
from licita.services.actor import Actor

router = APIRouter()


@router.patch(
    "/{user_id}/status",
    response_model=UserOut,
    summary="Одобрить, приостановить или деактивировать пользователя",
    dependencies=[Depends(rate_limit("users"))],
)
async def set_user_status(
    user_id: str,
    data: UserStatusUpdate,
    actor: Actor = Depends(require_permissions(Permission.MANAGE_USERS, roles=(UserRole.ADMIN,))),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.users.set_status(db, actor, user_id, data.status)
