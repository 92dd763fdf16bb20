from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from licita.api.dependencies import get_container, get_db, rate_limit, require_permissions
from licita.core.container import Container
from licita.core.errors import NotFoundError
from licita.crud.users import get_user_by_id
from licita.models.enums import Permission, UserRole
from licita.schemas.permissions import PermissionGrant, PermissionOut
from licita.services.actor import Actor

router = APIRouter()

require_admin = require_permissions(Permission.MANAGE_USERS, roles=(UserRole.ADMIN,))


async def _ensure_user(db: AsyncSession, user_id: str) -> None:
    if not await get_user_by_id(db, user_id):
        raise NotFoundError("User not found")


@router.get("/{user_id}", response_model=List[PermissionOut], summary="Права пользователя")
async def list_permissions(
    user_id: str,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    await _ensure_user(db, user_id)
    return await container.permissions.list_permissions(db, user_id)


@router.post(
    "/{user_id}",
    response_model=PermissionOut,
    status_code=201,
    summary="Выдать право",
    dependencies=[Depends(rate_limit("permissions"))],
)
async def grant_permission(
    user_id: str,
    data: PermissionGrant,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    await _ensure_user(db, user_id)
    return await container.permissions.grant_permission(
        db, user_id, data.permission, granted_by=actor.user_id, expires_at=data.expires_at
    )


@router.delete(
    "/{user_id}/{permission}",
    status_code=204,
    summary="Отозвать право",
    dependencies=[Depends(rate_limit("permissions"))],
)
async def revoke_permission(
    user_id: str,
    permission: Permission,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    await _ensure_user(db, user_id)
    if not await container.permissions.revoke_permission(db, user_id, permission):
        raise NotFoundError("Active permission not found")
