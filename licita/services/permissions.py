from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from licita.core.clock import Clock, as_utc
from licita.core.errors import AuthorizationError, ValidationError
from licita.core.logging_config import logger
from licita.crud import permissions as permissions_crud
from licita.models.enums import Permission, UserRole
from licita.models.permissions import UserPermission
from licita.models.users import User

P = Permission

ROLE_PERMISSIONS: dict[str, tuple[Permission, ...]] = {
    UserRole.ADMIN.value: tuple(Permission),
    UserRole.PUBLIC_ENTITY.value: (
        P.READ_PUBLIC_DATA, P.READ_PRIVATE_DATA, P.WRITE_DATA,
        P.CREATE_BIDDING, P.EDIT_BIDDING, P.DELETE_BIDDING, P.PUBLISH_BIDDING, P.CANCEL_BIDDING,
        P.CREATE_CONTRACT, P.EDIT_CONTRACT, P.SIGN_CONTRACT, P.TERMINATE_CONTRACT,
        P.GENERATE_REPORTS, P.EXPORT_DATA,
    ),
    UserRole.SUPPLIER.value: (
        P.READ_PUBLIC_DATA,
        P.CREATE_PROPOSAL, P.EDIT_PROPOSAL, P.DELETE_PROPOSAL, P.SUBMIT_PROPOSAL,
        P.SIGN_CONTRACT,
        P.GENERATE_REPORTS,
    ),
    UserRole.AUDITOR.value: (
        P.READ_PUBLIC_DATA, P.READ_PRIVATE_DATA, P.VIEW_AUDIT_LOGS, P.GENERATE_REPORTS, P.EXPORT_DATA,
    ),
    UserRole.CITIZEN.value: (P.READ_PUBLIC_DATA,),
}


def _permission_value(permission) -> str:
    value = permission.value if isinstance(permission, Permission) else str(permission)
    if value not in Permission.__members__:
        raise ValidationError(f"Unknown permission: {value}")
    return value


class PermissionStore:
    """Гранты (пользователь, право) в основной базе; отзыв логический через is_active."""

    def __init__(self, clock: Clock):
        self.clock = clock

    def _is_effective(self, grant: UserPermission) -> bool:
        if not grant.is_active:
            return False
        return grant.expires_at is None or as_utc(grant.expires_at) > self.clock.now()

    async def get_active_permissions(self, db: AsyncSession, user_id: str) -> set[str]:
        grants = await permissions_crud.list_permissions(db, user_id, active_only=True)
        return {grant.permission for grant in grants if self._is_effective(grant)}

    async def check_permission(self, db: AsyncSession, user_id: str, permission) -> bool:
        return _permission_value(permission) in await self.get_active_permissions(db, user_id)

    async def require_permissions(self, db: AsyncSession, user_id: str, *permissions) -> None:
        """Все перечисленные права должны быть активны (семантика AND)."""
        required = {_permission_value(permission) for permission in permissions}
        missing = required - await self.get_active_permissions(db, user_id)
        if missing:
            logger.warning(f"User {user_id} denied, missing permissions: {sorted(missing)}")
            raise AuthorizationError("Insufficient permissions", {"missing": sorted(missing)})

    async def grant_permission(
        self,
        db: AsyncSession,
        user_id: str,
        permission,
        granted_by: str | None = None,
        expires_at: datetime | None = None,
    ) -> UserPermission:
        value = _permission_value(permission)
        if expires_at is not None and as_utc(expires_at) <= self.clock.now():
            raise ValidationError("Permission expiration must be in the future")

        grant = await permissions_crud.get_permission(db, user_id, value)
        if grant:
            grant.is_active = True
            grant.granted_by = granted_by
            grant.expires_at = as_utc(expires_at)
        else:
            grant = UserPermission(
                user_id=user_id, permission=value, granted_by=granted_by, expires_at=as_utc(expires_at)
            )
            db.add(grant)
        await db.commit()
        logger.info(f"Permission {value} granted to user {user_id} by {granted_by}")
        return grant

    async def revoke_permission(self, db: AsyncSession, user_id: str, permission) -> bool:
        value = _permission_value(permission)
        grant = await permissions_crud.get_permission(db, user_id, value)
        if not grant or not grant.is_active:
            return False
        grant.is_active = False
        await db.commit()
        logger.info(f"Permission {value} revoked from user {user_id}")
        return True

    async def list_permissions(self, db: AsyncSession, user_id: str) -> list[UserPermission]:
        return await permissions_crud.list_permissions(db, user_id)

    async def grant_role_defaults(self, db: AsyncSession, user: User, granted_by: str | None = None) -> int:
        """Выдаёт набор прав по умолчанию для роли; существующие гранты не трогает."""
        existing = {grant.permission for grant in await permissions_crud.list_permissions(db, user.id)}
        added = 0
        for permission in ROLE_PERMISSIONS.get(user.role, ()):
            if permission.value in existing:
                continue
            db.add(UserPermission(user_id=user.id, permission=permission.value, granted_by=granted_by or user.id))
            added += 1
        await db.commit()
        logger.info(f"Granted {added} default permissions to user {user.id} ({user.role})")
        return added
