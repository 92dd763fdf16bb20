from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from licita.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from licita.core.logging_config import logger
from licita.crud import users as users_crud
from licita.models.enums import UserRole, UserStatus
from licita.models.users import User
from licita.services.actor import Actor
from licita.services.auth_service import hash_password
from licita.services.permissions import PermissionStore

SELF_REGISTER_ROLES = (UserRole.PUBLIC_ENTITY.value, UserRole.SUPPLIER.value, UserRole.CITIZEN.value)

MIN_PASSWORD_LENGTH = 8


def validate_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")


class UserService:
    """
    Регистрация пользователей и управление их статусом.

    Граждане активируются сразу; органы и поставщики ждут одобрения
    администратора. Профиль и права по умолчанию создаются вместе с пользователем.
    """

    def __init__(self, permissions: PermissionStore):
        self.permissions = permissions

    async def register(self, db: AsyncSession, data: dict) -> User:
        role = data["role"]
        if role not in SELF_REGISTER_ROLES:
            raise ValidationError(f"Role {role} cannot be self-registered")
        validate_password(data["password"])
        if role == UserRole.PUBLIC_ENTITY.value and not data.get("entity_name"):
            raise ValidationError("entity_name is required for public entities")
        if role == UserRole.SUPPLIER.value and not data.get("company_name"):
            raise ValidationError("company_name is required for suppliers")

        email = data["email"].strip().lower()
        if await users_crud.get_user_by_email(db, email):
            raise ConflictError("Email already in use")

        status = UserStatus.ACTIVE.value if role == UserRole.CITIZEN.value else UserStatus.PENDING.value
        try:
            user = await users_crud.create_user(
                db,
                email=email,
                password_hash=hash_password(data["password"]),
                first_name=data.get("first_name"),
                last_name=data.get("last_name"),
                role=role,
                status=status,
            )
            await self._create_profile(db, user, data)
            await db.commit()
        except IntegrityError as e:
            # email или CNPJ заняты параллельной регистрацией
            await db.rollback()
            logger.warning(f"Registration of {email} rejected by constraint: {str(e)}")
            raise ConflictError("Email or CNPJ already in use")

        await self.permissions.grant_role_defaults(db, user)
        logger.info(f"User {user.id} registered as {role} with status {status}")
        return user

    async def _create_profile(self, db: AsyncSession, user: User, data: dict) -> None:
        if user.role == UserRole.PUBLIC_ENTITY.value:
            await users_crud.create_public_entity(
                db,
                user_id=user.id,
                name=data["entity_name"],
                cnpj=data.get("cnpj"),
                city=data.get("city"),
                state=data.get("state"),
            )
        elif user.role == UserRole.SUPPLIER.value:
            await users_crud.create_supplier(
                db, user_id=user.id, company_name=data["company_name"], cnpj=data.get("cnpj")
            )

    async def create_admin(self, db: AsyncSession, email: str, password: str, first_name: str | None = None) -> User:
        validate_password(password)
        email = email.strip().lower()
        if await users_crud.get_user_by_email(db, email):
            raise ConflictError("Email already in use")

        user = await users_crud.create_user(
            db,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name or "Administrador",
            role=UserRole.ADMIN.value,
            status=UserStatus.ACTIVE.value,
        )
        await db.commit()
        await self.permissions.grant_role_defaults(db, user)
        logger.info(f"Administrator {user.id} created for {email}")
        return user

    async def set_status(self, db: AsyncSession, actor: Actor, user_id: str, status: str) -> User:
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can change user status")
        if status not in UserStatus.__members__:
            raise ValidationError(f"Unknown user status: {status}")
        if user_id == actor.user_id:
            raise ValidationError("Administrators cannot change their own status")

        user = await users_crud.get_user_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")
        await users_crud.set_user_status(db, user.id, status)
        await db.commit()
        logger.info(f"User {user_id} status set to {status} by admin {actor.user_id}")
        return user
