from dataclasses import dataclass
from licita.core.errors import AuthorizationError
from licita.models.enums import UserRole


@dataclass(frozen=True)
class Actor:
    """Аутентифицированный пользователь, от имени которого выполняется операция."""
    user_id: str
    role: str
    email: str | None = None
    session_id: str | None = None
    public_entity_id: str | None = None
    supplier_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def owns_entity(self, public_entity_id: str) -> bool:
        return self.is_admin or (
            self.role == UserRole.PUBLIC_ENTITY.value
            and self.public_entity_id is not None
            and self.public_entity_id == public_entity_id
        )

    def require_entity_owner(self, public_entity_id: str, action: str) -> None:
        if not self.owns_entity(public_entity_id):
            raise AuthorizationError(f"You are not allowed to {action}")
