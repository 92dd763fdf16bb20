from typing import AsyncIterator
from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from licita.core.container import Container
from licita.core.errors import AuthenticationError, AuthorizationError
from licita.core.logging_config import logger
from licita.services.actor import Actor

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


async def get_db(container: Container = Depends(get_container)) -> AsyncIterator[AsyncSession]:
    async with container.database.session() as db:
        yield db


def get_token(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> str:
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return credentials.credentials


async def get_current_actor(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
) -> Actor:
    return await container.auth.authenticate(db, token)


async def get_optional_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
) -> Actor | None:
    """Для публичных маршрутов: невалидный токен трактуется как анонимный доступ."""
    if not credentials or not credentials.credentials:
        return None
    try:
        return await container.auth.authenticate(db, credentials.credentials)
    except (AuthenticationError, AuthorizationError):
        return None


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def require_roles(*roles: str):
    """Грубая проверка роли по allow-list маршрута."""
    allowed = {getattr(role, "value", role) for role in roles}

    async def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            logger.warning(f"User {actor.user_id} with role {actor.role} denied, allowed: {sorted(allowed)}")
            raise AuthorizationError("Insufficient role for this operation")
        return actor

    return dependency


def require_permissions(*permissions, roles: tuple = ()):
    """Роль из allow-list (если задан) и все перечисленные активные права."""
    role_check = require_roles(*roles) if roles else get_current_actor

    async def dependency(
        actor: Actor = Depends(role_check),
        db: AsyncSession = Depends(get_db),
        container: Container = Depends(get_container),
    ) -> Actor:
        await container.permissions.require_permissions(db, actor.user_id, *permissions)
        return actor

    return dependency


def rate_limit(name: str):
    """Лимит фиксированного окна: по пользователю, для анонимных запросов по IP."""

    async def dependency(
        request: Request,
        response: Response,
        actor: Actor | None = Depends(get_optional_actor),
        container: Container = Depends(get_container),
    ) -> None:
        identifier = actor.user_id if actor else f"ip:{client_ip(request)}"
        status = await container.rate_limiter(name).check_rate_limit(identifier)
        response.headers["X-RateLimit-Limit"] = str(status.limit)
        response.headers["X-RateLimit-Remaining"] = str(status.remaining)
        response.headers["X-RateLimit-Reset"] = str(status.reset_seconds)

    return dependency
