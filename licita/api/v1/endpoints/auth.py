from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from licita.api.dependencies import client_ip, get_container, get_current_actor, get_db, get_token, rate_limit
from licita.core.container import Container
from licita.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserOut,
)
from licita.services.actor import Actor

router = APIRouter()


@router.post(
    "/register",
    response_model=UserOut,
    status_code=201,
    summary="Регистрация; органы и поставщики ждут одобрения администратора",
    dependencies=[Depends(rate_limit("register"))],
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.users.register(db, data.dict(exclude_unset=True))


@router.post("/login", response_model=LoginResponse, summary="Вход по email и паролю")
async def login(
    data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.auth.login(
        db, data.email, data.password, client_ip(request), request.headers.get("User-Agent")
    )


@router.post("/refresh", response_model=RefreshResponse, summary="Новый access-токен по refresh-токену")
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.auth.refresh(db, data.refresh_token)


@router.post("/logout", status_code=204, summary="Выход и отзыв токена")
async def logout(
    token: str = Depends(get_token),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    await container.auth.logout(db, token, actor)


@router.get("/me", response_model=MeResponse)
async def me(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    permissions = await container.permissions.get_active_permissions(db, actor.user_id)
    return MeResponse(
        user_id=actor.user_id,
        email=actor.email,
        role=actor.role,
        public_entity_id=actor.public_entity_id,
        supplier_id=actor.supplier_id,
        permissions=sorted(permissions),
    )
