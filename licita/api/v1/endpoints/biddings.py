from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from licita.api.dependencies import (
    get_container,
    get_current_actor,
    get_db,
    get_optional_actor,
    rate_limit,
    require_permissions,
    require_roles,
)
from licita.core.container import Container
from licita.core.logging_config import logger
from licita.models.enums import BiddingStatus, BiddingType, Permission, UserRole
from licita.schemas.biddings import (
    BiddingCreate,
    BiddingDetail,
    BiddingListResponse,
    BiddingModeration,
    BiddingUpdate,
)
from licita.services.actor import Actor

router = APIRouter()

OWNER_ROLES = (UserRole.PUBLIC_ENTITY, UserRole.ADMIN)


@router.get("/", response_model=BiddingListResponse, summary="Список лицитаций")
async def list_biddings(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    status: Optional[BiddingStatus] = None,
    type: Optional[BiddingType] = None,
    search: Optional[str] = None,
    mine: bool = False,
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    biddings, total = await container.biddings.list_biddings(
        db,
        actor,
        page=page,
        per_page=per_page,
        status=status.value if status else None,
        type=type.value if type else None,
        search=search,
        mine=mine,
    )
    logger.info(f"Fetched {len(biddings)} biddings (total={total}, page={page})")
    return BiddingListResponse(biddings=biddings, total=total, page=page, per_page=per_page)


@router.get("/{bidding_id}", response_model=BiddingDetail, summary="Лицитация по id")
async def get_bidding(
    bidding_id: str,
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.biddings.get_visible_bidding(db, bidding_id, actor)


@router.post(
    "/",
    response_model=BiddingDetail,
    status_code=201,
    summary="Создание лицитации в статусе DRAFT",
    dependencies=[Depends(rate_limit("biddings"))],
)
async def create_bidding(
    data: BiddingCreate,
    actor: Actor = Depends(require_permissions(Permission.CREATE_BIDDING, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.biddings.create_bidding(db, actor, data.dict(exclude_unset=True))


@router.put(
    "/{bidding_id}",
    response_model=BiddingDetail,
    summary="Редактирование лицитации",
    dependencies=[Depends(rate_limit("biddings"))],
)
async def update_bidding(
    bidding_id: str,
    data: BiddingUpdate,
    actor: Actor = Depends(require_permissions(Permission.EDIT_BIDDING, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.biddings.update_bidding(db, actor, bidding_id, data.dict(exclude_unset=True))


@router.post(
    "/{bidding_id}/publish",
    response_model=BiddingDetail,
    summary="Публикация лицитации",
    dependencies=[Depends(rate_limit("biddings"))],
)
async def publish_bidding(
    bidding_id: str,
    actor: Actor = Depends(require_permissions(Permission.PUBLISH_BIDDING, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.biddings.publish_bidding(db, actor, bidding_id)


@router.post(
    "/{bidding_id}/cancel",
    response_model=BiddingDetail,
    summary="Отмена лицитации",
    dependencies=[Depends(rate_limit("biddings"))],
)
async def cancel_bidding(
    bidding_id: str,
    actor: Actor = Depends(require_permissions(Permission.CANCEL_BIDDING, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.biddings.cancel_bidding(db, actor, bidding_id)


@router.post(
    "/{bidding_id}/moderate",
    response_model=BiddingDetail,
    summary="Модерация лицитации администратором",
    dependencies=[Depends(rate_limit("biddings"))],
)
async def moderate_bidding(
    bidding_id: str,
    data: BiddingModeration,
    actor: Actor = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.biddings.moderate_bidding(db, actor, bidding_id, data.action)


@router.delete(
    "/{bidding_id}",
    status_code=204,
    summary="Удаление черновика лицитации",
    dependencies=[Depends(rate_limit("biddings"))],
)
async def delete_bidding(
    bidding_id: str,
    actor: Actor = Depends(require_permissions(Permission.DELETE_BIDDING, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    await container.biddings.delete_bidding(db, actor, bidding_id)
