from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from licita.api.dependencies import get_current_actor, get_db
from licita.core.errors import AuthorizationError, NotFoundError
from licita.core.logging_config import logger
from licita.crud import notifications as notifications_crud
from licita.schemas.notifications import NotificationListResponse, NotificationOut
from licita.services.actor import Actor

router = APIRouter()


@router.get("/", response_model=NotificationListResponse, summary="Уведомления текущего пользователя")
async def list_notifications(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    notifications, total = await notifications_crud.list_notifications(
        db, actor.user_id, page=page, per_page=per_page, unread_only=unread_only
    )
    return NotificationListResponse(notifications=notifications, total=total, page=page, per_page=per_page)


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    notification = await notifications_crud.get_notification(db, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    if notification.user_id != actor.user_id:
        raise AuthorizationError("You are not allowed to modify this notification")
    notification.is_read = True
    await db.commit()
    logger.debug(f"Notification {notification_id} marked as read by user {actor.user_id}")
    return notification
