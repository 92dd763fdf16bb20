from datetime import datetime
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from licita.models.notifications import Notification


async def create_notification(db: AsyncSession, **fields) -> Notification:
    db_notification = Notification(**fields)
    db.add(db_notification)
    await db.flush()
    return db_notification


async def create_notifications(db: AsyncSession, user_ids: list[str], **fields) -> int:
    """Одна запись на получателя: флаг прочтения у каждого свой."""
    db.add_all([Notification(user_id=user_id, **fields) for user_id in user_ids])
    await db.flush()
    return len(user_ids)


async def list_notifications(
    db: AsyncSession,
    user_id: str,
    page: int = 1,
    per_page: int = 20,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    query = select(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    query = query.order_by(Notification.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)
    return result.scalars().all(), total


async def get_notification(db: AsyncSession, notification_id: str) -> Notification | None:
    result = await db.execute(select(Notification).filter(Notification.id == notification_id))
    return result.scalars().first()


async def delete_read_before(db: AsyncSession, cutoff: datetime) -> int:
    result = await db.execute(
        delete(Notification)
        .where(Notification.is_read.is_(True), Notification.created_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
