"""
Notifications Repository
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Notification, NotificationType


async def create(
    db: AsyncSession,
    *,
    user_id: str,
    application_id: str | None,
    type: NotificationType,
    title: str,
    message: str,
) -> Notification:
    notification = Notification(
        user_id=str(user_id),
        application_id=application_id,
        type=type,
        title=title,
        message=message,
        read=False,
    )
    db.add(notification)
    await db.flush()
    return notification


async def list_for_user(
    db: AsyncSession,
    user_id: str,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == str(user_id))
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == str(user_id), Notification.read.is_(False))
    )
    return result.scalar_one()


async def get_for_user(db: AsyncSession, notification_id: str, user_id: str) -> Notification | None:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == str(user_id),
        )
    )
    return result.scalar_one_or_none()


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == str(user_id), Notification.read.is_(False))
        .values(read=True)
    )
    return result.rowcount or 0
