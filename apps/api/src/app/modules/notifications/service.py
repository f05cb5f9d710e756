"""
Notifications Service

In-app notifications with an optional email copy. The email side is best
effort: a notification is never lost because an email could not be sent,
and a failing notification never fails the operation that triggered it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.email import send_notification_email
from app.modules.dashboard.settings_store import get_settings_map, is_enabled
from app.modules.notifications import repository
from app.modules.notifications.models import (
    EMAIL_MASTER_SETTING,
    EMAIL_SETTING_BY_TYPE,
    Notification,
    NotificationType,
)
from app.modules.shared import NotFoundError
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


async def should_send_email(db: AsyncSession, notification_type: NotificationType) -> bool:
    """Master switch and the per-type switch must both be on (default on)."""
    type_key = EMAIL_SETTING_BY_TYPE[notification_type]
    values = await get_settings_map(db, [EMAIL_MASTER_SETTING, type_key])

    if not is_enabled(values.get(EMAIL_MASTER_SETTING)):
        return False
    return is_enabled(values.get(type_key))


async def _email_user(
    db: AsyncSession,
    user_id: str,
    application_id: str | None,
    notification_type: NotificationType,
    title: str,
    message: str,
) -> None:
    try:
        if not await should_send_email(db, notification_type):
            return

        user = await UserRepository.get_by_id(db, user_id)
        if user is None or not user.email:
            return

        await send_notification_email(
            to_email=user.email,
            user_name=user.full_name or user.first_name or "User",
            notification_type=notification_type.value,
            title=title,
            message=message,
            application_id=application_id,
        )
    except Exception as e:
        logger.error(f"Error sending notification email to user {user_id}: {e}")


async def create_notification(
    db: AsyncSession,
    user_id: str,
    application_id: str | None,
    notification_type: NotificationType,
    title: str,
    message: str,
) -> Notification | None:
    """
    Create an in-app notification and email it when enabled.

    Returns:
        The notification, or None if it could not be stored
    """
    try:
        async with db.begin_nested():
            notification = await repository.create(
                db,
                user_id=user_id,
                application_id=application_id,
                type=notification_type,
                title=title,
                message=message,
            )
    except Exception as e:
        logger.error(f"Error creating notification for user {user_id}: {e}")
        return None

    await _email_user(db, user_id, application_id, notification_type, title, message)
    return notification


async def list_notifications(
    db: AsyncSession, user_id: str, unread_only: bool = False
) -> list[Notification]:
    return await repository.list_for_user(db, user_id, unread_only, DEFAULT_LIST_LIMIT)


async def unread_count(db: AsyncSession, user_id: str) -> int:
    return await repository.count_unread(db, user_id)


async def mark_as_read(db: AsyncSession, notification_id: str, user_id: str) -> Notification:
    """
    Mark one of the user's notifications as read.

    Raises:
        NotFoundError: Unknown id or owned by someone else
    """
    notification = await repository.get_for_user(db, notification_id, user_id)
    if notification is None:
        raise NotFoundError("Notification")

    notification.read = True
    await db.flush()
    return notification


async def mark_all_as_read(db: AsyncSession, user_id: str) -> int:
    return await repository.mark_all_read(db, user_id)
