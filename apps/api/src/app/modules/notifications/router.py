"""
Notifications Router

Endpoints:
- GET /notifications                - Latest 50 notifications (optionally unread only)
- GET /notifications/unread-count   - Number of unread notifications
- PUT /notifications/{id}/read      - Mark one as read
- PUT /notifications/read-all       - Mark all as read
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.modules.notifications import service
from app.modules.notifications.schemas import (
    MessageResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from app.modules.shared import ServiceError, raise_http_error

router = APIRouter()


def _to_response(notification) -> NotificationResponse:
    return NotificationResponse(
        id=str(notification.id),
        user_id=str(notification.user_id),
        application_id=notification.application_id,
        type=notification.type.value,
        title=notification.title,
        message=notification.message,
        read=notification.read,
        created_at=notification.created_at,
    )


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[NotificationResponse]:
    notifications = await service.list_notifications(db, user.id, unread_only)
    return [_to_response(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.unread_count(db, user.id))


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await service.mark_all_as_read(db, user.id)
    return MessageResponse(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.mark_as_read(db, notification_id, user.id)
    except ServiceError as e:
        raise_http_error(e)

    return MessageResponse(message="Notification marked as read")
