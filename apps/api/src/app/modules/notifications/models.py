"""
Notification Models
"""

from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel, enum_values


class NotificationType(str, Enum):
    TIMELINE_UPDATE = "timeline_update"
    STATUS_CHANGE = "status_change"
    PAYMENT = "payment"
    GENERAL = "general"


# Per-type email switch in the settings table
EMAIL_SETTING_BY_TYPE = {
    NotificationType.TIMELINE_UPDATE: "emailTimelineUpdates",
    NotificationType.STATUS_CHANGE: "emailStatusChanges",
    NotificationType.PAYMENT: "emailPaymentUpdates",
    NotificationType.GENERAL: "emailGeneralNotifications",
}
EMAIL_MASTER_SETTING = "emailNotificationsEnabled"


class Notification(BaseModel):
    """In-app notification for a user."""

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    application_id: Mapped[str | None] = mapped_column(
        String(14),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=True,
    )
    type: Mapped[NotificationType] = mapped_column(
        SAEnum(NotificationType, name="notification_type", values_callable=enum_values),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (Index("ix_notifications_user_read", "user_id", "read"),)
