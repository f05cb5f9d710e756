"""Notification schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    application_id: str | None = None
    type: str
    title: str
    message: str
    read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    message: str
