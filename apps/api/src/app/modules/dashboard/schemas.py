"""Dashboard schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DashboardStats(BaseModel):
    applications: int
    pending: int
    approved: int
    quotations: int


class AdminStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_users: int
    total_applications: int
    revenue: Decimal
    total_quotations: int


class AdminSettings(BaseModel):
    """Settings as the admin page shows them; secrets arrive masked."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    site_name: str
    site_email: str
    support_email: str
    stripe_enabled: bool
    maintenance_mode: bool
    stripe_publishable_key: str
    stripe_secret_key: str
    stripe_webhook_secret: str

    email_notifications_enabled: bool = True
    email_timeline_updates: bool = True
    email_status_changes: bool = True
    email_payment_updates: bool = True
    email_general_notifications: bool = True
    max_login_attempts: int = 5


class AdminSettingsUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    site_name: str | None = None
    site_email: str | None = None
    support_email: str | None = None
    stripe_enabled: bool | None = None
    maintenance_mode: bool | None = None
    stripe_publishable_key: str | None = None
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None

    email_notifications_enabled: bool | None = None
    email_timeline_updates: bool | None = None
    email_status_changes: bool | None = None
    email_payment_updates: bool | None = None
    email_general_notifications: bool | None = None
    max_login_attempts: int | None = Field(default=None, ge=1, le=100)


class MessageResponse(BaseModel):
    message: str
