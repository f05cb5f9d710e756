"""
Dashboard Service Layer

Stats are cached for a minute, admin settings for five minutes. Saving
settings commits, then clears the settings cache.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.cache import (
    SERVICES_TTL_SECONDS,
    STATS_TTL_SECONDS,
    clear_cache,
    get_cached,
    set_cached,
)
from app.core.payments_gateway import init_stripe
from app.modules.applications import repository as applications_repository
from app.modules.applications.models import ApplicationStatus
from app.modules.auth.login_attempts import DEFAULT_MAX_LOGIN_ATTEMPTS
from app.modules.dashboard.schemas import AdminSettings, AdminSettingsUpdate, AdminStats, DashboardStats
from app.modules.dashboard.settings_store import get_settings_map, is_enabled, upsert_settings
from app.modules.notifications.models import EMAIL_MASTER_SETTING
from app.modules.quotations import repository as quotations_repository
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

SETTINGS_CACHE_PREFIX = "settings"
ADMIN_SETTINGS_KEY = f"{SETTINGS_CACHE_PREFIX}:admin"
ADMIN_STATS_KEY = "stats:admin"

MASK_PREFIX = "***"

DEFAULT_SITE_NAME = "GritSync"
DEFAULT_SITE_EMAIL = "admin@gritsync.com"
DEFAULT_SUPPORT_EMAIL = "support@gritsync.com"

SECRET_KEYS = ("stripeSecretKey", "stripeWebhookSecret")


def mask_secret(value: str | None) -> str:
    """'sk_live_abcd1234' -> '***1234'; empty stays empty."""
    if not value:
        return ""
    return f"{MASK_PREFIX}{value[-4:]}"


def _int_or_default(value: str | None, default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        return default


async def get_stats(db: AsyncSession, user: CurrentUser) -> dict:
    """Application and quotation counts for the caller, or for everyone if admin."""
    key = f"stats:user:{user.id}"
    cached = await get_cached(key)
    if cached is not None:
        return cached

    user_id = None if user.is_admin else user.id
    stats = DashboardStats(
        applications=await applications_repository.count_applications(db, user_id),
        pending=await applications_repository.count_applications(
            db, user_id, ApplicationStatus.PENDING
        ),
        approved=await applications_repository.count_applications(
            db, user_id, ApplicationStatus.COMPLETED
        ),
        quotations=await quotations_repository.count_quotations(db, user_id),
    ).model_dump()

    await set_cached(key, stats, STATS_TTL_SECONDS)
    return stats


async def get_admin_stats(db: AsyncSession) -> dict:
    cached = await get_cached(ADMIN_STATS_KEY)
    if cached is not None:
        return cached

    stats = AdminStats(
        total_users=await UserRepository.count_clients(db),
        total_applications=await applications_repository.count_applications(db),
        revenue=await applications_repository.sum_paid_amount(db),
        total_quotations=await quotations_repository.count_quotations(db),
    ).model_dump(mode="json")

    await set_cached(ADMIN_STATS_KEY, stats, STATS_TTL_SECONDS)
    return stats


async def get_admin_settings(db: AsyncSession) -> dict:
    cached = await get_cached(ADMIN_SETTINGS_KEY)
    if cached is not None:
        return cached

    stored = await get_settings_map(db)
    result = AdminSettings(
        site_name=stored.get("siteName") or DEFAULT_SITE_NAME,
        site_email=stored.get("siteEmail") or DEFAULT_SITE_EMAIL,
        support_email=stored.get("supportEmail") or DEFAULT_SUPPORT_EMAIL,
        stripe_enabled=is_enabled(stored.get("stripeEnabled"), default=False),
        maintenance_mode=is_enabled(stored.get("maintenanceMode"), default=False),
        stripe_publishable_key=stored.get("stripePublishableKey") or "",
        stripe_secret_key=mask_secret(stored.get("stripeSecretKey")),
        stripe_webhook_secret=mask_secret(stored.get("stripeWebhookSecret")),
        email_notifications_enabled=is_enabled(stored.get(EMAIL_MASTER_SETTING)),
        email_timeline_updates=is_enabled(stored.get("emailTimelineUpdates")),
        email_status_changes=is_enabled(stored.get("emailStatusChanges")),
        email_payment_updates=is_enabled(stored.get("emailPaymentUpdates")),
        email_general_notifications=is_enabled(stored.get("emailGeneralNotifications")),
        max_login_attempts=_int_or_default(
            stored.get("maxLoginAttempts"), DEFAULT_MAX_LOGIN_ATTEMPTS
        ),
    ).model_dump()

    await set_cached(ADMIN_SETTINGS_KEY, result, SERVICES_TTL_SECONDS)
    return result


async def save_admin_settings(db: AsyncSession, body: AdminSettingsUpdate) -> None:
    """
    Store the supplied settings.

    Masked secrets are the values the page was given, so they are skipped.
    A new Stripe secret key re-initializes Stripe.
    """
    values: dict[str, str | None] = {}
    for field, value in body.model_dump(exclude_unset=True, by_alias=True).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif not isinstance(value, str):
            value = str(value)
        if field in SECRET_KEYS and value.startswith(MASK_PREFIX):
            continue
        values[field] = value

    if values:
        await upsert_settings(db, values)

    if values.get("stripeSecretKey"):
        init_stripe(values["stripeSecretKey"])
        logger.info("Stripe re-initialized with the saved secret key")

    await db.commit()
    await clear_cache(SETTINGS_CACHE_PREFIX)
