"""
Public application tracking.

Anyone holding an application id can see its status and progress. Only
the application picture is served; other documents stay private.
"""

import re
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.applications import repository
from app.modules.applications.models import Application
from app.modules.applications.service import summarize
from app.modules.shared import NotFoundError, ValidationFailedError
from app.modules.tracking.schemas import TrackingResponse

APPLICATION_ID_PATTERN = re.compile(r"^AP[0-9A-Z]{12}$")
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def normalize_tracking_id(tracking_id: str) -> str:
    """
    Upper-case GRIT application ids; accept UUID-shaped ids as given.

    Raises:
        ValidationFailedError: Neither form
    """
    candidate = tracking_id.strip()
    if APPLICATION_ID_PATTERN.match(candidate.upper()):
        return candidate.upper()
    if UUID_PATTERN.match(candidate):
        return candidate
    raise ValidationFailedError("Invalid tracking ID", "INVALID_TRACKING_ID")


async def get_tracked_application(db: AsyncSession, tracking_id: str) -> Application:
    application = await repository.get_application(db, normalize_tracking_id(tracking_id))
    if application is None:
        raise NotFoundError("Application")
    return application


def picture_url(application: Application) -> str | None:
    if not application.picture_path:
        return None
    return (
        f"{settings.api_v1_prefix}/track/{application.id}/picture/"
        f"{quote(application.picture_path)}"
    )


async def track_application(db: AsyncSession, tracking_id: str) -> TrackingResponse:
    """Status and progress of an application by id."""
    application = await get_tracked_application(db, tracking_id)

    steps = await repository.list_steps(db, application.id)
    payments = await repository.list_payments(db, application.id)
    accounts = await repository.list_accounts(db, application.id)

    summary = summarize(application, steps, payments, accounts)
    return TrackingResponse(**summary.model_dump(), picture_url=picture_url(application))


async def get_tracked_picture_path(db: AsyncSession, tracking_id: str, path: str) -> str:
    """
    The stored picture path, when path names the application's picture.

    Raises:
        NotFoundError: Unknown application or a path other than its picture
    """
    application = await get_tracked_application(db, tracking_id)
    if not application.picture_path or application.picture_path != path:
        raise NotFoundError("File")
    return application.picture_path
