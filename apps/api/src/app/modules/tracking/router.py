"""
Tracking Router (public)

Endpoints:
- GET /track/{id}                 - Application status and progress
- GET /track/{id}/picture/{path}  - The application's picture
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limit import API_LIMIT, get_client_ip, rate_limit
from app.modules.files.router import file_response
from app.modules.shared import ServiceError, raise_http_error
from app.modules.tracking import service
from app.modules.tracking.schemas import TrackingResponse

router = APIRouter()


# One budget per client across all tracking ids
def _lookup_key(request: Request) -> str:
    return f"rate_limit:track:{get_client_ip(request)}"


def _picture_key(request: Request) -> str:
    return f"rate_limit:track_picture:{get_client_ip(request)}"


@router.get("/{tracking_id}", response_model=TrackingResponse)
@rate_limit(*API_LIMIT, key_func=_lookup_key)
async def track_application(
    request: Request,
    tracking_id: str,
    db: AsyncSession = Depends(get_db),
) -> TrackingResponse:
    try:
        return await service.track_application(db, tracking_id)
    except ServiceError as e:
        raise_http_error(e)


@router.get("/{tracking_id}/picture/{path:path}")
@rate_limit(*API_LIMIT, key_func=_picture_key)
async def get_picture(
    request: Request,
    tracking_id: str,
    path: str,
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    try:
        picture_path = await service.get_tracked_picture_path(db, tracking_id, path)
    except ServiceError as e:
        raise_http_error(e)

    return file_response(picture_path)
