"""
Service Catalogue Router

Endpoints:
- GET    /services                        - All services (public, cached)
- GET    /services/{service_name}/{state} - First service for a name and state
- POST   /services                        - Create or update (admin)
- PUT    /services/{id}                   - Update (admin)
- DELETE /services/{id}                   - Delete (admin)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.modules.service_catalog import service
from app.modules.service_catalog.schemas import (
    MessageResponse,
    ServiceResponse,
    ServiceSavedResponse,
    ServiceUpdate,
    ServiceUpsert,
)
from app.modules.shared import ServiceError, raise_http_error

router = APIRouter()


@router.get("", response_model=list[ServiceResponse])
async def list_services(db: AsyncSession = Depends(get_db)) -> list[dict]:
    return await service.list_services(db)


@router.get("/{service_name}/{state}", response_model=ServiceResponse | None)
async def get_service(
    service_name: str,
    state: str,
    db: AsyncSession = Depends(get_db),
) -> ServiceResponse | None:
    found = await service.find_service(db, service_name, state)
    return ServiceResponse.model_validate(found) if found else None


@router.post("", response_model=ServiceSavedResponse)
async def save_service(
    body: ServiceUpsert,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> ServiceSavedResponse:
    try:
        saved = await service.save_service(db, body)
    except ServiceError as e:
        raise_http_error(e)

    return ServiceSavedResponse(id=saved.id, message=service.SERVICE_SAVED_MESSAGE)


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    body: ServiceUpdate,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> ServiceResponse:
    try:
        updated = await service.update_service(db, service_id, body)
    except ServiceError as e:
        raise_http_error(e)

    return ServiceResponse.model_validate(updated)


@router.delete("/{service_id}", response_model=MessageResponse)
async def delete_service(
    service_id: str,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.delete_service(db, service_id)
    except ServiceError as e:
        raise_http_error(e)

    return MessageResponse(message="Service deleted successfully")
