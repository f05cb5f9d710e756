"""
Clients Router (admin)

Endpoints:
- GET /clients                 - Registered clients, newest first
- GET /clients/grit/{grit_id}  - Look up a client by GRIT ID
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.modules.shared import ServiceError, raise_http_error
from app.modules.users import service
from app.modules.users.schemas import UserSummary

router = APIRouter()


@router.get("", response_model=list[UserSummary])
async def list_clients(
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> list[UserSummary]:
    clients = await service.list_clients(db)
    return [UserSummary.model_validate(c) for c in clients]


@router.get("/grit/{grit_id}", response_model=UserSummary)
async def get_client_by_grit_id(
    grit_id: str,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> UserSummary:
    try:
        client = await service.get_client_by_grit_id(db, grit_id)
    except ServiceError as e:
        raise_http_error(e)

    return UserSummary.model_validate(client)
