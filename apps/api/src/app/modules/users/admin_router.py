"""
Admin User Management Router

Endpoints:
- PUT  /users/{email}/role            - Change a user's role
- POST /users/{user_id}/unlock        - Clear a login lockout
- GET  /users/{user_id}/lock-status   - Lockout state and failed attempts
- GET  /users/{user_id}/login-attempts - Recent login attempts
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.modules.shared import ServiceError, raise_http_error
from app.modules.users import service
from app.modules.users.schemas import (
    LockStatusResponse,
    LoginAttemptResponse,
    RoleUpdate,
    RoleUpdateResponse,
    UnlockResponse,
    UserRef,
    UserSummary,
)

router = APIRouter()


@router.put("/{email}/role", response_model=RoleUpdateResponse)
async def update_role(
    email: str,
    body: RoleUpdate,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> RoleUpdateResponse:
    try:
        user = await service.update_role(db, email, body.role)
    except ServiceError as e:
        raise_http_error(e)

    return RoleUpdateResponse(
        message=f"User role updated to {user.role.value}",
        user=UserSummary.model_validate(user),
    )


@router.post("/{user_id}/unlock", response_model=UnlockResponse)
async def unlock_user(
    user_id: str,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> UnlockResponse:
    try:
        user = await service.unlock_user(db, user_id)
    except ServiceError as e:
        raise_http_error(e)

    return UnlockResponse(
        message="Account unlocked successfully",
        user=UserRef(id=str(user.id), email=user.email),
    )


@router.get("/{user_id}/lock-status", response_model=LockStatusResponse)
async def get_lock_status(
    user_id: str,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> LockStatusResponse:
    try:
        status = await service.get_lock_status(db, user_id)
    except ServiceError as e:
        raise_http_error(e)

    return LockStatusResponse(**status)


@router.get("/{user_id}/login-attempts", response_model=list[LoginAttemptResponse])
async def list_login_attempts(
    user_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> list[LoginAttemptResponse]:
    try:
        attempts = await service.list_login_attempts(db, user_id, limit)
    except ServiceError as e:
        raise_http_error(e)

    return [LoginAttemptResponse.model_validate(a) for a in attempts]
