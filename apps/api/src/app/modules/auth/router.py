"""
Authentication Router

Endpoints:
- POST /auth/register         - Create a client account
- POST /auth/login            - Email/password login with lockout
- GET  /auth/me               - Current user's profile
- POST /auth/change-password  - Change password, revoke other sessions
- POST /auth/forgot-password  - Request a reset link
- POST /auth/reset-password   - Set a new password from a reset token
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.core.rate_limit import AUTH_LIMIT, STRICT_LIMIT, auth_rate_limit_key, enforce_rate_limit
from app.modules.auth import service
from app.modules.auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from app.modules.auth.service import AuthResult
from app.modules.shared import ServiceError, raise_http_error

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.from_user(result.user),
        token=result.issued.token,
        refresh_token=result.issued.refresh_token,
        session_id=str(result.issued.session.id),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Register a client account.

    Raises:
        HTTPException 400: Missing fields or user already exists
    """
    await enforce_rate_limit(auth_rate_limit_key(request, body.email), *AUTH_LIMIT)

    try:
        result = await service.register(
            db,
            request,
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
        )
    except ServiceError as e:
        raise_http_error(e)

    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Authenticate and open a session.

    Raises:
        HTTPException 400: Email or password missing
        HTTPException 401: Invalid credentials (with remaining attempts)
        HTTPException 423: Account locked
    """
    await enforce_rate_limit(auth_rate_limit_key(request, body.email), *AUTH_LIMIT)

    try:
        result = await service.login(db, request, email=body.email, password=body.password)
    except ServiceError as e:
        # Recorded attempts and new locks must survive the failed request
        await db.commit()
        raise_http_error(e)

    return _auth_response(result)


@router.get("/me", response_model=UserResponse)
async def me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        profile = await service.get_profile(db, user.id)
    except ServiceError as e:
        raise_http_error(e)

    return UserResponse.from_user(profile)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.change_password(
            db, user.id, user.session_id, body.current_password, body.new_password
        )
    except ServiceError as e:
        raise_http_error(e)

    return MessageResponse(
        message="Password changed successfully. "
        "All other sessions have been revoked for security."
    )


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> ForgotPasswordResponse:
    """Always returns the same message whether or not the account exists."""
    await enforce_rate_limit(auth_rate_limit_key(request, body.email), *STRICT_LIMIT)

    try:
        token = await service.forgot_password(db, body.email)
    except ServiceError as e:
        raise_http_error(e)

    return ForgotPasswordResponse(message=service.FORGOT_PASSWORD_MESSAGE, reset_token=token)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.reset_password(db, body.token, body.new_password)
    except ServiceError as e:
        raise_http_error(e)

    return MessageResponse(
        message="Password reset successfully. All sessions have been revoked for security."
    )
