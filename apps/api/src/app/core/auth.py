"""
Authentication and Authorization Module

FastAPI dependencies that validate bearer tokens against the sessions table
and enforce the admin role.

SECURITY NOTE:
- Development test tokens are ONLY accepted when PYTHON_ENV=development
- A token is only valid while its session is active and unexpired
- Fingerprint mismatches are logged as suspicious but never block the request
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.security import TOKEN_TYPE_ACCESS, decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)
optional_security = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"


@dataclass
class CurrentUser:
    """
    The authenticated caller.

    Attributes:
        id: User ID (UUID string)
        email: User's email address
        role: "client" or "admin"
        name: Display name (optional)
        session_id: Active session backing the token, None for dev tokens
    """

    id: str
    email: str
    role: str
    name: str | None = None
    session_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """Development tokens require PYTHON_ENV=development and nothing saying otherwise."""
    env_var = os.getenv("PYTHON_ENV", "").lower()
    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_ADMIN = CurrentUser(
    id="00000000-0000-0000-0000-000000000001",
    email="admin@gritsync.dev",
    role=ADMIN_ROLE,
    name="Development Admin",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _dev_user(token: str) -> CurrentUser | None:
    """Resolve a development test token, if the token is one."""
    if not _DEVELOPMENT_MODE:
        return None

    if token in ("dev-token", "test-token", "bearer"):
        logger.debug("Development mode: Using test token")
        return _DEV_ADMIN

    try:
        user_id = UUID(token)
    except ValueError:
        return None

    return CurrentUser(
        id=str(user_id),
        email=f"client-{str(user_id)[:8]}@gritsync.dev",
        role="client",
        name="Test Client",
    )


async def _authenticate(token: str, request: Request, db: AsyncSession) -> CurrentUser:
    """
    Validate the token signature, type and backing session.

    Raises:
        HTTPException 401: Invalid token, wrong token type or no active session
    """
    # Imported here: the sessions module depends on core
    from app.modules.sessions import service as session_service

    dev_user = _dev_user(token)
    if dev_user is not None:
        return dev_user

    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS:
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims.")

    session = await session_service.get_session_by_token(db, token)
    if session is None:
        raise _unauthorized("INVALID_SESSION", "Session expired or revoked. Please log in again.")

    fingerprint = session_service.fingerprint_from_request(request)
    security_check = session_service.validate_session_security(session, fingerprint)
    if security_check["suspicious"]:
        logger.warning(
            f"Suspicious session activity for user {user_id}: {security_check['reason']}"
        )

    await session_service.update_session_activity(db, session)

    return CurrentUser(
        id=str(user_id),
        email=payload.get("email", ""),
        role=payload.get("role", "client"),
        name=payload.get("name"),
        session_id=str(session.id),
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated user.

    Usage:
        @router.get("/applications")
        async def list_applications(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    user = await _authenticate(credentials.credentials, request, db)
    request.state.user_id = user.id
    return user


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency requiring the admin role.

    Raises:
        HTTPException 403: If user is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"Access denied: User {user.id} ({user.email}) has role '{user.role}', "
            "but 'admin' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access required.",
            },
        )
    return user


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser | None:
    """Return the user for a valid token, None when absent or invalid."""
    if not credentials:
        return None

    try:
        return await _authenticate(credentials.credentials, request, db)
    except HTTPException:
        return None


__all__ = [
    "ADMIN_ROLE",
    "CurrentUser",
    "get_current_admin_user",
    "get_current_user",
    "get_optional_user",
]
