"""
Sessions Router

Lets users see and revoke the devices signed in to their account.

Endpoints:
- GET    /sessions          - Active sessions of the caller
- POST   /sessions/refresh  - Exchange a refresh token for a new access token
- DELETE /sessions/{id}     - Revoke one of the caller's sessions
- DELETE /sessions          - Revoke every session except the current one
- POST   /sessions/logout   - Revoke the current session
- GET    /sessions/current  - The session behind the current token
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.modules.sessions import service
from app.modules.sessions.models import RevokeReason
from app.modules.sessions.schemas import (
    CurrentSessionResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RevokeAllResponse,
    SessionInfo,
    SessionListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_info(session, current_session_id: str | None) -> SessionInfo:
    info = SessionInfo.model_validate(session)
    info.is_current = str(session.id) == current_session_id
    return info


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SessionListResponse:
    """List the caller's active sessions, most recently used first."""
    sessions = await service.get_user_sessions(db, user.id)
    items = [_to_info(s, user.session_id) for s in sessions]
    return SessionListResponse(sessions=items, count=len(items))


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> RefreshResponse:
    """
    Refresh an access token.

    Raises:
        HTTPException 400: No refresh token supplied
        HTTPException 401: Refresh token invalid, revoked or expired
    """
    if not body.refresh_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "REFRESH_TOKEN_REQUIRED", "message": "Refresh token required"},
        )

    result = await service.refresh_session(db, body.refresh_token)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "INVALID_REFRESH_TOKEN",
                "message": "Invalid or expired refresh token",
            },
        )

    session, token = result
    return RefreshResponse(token=token, expires_at=session.expires_at)


@router.get("/current", response_model=CurrentSessionResponse)
async def current_session(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentSessionResponse:
    session = None
    if user.session_id:
        session = await service.repository.get_by_id(db, user.session_id)

    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "SESSION_NOT_FOUND", "message": "No active session"},
        )

    return CurrentSessionResponse(session=_to_info(session, user.session_id))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    if user.session_id:
        await service.revoke_session(db, user.session_id, RevokeReason.LOGOUT)
    return MessageResponse(message="Logged out successfully")


@router.delete("/{session_id}", response_model=MessageResponse)
async def revoke_session(
    session_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Revoke one of the caller's own active sessions."""
    sessions = await service.get_user_sessions(db, user.id)
    if not any(str(s.id) == session_id for s in sessions):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "SESSION_NOT_FOUND", "message": "Session not found"},
        )

    await service.revoke_session(db, session_id, RevokeReason.USER_REVOKED)
    return MessageResponse(message="Session revoked successfully")


@router.delete("", response_model=RevokeAllResponse)
async def revoke_other_sessions(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RevokeAllResponse:
    """Revoke every active session except the one making this request."""
    count = await service.revoke_all_user_sessions(
        db,
        user.id,
        RevokeReason.USER_REVOKED_ALL,
        except_session_id=user.session_id,
    )
    return RevokeAllResponse(
        message="All other sessions revoked successfully",
        revoked_count=count,
    )
