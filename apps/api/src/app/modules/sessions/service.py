"""
Session Service

Device session lifecycle: creation at login, lookup on every authenticated
request, refresh, revocation and expiry cleanup.

Security considerations:
- Only SHA-256 hashes of access and refresh tokens are persisted
- Expired sessions are deactivated on first sight (reason "expired")
- Device fingerprint mismatches are flagged as suspicious and logged, but
  the request is still allowed (VPNs and network changes are common)
"""

import base64
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.rate_limit import get_client_ip
from app.core.security import (
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_token,
)
from app.modules.sessions import repository
from app.modules.sessions.models import RevokeReason, UserSession
from app.modules.users.models import User
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

FINGERPRINT_LENGTH = 64


@dataclass
class IssuedSession:
    """A freshly created session and the raw tokens handed to the client."""

    session: UserSession
    token: str
    refresh_token: str | None


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def generate_device_fingerprint(ip: str, user_agent: str, accept_language: str) -> str:
    """
    Cheap device fingerprint.

    base64 of "<ip>-<first 50 chars of UA>-<first 20 chars of Accept-Language>",
    truncated to 64 characters.
    """
    raw = f"{ip}-{user_agent[:50]}-{accept_language[:20]}"
    return base64.b64encode(raw.encode()).decode()[:FINGERPRINT_LENGTH]


def get_device_name(user_agent: str | None) -> str:
    """Coarse device label from a user agent string."""
    if not user_agent:
        return "Unknown Device"

    if "Mobile" in user_agent:
        if "iPhone" in user_agent:
            return "iPhone"
        if "Android" in user_agent:
            return "Android Device"
        return "Mobile Device"

    if "Windows" in user_agent:
        return "Windows PC"
    if "Mac" in user_agent:
        return "Mac"
    if "Linux" in user_agent:
        return "Linux PC"

    return "Desktop Browser"


def fingerprint_from_request(request: Request) -> str:
    return generate_device_fingerprint(
        get_client_ip(request),
        request.headers.get("user-agent", ""),
        request.headers.get("accept-language", ""),
    )


def build_token_claims(user: User) -> dict[str, Any]:
    return {
        "email": user.email,
        "role": user.role.value,
        "name": user.full_name,
    }


def session_expiry() -> datetime:
    return datetime.now(UTC) + timedelta(minutes=settings.session_duration_minutes)


async def create_session(
    db: AsyncSession,
    user_id: str,
    token: str,
    request: Request,
    refresh_token: str | None = None,
) -> UserSession:
    """
    Persist a session for an already minted access token.

    Args:
        db: Database session
        user_id: Owner of the session
        token: Raw access token (stored hashed)
        request: Incoming request, used for IP, user agent and fingerprint
        refresh_token: Optional raw refresh token (stored hashed)
    """
    user_agent = request.headers.get("user-agent", "")
    device_name = get_device_name(user_agent)

    session = await repository.create(
        db,
        user_id=str(user_id),
        token_hash=hash_token(token),
        refresh_token_hash=hash_token(refresh_token) if refresh_token else None,
        ip_address=get_client_ip(request),
        user_agent=user_agent,
        device_fingerprint=fingerprint_from_request(request),
        device_name=device_name,
        is_active=True,
        last_activity=datetime.now(UTC),
        expires_at=session_expiry(),
    )

    logger.info(f"Session created for user {user_id}: {session.id} ({device_name})")
    return session


async def issue_session(
    db: AsyncSession,
    user: User,
    request: Request,
    with_refresh_token: bool = True,
) -> IssuedSession:
    """Mint access (and refresh) tokens for a user and open a session."""
    token = create_access_token(subject=str(user.id), additional_claims=build_token_claims(user))
    refresh_token = create_refresh_token(subject=str(user.id)) if with_refresh_token else None

    session = await create_session(db, user.id, token, request, refresh_token=refresh_token)
    return IssuedSession(session=session, token=token, refresh_token=refresh_token)


async def _expire(db: AsyncSession, session: UserSession) -> None:
    # Committed now: the caller answers 401 and get_db rolls back on errors
    await repository.deactivate(db, session, RevokeReason.EXPIRED.value)
    await db.commit()
    logger.info(f"Session {session.id} expired")


async def get_session_by_token(db: AsyncSession, token: str) -> UserSession | None:
    """
    Find the active session for a raw access token.

    An expired session is deactivated (reason "expired") and None returned.
    """
    session = await repository.get_active_by_token_hash(db, hash_token(token))
    if session is None:
        return None

    if _as_aware(session.expires_at) < datetime.now(UTC):
        await _expire(db, session)
        return None

    return session


async def update_session_activity(db: AsyncSession, session: UserSession) -> None:
    """Touch last_activity. Failures are logged and ignored."""
    try:
        session.last_activity = datetime.now(UTC)
        await db.flush()
    except Exception as e:
        logger.error(f"Error updating session activity for {session.id}: {e}")


async def get_user_sessions(db: AsyncSession, user_id: str) -> list[UserSession]:
    return await repository.get_active_for_user(db, user_id)


async def revoke_session(
    db: AsyncSession,
    session_id: str,
    reason: RevokeReason = RevokeReason.LOGOUT,
) -> bool:
    """Deactivate one session. Returns False if it does not exist."""
    session = await repository.get_by_id(db, session_id)
    if session is None:
        return False

    await repository.deactivate(db, session, reason.value)
    logger.info(f"Session revoked: {session_id} ({reason.value})")
    return True


async def revoke_all_user_sessions(
    db: AsyncSession,
    user_id: str,
    reason: RevokeReason = RevokeReason.SECURITY_ACTION,
    except_session_id: str | None = None,
) -> int:
    """
    Deactivate all active sessions of a user.

    Returns:
        Number of sessions revoked
    """
    count = await repository.deactivate_for_user(
        db, user_id, reason.value, except_session_id=except_session_id
    )
    logger.info(f"Revoked {count} sessions for user {user_id} ({reason.value})")
    return count


async def refresh_session(db: AsyncSession, refresh_token: str) -> tuple[UserSession, str] | None:
    """
    Exchange a refresh token for a new access token.

    The session keeps its id; its token hash, expiry and activity are
    replaced.

    Returns:
        (session, new access token), or None when the refresh token is
        invalid, revoked, expired or its user no longer exists
    """
    payload = decode_token(refresh_token)
    if payload is None or payload.get("type") != TOKEN_TYPE_REFRESH:
        return None

    session = await repository.get_active_by_refresh_hash(db, hash_token(refresh_token))
    if session is None:
        return None

    if _as_aware(session.expires_at) < datetime.now(UTC):
        await _expire(db, session)
        return None

    user = await UserRepository.get_by_id(db, session.user_id)
    if user is None:
        return None

    new_token = create_access_token(
        subject=str(user.id), additional_claims=build_token_claims(user)
    )

    now = datetime.now(UTC)
    session.token_hash = hash_token(new_token)
    session.expires_at = session_expiry()
    session.last_activity = now
    await db.flush()

    logger.info(f"Session refreshed: {session.id}")
    return session, new_token


async def cleanup_expired_sessions(db: AsyncSession) -> int:
    """Deactivate sessions past their expiry. Returns the count."""
    count = await repository.deactivate_expired(db)
    if count:
        logger.info(f"Deactivated {count} expired sessions")
    return count


def validate_session_security(session: UserSession, fingerprint: str) -> dict[str, Any]:
    """
    Compare the stored device fingerprint with the current one.

    Always valid; a mismatch is reported as suspicious.
    """
    if session.device_fingerprint and session.device_fingerprint != fingerprint:
        logger.warning(f"Session device fingerprint mismatch for session {session.id}")
        return {
            "valid": True,
            "suspicious": True,
            "reason": "device_fingerprint_mismatch",
        }

    return {"valid": True, "suspicious": False, "reason": None}
