"""
Login Attempts and Account Lockout

Every login attempt is recorded. Failed attempts for an email within a
15 minute window count towards the lockout threshold (the
`maxLoginAttempts` setting, default 5). Reaching the threshold locks the
account for 30 minutes.
"""

import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth.models import LoginAttempt
from app.modules.dashboard.settings_store import get_int_setting
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOGIN_ATTEMPTS = 5
FAILED_ATTEMPT_WINDOW_MINUTES = 15
LOCK_DURATION_MINUTES = 30
ATTEMPT_RETENTION_DAYS = 30

FAILURE_USER_NOT_FOUND = "user_not_found"
FAILURE_INVALID_PASSWORD = "invalid_password"
FAILURE_ACCOUNT_LOCKED = "account_locked"


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def record_login_attempt(
    db: AsyncSession,
    email: str,
    user_id: str | None,
    success: bool,
    ip_address: str | None,
    user_agent: str | None,
    failure_reason: str | None = None,
) -> None:
    """Record an attempt. Failures to record are logged and ignored."""
    try:
        async with db.begin_nested():
            db.add(
                LoginAttempt(
                    user_id=str(user_id) if user_id else None,
                    email=normalize_email(email),
                    ip_address=ip_address,
                    user_agent=user_agent or "unknown",
                    success=success,
                    failure_reason=failure_reason,
                )
            )
            await db.flush()
    except Exception as e:
        logger.error(f"Error recording login attempt for {email}: {e}")


async def get_failed_attempts_count(
    db: AsyncSession,
    email: str,
    minutes: int = FAILED_ATTEMPT_WINDOW_MINUTES,
) -> int:
    since = datetime.now(UTC) - timedelta(minutes=minutes)
    result = await db.execute(
        select(func.count())
        .select_from(LoginAttempt)
        .where(
            LoginAttempt.email == normalize_email(email),
            LoginAttempt.success.is_(False),
            LoginAttempt.created_at >= since,
        )
    )
    return result.scalar_one()


async def get_max_login_attempts(db: AsyncSession) -> int:
    return await get_int_setting(db, "maxLoginAttempts", DEFAULT_MAX_LOGIN_ATTEMPTS)


async def get_remaining_attempts(db: AsyncSession, email: str) -> dict[str, int]:
    """Remaining attempts before lockout: {"remaining", "failed", "max"}."""
    max_attempts = await get_max_login_attempts(db)
    failed = await get_failed_attempts_count(db, email)
    return {
        "remaining": max(0, max_attempts - failed),
        "failed": failed,
        "max": max_attempts,
    }


async def lock_account(db: AsyncSession, user, minutes: int = LOCK_DURATION_MINUTES) -> datetime:
    """Lock the user until now + minutes. Returns the lock expiry."""
    locked_until = datetime.now(UTC) + timedelta(minutes=minutes)
    await UserRepository.set_lock(
        db, user, locked_until, failed_attempts=(user.failed_login_attempts or 0) + 1
    )
    logger.warning(f"Account locked until {locked_until.isoformat()}: {user.email}")
    return locked_until


async def unlock_account(db: AsyncSession, user) -> None:
    await UserRepository.set_lock(db, user, None, failed_attempts=0)
    logger.info(f"Account unlocked: {user.email}")


async def get_account_lock_status(db: AsyncSession, user) -> dict[str, Any]:
    """
    Lock state of a user.

    An expired lock is cleared as a side effect.

    Returns:
        {"locked": bool, "locked_until": iso str | None, "minutes_remaining": int | None}
    """
    if user is None or user.locked_until is None:
        return {"locked": False, "locked_until": None, "minutes_remaining": None}

    locked_until = user.locked_until
    if locked_until.tzinfo is None:
        locked_until = locked_until.replace(tzinfo=UTC)

    now = datetime.now(UTC)
    if locked_until > now:
        minutes_remaining = math.ceil((locked_until - now).total_seconds() / 60)
        return {
            "locked": True,
            "locked_until": locked_until.isoformat(),
            "minutes_remaining": minutes_remaining,
        }

    await unlock_account(db, user)
    return {"locked": False, "locked_until": None, "minutes_remaining": None}


async def list_login_attempts(
    db: AsyncSession,
    user_id: str,
    email: str,
    limit: int = 50,
) -> list[LoginAttempt]:
    """Attempts recorded for a user id or its email, newest first."""
    result = await db.execute(
        select(LoginAttempt)
        .where(or_(LoginAttempt.user_id == str(user_id), LoginAttempt.email == email))
        .order_by(LoginAttempt.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def purge_old_attempts(db: AsyncSession, days: int = ATTEMPT_RETENTION_DAYS) -> int:
    cutoff = datetime.now(UTC) - timedelta(days=days)
    result = await db.execute(delete(LoginAttempt).where(LoginAttempt.created_at < cutoff))
    return result.rowcount or 0
