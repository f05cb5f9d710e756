"""
Sessions Repository

Database operations for device sessions.
"""

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import UserSession


async def create(db: AsyncSession, **fields) -> UserSession:
    session = UserSession(**fields)
    db.add(session)
    await db.flush()
    await db.refresh(session)
    return session


async def get_active_by_token_hash(db: AsyncSession, token_hash: str) -> UserSession | None:
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == token_hash,
            UserSession.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def get_active_by_refresh_hash(db: AsyncSession, refresh_hash: str) -> UserSession | None:
    result = await db.execute(
        select(UserSession).where(
            UserSession.refresh_token_hash == refresh_hash,
            UserSession.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def get_active_for_user(db: AsyncSession, user_id: str) -> list[UserSession]:
    """Active, unexpired sessions ordered by most recent activity."""
    result = await db.execute(
        select(UserSession)
        .where(
            UserSession.user_id == str(user_id),
            UserSession.is_active.is_(True),
            UserSession.expires_at > datetime.now(UTC),
        )
        .order_by(UserSession.last_activity.desc())
    )
    return list(result.scalars().all())


async def get_by_id(db: AsyncSession, session_id: str) -> UserSession | None:
    return await db.get(UserSession, session_id)


async def deactivate(db: AsyncSession, session: UserSession, reason: str) -> None:
    session.is_active = False
    session.revoked_at = datetime.now(UTC)
    session.revoked_reason = reason
    await db.flush()


async def deactivate_for_user(
    db: AsyncSession,
    user_id: str,
    reason: str,
    except_session_id: str | None = None,
) -> int:
    """Deactivate every active session of a user, optionally sparing one."""
    stmt = (
        update(UserSession)
        .where(UserSession.user_id == str(user_id), UserSession.is_active.is_(True))
        .values(is_active=False, revoked_at=datetime.now(UTC), revoked_reason=reason)
    )
    if except_session_id:
        stmt = stmt.where(UserSession.id != str(except_session_id))

    result = await db.execute(stmt)
    return result.rowcount or 0


async def deactivate_expired(db: AsyncSession) -> int:
    now = datetime.now(UTC)
    result = await db.execute(
        update(UserSession)
        .where(UserSession.is_active.is_(True), UserSession.expires_at < now)
        .values(is_active=False, revoked_at=now, revoked_reason="expired")
    )
    return result.rowcount or 0
