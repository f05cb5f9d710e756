"""
Session Background Jobs

- sessions_cleanup_expired (hourly): deactivate sessions past expiry
"""

import logging
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.sessions import service

logger = logging.getLogger(__name__)

JOB_CLEANUP_EXPIRED = "sessions_cleanup_expired"


async def cleanup_expired_sessions_job() -> dict[str, Any]:
    """Deactivate expired sessions in one transaction."""
    async with async_session_maker() as db:
        try:
            count = await service.cleanup_expired_sessions(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    return {"expired_sessions": count}


def register_session_jobs() -> None:
    register_job(
        job_id=JOB_CLEANUP_EXPIRED,
        func=cleanup_expired_sessions_job,
        trigger=IntervalTrigger(hours=1),
    )
