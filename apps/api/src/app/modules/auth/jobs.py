"""
Auth Background Jobs

- login_attempts_purge (daily): delete login attempts older than 30 days
"""

import logging
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.auth import login_attempts

logger = logging.getLogger(__name__)

JOB_PURGE_LOGIN_ATTEMPTS = "login_attempts_purge"


async def purge_login_attempts_job() -> dict[str, Any]:
    async with async_session_maker() as db:
        try:
            removed = await login_attempts.purge_old_attempts(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    if removed:
        logger.info(f"Purged {removed} login attempts older than "
                    f"{login_attempts.ATTEMPT_RETENTION_DAYS} days")
    return {"purged_attempts": removed}


def register_auth_jobs() -> None:
    register_job(
        job_id=JOB_PURGE_LOGIN_ATTEMPTS,
        func=purge_login_attempts_job,
        trigger=IntervalTrigger(days=1),
    )
