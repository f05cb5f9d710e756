"""
Response Cache Background Jobs

- response_cache_cleanup (every 5 minutes): drop expired in-memory entries
"""

from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.cache import cleanup_cache, get_cache_stats
from app.core.scheduler import register_job

JOB_CACHE_CLEANUP = "response_cache_cleanup"


async def cleanup_cache_job() -> dict[str, Any]:
    await cleanup_cache()
    return get_cache_stats()


def register_cache_jobs() -> None:
    register_job(
        job_id=JOB_CACHE_CLEANUP,
        func=cleanup_cache_job,
        trigger=IntervalTrigger(minutes=5),
    )
