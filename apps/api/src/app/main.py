"""
GritSync API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Stripe
- Background job scheduler
- CORS and security header middleware
- API routing
- Health check endpoints
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.api import api_router
from app.core import redis as redis_module
from app.core.config import DEFAULT_JWT_SECRET, settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.logging_config import setup_logging
from app.core.payments_gateway import init_stripe, is_stripe_configured
from app.core.redis import close_redis, init_redis
from app.core.scheduler import (
    list_registered_jobs,
    pause_job,
    resume_job,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from app.modules.auth.jobs import register_auth_jobs
from app.modules.dashboard.jobs import register_cache_jobs
from app.modules.dashboard.settings_store import get_setting
from app.modules.sessions.jobs import register_session_jobs

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 1.0

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

_started_at = time.monotonic()


async def _init_stripe_from_settings() -> bool:
    """Configure Stripe from the environment, else from a key saved by an admin."""
    if settings.stripe_secret_key:
        return init_stripe()

    async with async_session_maker() as db:
        saved_key = await get_setting(db, "stripeSecretKey")
    return init_stripe(saved_key)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Stripe
    - Background job scheduler
    """
    # Startup
    setup_logging()
    print(f"Starting GritSync API in {settings.python_env} mode...")

    if settings.is_production and settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production")

    # Initialize Redis
    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Database
    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Stripe
    try:
        if await _init_stripe_from_settings():
            print("[OK] Stripe initialized")
        else:
            print("[FAIL] Stripe not configured - payment processing disabled")
    except Exception as e:
        print(f"[FAIL] Stripe initialization failed: {e}")
        if settings.is_production:
            raise

    # Initialize Background Job Scheduler
    try:
        register_session_jobs()
        register_auth_jobs()
        register_cache_jobs()

        await start_scheduler()
        print("[OK] Background scheduler started")
    except Exception as e:
        print(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    print("Shutting down GritSync API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    print("[OK] Background scheduler stopped")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="GritSync API",
    description="NCLEX application processing API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix=settings.api_v1_prefix)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    """Add security headers and log requests slower than a second."""
    start_time = time.perf_counter()
    response = await call_next(request)

    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)

    duration = time.perf_counter() - start_time
    if duration > SLOW_REQUEST_SECONDS:
        logger.warning(
            f"Slow request: {request.method} {request.url.path} "
            f"took {duration * 1000:.0f}ms (status {response.status_code})"
        )
    return response


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to GritSync API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - _started_at, 3),
        "environment": settings.python_env,
    }


async def _database_ok() -> bool:
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Readiness database check failed: {e}")
        return False


async def _redis_ok() -> bool:
    client = redis_module.redis_client
    if client is None:
        return False
    try:
        await client.ping()
        return True
    except Exception as e:
        logger.warning(f"Readiness Redis check failed: {e}")
        return False


@app.get("/ready", tags=["Health"])
async def readiness_check() -> JSONResponse:
    """Readiness check. Only the database is required; Redis and Stripe are reported."""
    database_ok = await _database_ok()
    checks = {
        "database": "ok" if database_ok else "error",
        "redis": "ok" if await _redis_ok() else "unavailable",
        "stripe": "configured" if is_stripe_configured() else "not_configured",
    }
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={"status": "ready" if database_ok else "not_ready", "checks": checks},
    )


# ============================================
# Debug Endpoints (development only)
# ============================================
# Manual job control for testing and debugging. In production, jobs run
# automatically on schedule.

if settings.is_development:

    @app.get("/debug/db", tags=["Debug"])
    async def debug_db():
        """Test database connection."""
        try:
            async with async_session_maker() as session:
                result = await session.execute(text("SELECT 1"))
                return {"database": "connected", "result": result.scalar()}
        except Exception as e:
            return {"database": "error", "message": str(e)}

    @app.get("/debug/redis", tags=["Debug"])
    async def debug_redis():
        """Test Redis connection."""
        client = redis_module.redis_client
        try:
            if client:
                await client.ping()
                return {"redis": "connected"}
            return {"redis": "not initialized"}
        except Exception as e:
            return {"redis": "error", "message": str(e)}

    @app.get("/debug/jobs", tags=["Debug"])
    async def list_jobs():
        """List all registered background jobs and their status."""
        return {"jobs": list_registered_jobs()}

    @app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
    async def trigger_job(job_id: str):
        """
        Run a background job immediately, bypassing its schedule.

        Args:
            job_id: One of sessions_cleanup_expired, login_attempts_purge,
                response_cache_cleanup

        Raises:
            HTTPException 400: If job_id is not registered.
        """
        try:
            return await trigger_job_manually(job_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    @app.post("/debug/jobs/{job_id}/pause", tags=["Debug"])
    async def pause_job_endpoint(job_id: str):
        """Pause a scheduled job. Use /debug/jobs/{job_id}/resume to restart it."""
        return {"job_id": job_id, "paused": pause_job(job_id)}

    @app.post("/debug/jobs/{job_id}/resume", tags=["Debug"])
    async def resume_job_endpoint(job_id: str):
        return {"job_id": job_id, "resumed": resume_job(job_id)}
