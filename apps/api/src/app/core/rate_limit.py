"""
Rate Limiting Module

Sliding window rate limiting backed by Redis sorted sets.
Falls back to in-memory storage if Redis is unavailable.

Limits are only enforced in production, or when ENABLE_RATE_LIMIT is set.
"""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

from fastapi import HTTPException, Request, status

from app.core import redis as redis_module
from app.core.config import settings

logger = logging.getLogger(__name__)

# Presets: (limit, window_seconds)
AUTH_LIMIT = (5, 15 * 60)
API_LIMIT = (100, 15 * 60)
STRICT_LIMIT = (10, 60 * 60)

# In-memory fallback storage: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": "Too many requests, please try again later.",
                "limit": limit,
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using a Redis sorted set.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using process memory.

    Only accurate for a single server instance.
    """
    now = time.time()
    window_start = now - window_seconds

    entries = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(entries) >= limit:
        _memory_store[key] = entries
        return False

    entries.append(now)
    _memory_store[key] = entries
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit (e.g., "auth:1.2.3.4:user@example.com")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = redis_module.redis_client

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """
    Raise RateLimitExceeded when the key is over its limit.

    No-op when rate limiting is disabled for the environment.
    """
    if not settings.rate_limit_enabled:
        return

    allowed = await check_rate_limit(key, limit, window_seconds)
    if not allowed:
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


def get_client_ip(request: Request) -> str:
    """
    Resolve the client IP, honouring proxy headers.

    Order: first hop of X-Forwarded-For, X-Real-IP, socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def auth_rate_limit_key(request: Request, email: str | None) -> str:
    """Key auth attempts by client IP and the normalized email."""
    normalized = (email or "").strip().lower()
    return f"rate_limit:auth:{get_client_ip(request)}:{normalized}"


def rate_limit(
    limit: int = API_LIMIT[0],
    window_seconds: int = API_LIMIT[1],
    key_func: Callable[[Request], str] | None = None,
):
    """
    Rate limiting decorator for FastAPI endpoints.

    Usage:
        @router.get("/{tracking_id}")
        @rate_limit(*API_LIMIT, key_func=lambda r: f"track:{get_client_ip(r)}")
        async def track_application(request: Request, ...):
            ...

    Args:
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds
        key_func: Optional function to generate the key from the request.
                  Defaults to client IP + endpoint path.

    Raises:
        RateLimitExceeded: When rate limit is exceeded (HTTP 429)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request: Request | None = kwargs.get("request")
            if request is None:
                for arg in args:
                    if isinstance(arg, Request):
                        request = arg
                        break

            if request is None:
                logger.warning(
                    f"Rate limit decorator on {func.__name__} couldn't find Request object"
                )
                return await func(*args, **kwargs)

            if key_func:
                key = key_func(request)
            else:
                key = f"rate_limit:{get_client_ip(request)}:{request.url.path}"

            await enforce_rate_limit(key, limit, window_seconds)
            return await func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = [
    "API_LIMIT",
    "AUTH_LIMIT",
    "STRICT_LIMIT",
    "RateLimitExceeded",
    "auth_rate_limit_key",
    "check_rate_limit",
    "enforce_rate_limit",
    "get_client_ip",
    "rate_limit",
]
