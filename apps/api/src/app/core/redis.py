"""
Redis Configuration

Async Redis client for rate limiting and response caching.
"""

from redis.asyncio import Redis, from_url

from app.core.config import settings

redis_client: Redis | None = None

async def init_redis() -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup. On failure the client stays unset and
    callers fall back to process memory.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    redis_client = client
    return redis_client

async def get_redis() -> Redis | None:
    """Get the Redis client, or None when Redis is unavailable."""
    return redis_client

async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.close()
        redis_client = None
