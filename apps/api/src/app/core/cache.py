"""
Response Cache

Short-lived JSON cache for read-heavy endpoints (service catalogue,
dashboard stats, admin settings). Uses Redis when it is connected and falls
back to process memory otherwise. Stale data only costs freshness, so every
failure degrades to a cache miss.
"""

import json
import logging
import time
from typing import Any

from app.core import redis as redis_module

logger = logging.getLogger(__name__)

KEY_PREFIX = "cache:"

SERVICES_TTL_SECONDS = 300
STATS_TTL_SECONDS = 60

# {key: (expires_at, value)}
_memory_cache: dict[str, tuple[float, Any]] = {}


async def get_cached(key: str) -> Any | None:
    """Return the cached value for key, or None on a miss."""
    client = redis_module.redis_client
    if client is not None:
        try:
            raw = await client.get(f"{KEY_PREFIX}{key}")
            return json.loads(raw) if raw is not None else None
        except Exception as e:
            logger.warning(f"Redis cache read failed for {key}: {e}")

    entry = _memory_cache.get(key)
    if entry is None:
        return None

    expires_at, value = entry
    if expires_at <= time.time():
        _memory_cache.pop(key, None)
        return None
    return value


async def set_cached(key: str, value: Any, ttl_seconds: int) -> None:
    """Store a JSON-serializable value for ttl_seconds."""
    client = redis_module.redis_client
    if client is not None:
        try:
            await client.set(f"{KEY_PREFIX}{key}", json.dumps(value, default=str), ex=ttl_seconds)
            return
        except Exception as e:
            logger.warning(f"Redis cache write failed for {key}: {e}")

    _memory_cache[key] = (time.time() + ttl_seconds, value)


async def clear_cache(prefix: str = "") -> int:
    """
    Remove cached entries whose key starts with prefix.

    Returns:
        Number of entries removed
    """
    removed = 0

    client = redis_module.redis_client
    if client is not None:
        try:
            keys = [k async for k in client.scan_iter(match=f"{KEY_PREFIX}{prefix}*")]
            if keys:
                removed += await client.delete(*keys)
        except Exception as e:
            logger.warning(f"Redis cache clear failed for prefix {prefix!r}: {e}")

    for key in [k for k in _memory_cache if k.startswith(prefix)]:
        del _memory_cache[key]
        removed += 1

    if removed:
        logger.debug(f"Cleared {removed} cache entries for prefix {prefix!r}")
    return removed


async def cleanup_cache() -> None:
    """Drop expired in-memory entries. Redis expires its own keys."""
    now = time.time()
    expired = [key for key, (expires_at, _) in _memory_cache.items() if expires_at <= now]
    for key in expired:
        del _memory_cache[key]

    if expired:
        logger.info(f"Response cache cleanup removed {len(expired)} expired entries")


def get_cache_stats() -> dict[str, Any]:
    """Size and key sample of the in-memory cache."""
    return {
        "backend": "redis" if redis_module.redis_client is not None else "memory",
        "memory_entries": len(_memory_cache),
        "memory_keys": list(_memory_cache)[:20],
    }
