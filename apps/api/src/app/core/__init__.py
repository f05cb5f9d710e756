"""
Core module - Configuration, database, security, cache and integrations.
"""

from app.core.cache import clear_cache, get_cached, set_cached
from app.core.config import get_settings, settings
from app.core.database import Base, close_db, get_db, init_db
from app.core.payments_gateway import init_stripe, is_stripe_configured
from app.core.redis import close_redis, get_redis, init_redis
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    hash_token,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Response cache
    "get_cached",
    "set_cached",
    "clear_cache",
    # Stripe
    "init_stripe",
    "is_stripe_configured",
    # Security
    "hash_password",
    "verify_password",
    "hash_token",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
]
