"""
Shared test fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.auth import CurrentUser


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()

    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=None)
    nested.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested = MagicMock(return_value=nested)
    return db


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.delete = AsyncMock(return_value=0)
    redis.ping = AsyncMock(return_value=True)
    redis.pipeline = MagicMock()
    pipe = AsyncMock()
    pipe.zremrangebyscore = MagicMock()
    pipe.zcard = MagicMock()
    pipe.zadd = MagicMock()
    pipe.expire = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, 0, 1, True])
    redis.pipeline.return_value = pipe
    return redis


@pytest.fixture
def client_user():
    """An authenticated client."""
    return CurrentUser(
        id="11111111-1111-1111-1111-111111111111",
        email="maria.santos@example.com",
        role="client",
        name="Maria Santos",
        session_id="22222222-2222-2222-2222-222222222222",
    )


@pytest.fixture
def other_client_user():
    """A second client who owns nothing used in the tests."""
    return CurrentUser(
        id="33333333-3333-3333-3333-333333333333",
        email="juan.cruz@example.com",
        role="client",
        name="Juan Cruz",
    )


@pytest.fixture
def admin_user():
    """An authenticated admin."""
    return CurrentUser(
        id="44444444-4444-4444-4444-444444444444",
        email="admin@gritsync.com",
        role="admin",
        name="Admin",
    )
