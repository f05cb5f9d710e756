"""
Unit tests for login attempt tracking and account lockout.
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from app.modules.auth.login_attempts import (
    get_account_lock_status,
    get_remaining_attempts,
    lock_account,
    record_login_attempt,
)

MODULE = "app.modules.auth.login_attempts"


def make_user(locked_until=None, failed=0):
    return SimpleNamespace(
        id="11111111-1111-1111-1111-111111111111",
        email="maria.santos@example.com",
        locked_until=locked_until,
        failed_login_attempts=failed,
    )


class TestLockStatus:
    @pytest.mark.asyncio
    async def test_not_locked(self, mock_db):
        status = await get_account_lock_status(mock_db, make_user())

        assert status == {"locked": False, "locked_until": None, "minutes_remaining": None}

    @pytest.mark.asyncio
    async def test_minutes_remaining_rounds_up(self, mock_db):
        user = make_user(locked_until=datetime.now(UTC) + timedelta(minutes=10, seconds=5))

        status = await get_account_lock_status(mock_db, user)

        assert status["locked"] is True
        assert status["minutes_remaining"] == 11

    @pytest.mark.asyncio
    async def test_naive_timestamp_treated_as_utc(self, mock_db):
        naive = (datetime.now(UTC) + timedelta(minutes=5)).replace(tzinfo=None)

        status = await get_account_lock_status(mock_db, make_user(locked_until=naive))

        assert status["locked"] is True

    @pytest.mark.asyncio
    async def test_expired_lock_is_cleared(self, mock_db):
        user = make_user(locked_until=datetime.now(UTC) - timedelta(minutes=1), failed=5)

        with patch(f"{MODULE}.UserRepository") as mock_users:
            mock_users.set_lock = AsyncMock()

            status = await get_account_lock_status(mock_db, user)

        assert status["locked"] is False
        mock_users.set_lock.assert_awaited_once_with(mock_db, user, None, failed_attempts=0)


class TestAttempts:
    @pytest.mark.asyncio
    async def test_remaining_never_negative(self, mock_db):
        with (
            patch(f"{MODULE}.get_max_login_attempts", AsyncMock(return_value=5)),
            patch(f"{MODULE}.get_failed_attempts_count", AsyncMock(return_value=7)),
        ):
            result = await get_remaining_attempts(mock_db, "maria.santos@example.com")

        assert result == {"remaining": 0, "failed": 7, "max": 5}

    @pytest.mark.asyncio
    async def test_lock_increments_counter(self, mock_db):
        user = make_user(failed=4)

        with patch(f"{MODULE}.UserRepository") as mock_users:
            mock_users.set_lock = AsyncMock()

            locked_until = await lock_account(mock_db, user)

        assert locked_until > datetime.now(UTC) + timedelta(minutes=29)
        assert mock_users.set_lock.call_args.kwargs["failed_attempts"] == 5

    @pytest.mark.asyncio
    async def test_record_failure_is_swallowed(self, mock_db):
        mock_db.flush = AsyncMock(side_effect=RuntimeError("db down"))

        await record_login_attempt(
            mock_db, "Maria@Example.com", None, False, "203.0.113.7", None, "user_not_found"
        )

        attempt = mock_db.add.call_args.args[0]
        assert attempt.email == "maria@example.com"
        assert attempt.user_agent == "unknown"
