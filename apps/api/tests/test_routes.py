"""
Router-level tests through the FastAPI app with dependency overrides.

The lifespan is not entered, so no database, Redis or scheduler is needed.
"""

import hashlib
import hmac
import json
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.core import database
from app.core import rate_limit
from app.core import redis as redis_module
from app.core.auth import get_current_user
from app.core.database import get_db
from app.core.security import create_access_token, create_refresh_token
from app.main import app
from app.modules.auth.service import AccountLockedError, InvalidCredentialsError
from app.modules.sessions.models import RevokeReason
from app.modules.shared import NotFoundError

USER_ID = "11111111-1111-1111-1111-111111111111"
WEBHOOK_SECRET = "whsec_test_secret"


async def override_get_db():
    yield MagicMock()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def db_session(client, mock_db):
    """Run the real get_db against a mocked session."""

    @asynccontextmanager
    async def session_maker():
        yield mock_db

    app.dependency_overrides.pop(get_db, None)
    with patch.object(database, "async_session_maker", session_maker):
        yield mock_db


def sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def expired_session():
    return SimpleNamespace(
        id="s1", user_id=USER_ID, expires_at=datetime.now(UTC) - timedelta(minutes=1)
    )


@pytest.fixture
def as_user(client_user):
    app.dependency_overrides[get_current_user] = lambda: client_user
    return client_user


@pytest.fixture
def as_admin(admin_user):
    app.dependency_overrides[get_current_user] = lambda: admin_user
    return admin_user


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestDashboardRoutes:
    def test_stats_for_client(self, client, as_user):
        stats = {"applications": 2, "pending": 1, "approved": 0, "quotations": 3}

        with patch(
            "app.modules.dashboard.service.get_stats", AsyncMock(return_value=stats)
        ) as get_stats:
            response = client.get("/api/v1/dashboard/stats")

        assert response.status_code == 200
        assert response.json() == stats
        assert get_stats.call_args.args[1] is as_user

    def test_admin_stats_rejects_client(self, client, as_user):
        response = client.get("/api/v1/dashboard/admin/stats")

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"

    def test_admin_settings_are_camel_case(self, client, as_admin):
        settings = {
            "site_name": "GritSync",
            "site_email": "admin@gritsync.com",
            "support_email": "support@gritsync.com",
            "stripe_enabled": False,
            "maintenance_mode": False,
            "stripe_publishable_key": "",
            "stripe_secret_key": "***1234",
            "stripe_webhook_secret": "",
        }

        with patch(
            "app.modules.dashboard.service.get_admin_settings",
            AsyncMock(return_value=settings),
        ):
            response = client.get("/api/v1/dashboard/admin/settings")

        assert response.status_code == 200
        body = response.json()
        assert body["siteName"] == "GritSync"
        assert body["stripeSecretKey"] == "***1234"
        assert body["maxLoginAttempts"] == 5


class TestTrackingRoutes:
    def test_unknown_application(self, client):
        with patch(
            "app.modules.tracking.service.track_application",
            AsyncMock(side_effect=NotFoundError("Application")),
        ):
            response = client.get("/api/v1/track/AP000000000000")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "APPLICATION_NOT_FOUND"

    def test_lookups_share_one_budget_per_client(self, client):
        with (
            patch(
                "app.modules.tracking.service.track_application",
                AsyncMock(side_effect=NotFoundError("Application")),
            ),
            patch.object(redis_module, "redis_client", None),
            patch.object(rate_limit.settings, "enable_rate_limit", True),
            patch.dict(rate_limit._memory_store, clear=True),
        ):
            client.get("/api/v1/track/AP000000000001")
            client.get("/api/v1/track/AP000000000002")

            keys = [key for key in rate_limit._memory_store if key.startswith("rate_limit:")]
            assert keys == ["rate_limit:track:testclient"]
            assert len(rate_limit._memory_store[keys[0]]) == 2


class TestLoginFailures:
    @pytest.mark.parametrize(
        "error,status_code",
        [
            (InvalidCredentialsError(remaining=2, max_attempts=5), 401),
            (AccountLockedError("Account locked", "2026-01-01T00:00:00+00:00", 30), 423),
        ],
    )
    def test_attempts_are_committed_before_the_error(
        self, client, db_session, error, status_code
    ):
        with patch("app.modules.auth.service.login", AsyncMock(side_effect=error)):
            response = client.post(
                "/api/v1/auth/login",
                json={"email": "maria.santos@example.com", "password": "wrong"},
            )

        assert response.status_code == status_code
        db_session.commit.assert_awaited_once()
        calls = [name for name, _, _ in db_session.method_calls]
        assert calls.index("commit") < calls.index("rollback")


class TestExpiredSessions:
    def test_refresh_with_expired_session_saves_the_revocation(self, client, db_session):
        session = expired_session()

        with patch("app.modules.sessions.service.repository") as mock_repo:
            mock_repo.get_active_by_refresh_hash = AsyncMock(return_value=session)
            mock_repo.deactivate = AsyncMock()

            response = client.post(
                "/api/v1/sessions/refresh",
                json={"refresh_token": create_refresh_token(subject=USER_ID)},
            )

        assert response.status_code == 401
        mock_repo.deactivate.assert_awaited_once_with(
            db_session, session, RevokeReason.EXPIRED.value
        )
        db_session.commit.assert_awaited_once()

    def test_bearer_with_expired_session_saves_the_revocation(self, client, db_session):
        token = create_access_token(subject=USER_ID)

        with patch("app.modules.sessions.service.repository") as mock_repo:
            mock_repo.get_active_by_token_hash = AsyncMock(return_value=expired_session())
            mock_repo.deactivate = AsyncMock()

            response = client.get(
                "/api/v1/sessions/current", headers={"Authorization": f"Bearer {token}"}
            )

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "INVALID_SESSION"
        mock_repo.deactivate.assert_awaited_once()
        db_session.commit.assert_awaited_once()


class TestStripeWebhook:
    SUCCEEDED = {
        "id": "evt_1",
        "object": "event",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_1", "metadata": {"payment_id": "PAY1234567890"}}},
    }

    def test_signed_event_is_handled(self, client, db_session):
        payload = json.dumps(self.SUCCEEDED).encode()

        with (
            patch("app.modules.payments.webhooks.settings.stripe_webhook_secret", WEBHOOK_SECRET),
            patch("app.modules.payments.service._handle_intent_succeeded", AsyncMock()) as handler,
        ):
            response = client.post(
                "/api/v1/webhooks/stripe",
                content=payload,
                headers={"stripe-signature": sign(payload)},
            )

        assert response.status_code == 200
        handler.assert_awaited_once_with(db_session, self.SUCCEEDED["data"]["object"])
        db_session.commit.assert_awaited_once()

    def test_bad_signature_is_rejected(self, client, db_session):
        payload = json.dumps(self.SUCCEEDED).encode()

        with (
            patch("app.modules.payments.webhooks.settings.stripe_webhook_secret", WEBHOOK_SECRET),
            patch("app.modules.payments.service._handle_intent_succeeded", AsyncMock()) as handler,
        ):
            response = client.post(
                "/api/v1/webhooks/stripe",
                content=payload,
                headers={"stripe-signature": sign(payload, secret="whsec_other")},
            )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "INVALID_WEBHOOK"
        handler.assert_not_called()
        db_session.rollback.assert_awaited_once()

    def test_unsigned_event_without_secret(self, client, db_session):
        event = {
            "type": "payment_intent.payment_failed",
            "data": {"object": {"id": "pi_2", "metadata": {"payment_id": "PAY1234567890"}}},
        }

        with (
            patch("app.modules.payments.webhooks.settings.stripe_webhook_secret", ""),
            patch("app.modules.payments.webhooks.get_setting", AsyncMock(return_value=None)),
            patch("app.modules.payments.service._handle_intent_failed", AsyncMock()) as handler,
        ):
            response = client.post("/api/v1/webhooks/stripe", content=json.dumps(event))

        assert response.status_code == 200
        handler.assert_awaited_once_with(db_session, event["data"]["object"])
