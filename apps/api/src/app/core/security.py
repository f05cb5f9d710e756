"""
Security Utilities

Password hashing (bcrypt) and JWT creation/validation (PyJWT).
"""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"
TOKEN_TYPE_PASSWORD_RESET = "password_reset"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a plain password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash stored for the user
        logger.warning("Password hash could not be parsed")
        return False


def hash_token(token: str) -> str:
    """
    Hash a token for storage using SHA-256.

    Session, refresh and password reset tokens are stored hashed so that a
    database leak does not expose usable tokens.
    """
    return hashlib.sha256(token.encode()).hexdigest()


def _encode(
    subject: str,
    token_type: str,
    expires_delta: timedelta,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": secrets.token_hex(8),
    }
    if additional_claims:
        payload.update(additional_claims)
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_minutes: int | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: User ID placed in the `sub` claim
        additional_claims: Extra claims such as email and role
        expires_minutes: Lifetime override, defaults to the session duration

    Returns:
        Encoded JWT string
    """
    minutes = expires_minutes or settings.session_duration_minutes
    return _encode(subject, TOKEN_TYPE_ACCESS, timedelta(minutes=minutes), additional_claims)


def create_refresh_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create a signed refresh token valid for the refresh duration."""
    return _encode(
        subject,
        TOKEN_TYPE_REFRESH,
        timedelta(days=settings.refresh_token_duration_days),
        additional_claims,
    )


def create_password_reset_token(subject: str, email: str) -> str:
    """Create a short-lived password reset token."""
    return _encode(
        subject,
        TOKEN_TYPE_PASSWORD_RESET,
        timedelta(minutes=settings.password_reset_expire_minutes),
        {"email": email},
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT.

    Returns:
        The claims dict, or None when the token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        return None
