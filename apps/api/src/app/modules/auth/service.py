"""
Auth Service Layer

Registration, login with lockout, password change and password reset.

Security considerations:
- Emails are normalized (trimmed, lower-cased) before every lookup
- Every login attempt is recorded, including attempts for unknown emails
- The lock is checked before the password so a locked account leaks nothing
- Password reset tokens are JWTs whose SHA-256 hash is stored; each is
  single-use and expires after PASSWORD_RESET_EXPIRE_MINUTES
- forgot-password answers identically whether or not the account exists
- Changing or resetting the password revokes other sessions
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import send_password_reset_email, send_welcome_email
from app.core.rate_limit import get_client_ip
from app.core.security import (
    TOKEN_TYPE_PASSWORD_RESET,
    create_password_reset_token,
    decode_token,
    hash_password,
    hash_token,
    verify_password,
)
from app.modules.auth import login_attempts
from app.modules.auth.models import PasswordResetToken
from app.modules.sessions import service as session_service
from app.modules.sessions.models import RevokeReason
from app.modules.sessions.service import IssuedSession
from app.modules.shared import NotFoundError, ServiceError
from app.modules.shared.identifiers import generate_grit_id, generate_unique
from app.modules.users.models import User
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, password reset instructions have been sent."
)


class AuthServiceError(ServiceError):
    """Base exception for auth service errors."""


class InvalidCredentialsError(AuthServiceError):
    def __init__(self, remaining: int | None = None, max_attempts: int | None = None):
        extra = {}
        if remaining is not None:
            extra = {"remaining_attempts": remaining, "max_attempts": max_attempts}
        super().__init__(
            message="Invalid credentials",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
            extra=extra,
        )


class AccountLockedError(AuthServiceError):
    def __init__(self, message: str, locked_until: str | None, minutes_remaining: int | None):
        super().__init__(
            message=message,
            error_code="ACCOUNT_LOCKED",
            status_code=423,
            extra={"locked_until": locked_until, "minutes_remaining": minutes_remaining},
        )


class UserExistsError(AuthServiceError):
    def __init__(self):
        super().__init__(message="User already exists", error_code="USER_EXISTS", status_code=400)


class InvalidResetTokenError(AuthServiceError):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_RESET_TOKEN", status_code=400)


def _validation_error(message: str) -> AuthServiceError:
    return AuthServiceError(message=message, error_code="VALIDATION_ERROR", status_code=400)


def _check_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise _validation_error(
            f"New password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


@dataclass
class AuthResult:
    user: User
    issued: IssuedSession


async def register(
    db: AsyncSession,
    request: Request,
    *,
    email: str | None,
    password: str | None,
    first_name: str | None,
    last_name: str | None,
) -> AuthResult:
    """
    Create a client account and sign it in.

    Raises:
        AuthServiceError: Missing names, email or password, or password too short
        UserExistsError: Email already registered
    """
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    if not first_name or not last_name:
        raise _validation_error("First name and last name are required")
    if not email or not password:
        raise _validation_error("Email and password are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise _validation_error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    normalized = login_attempts.normalize_email(email)
    if await UserRepository.email_exists(db, normalized):
        raise UserExistsError()

    grit_id = await generate_unique(
        generate_grit_id,
        lambda candidate: UserRepository.grit_id_exists(db, candidate),
        label="GRIT ID",
    )

    user = await UserRepository.create(
        db,
        email=normalized,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        grit_id=grit_id,
    )

    issued = await session_service.issue_session(db, user, request)
    await send_welcome_email(user.email, user.full_name, user.grit_id)

    logger.info(f"User registered: {user.email} ({user.grit_id})")
    return AuthResult(user=user, issued=issued)


async def login(
    db: AsyncSession,
    request: Request,
    *,
    email: str | None,
    password: str | None,
) -> AuthResult:
    """
    Authenticate with email and password.

    Raises:
        AuthServiceError 400: Missing email or password
        AccountLockedError 423: Account locked, or locked by this attempt
        InvalidCredentialsError 401: Unknown email or wrong password
    """
    if not email or not password:
        raise _validation_error("Email and password are required")

    normalized = login_attempts.normalize_email(email)
    ip_address = get_client_ip(request)
    user_agent = request.headers.get("user-agent")

    user = await UserRepository.get_by_email(db, normalized)

    if user is not None:
        lock = await login_attempts.get_account_lock_status(db, user)
        if lock["locked"]:
            await login_attempts.record_login_attempt(
                db, normalized, user.id, False, ip_address, user_agent,
                login_attempts.FAILURE_ACCOUNT_LOCKED,
            )
            raise AccountLockedError(
                "Account is temporarily locked due to too many failed login attempts",
                lock["locked_until"],
                lock["minutes_remaining"],
            )

    if user is None:
        await login_attempts.record_login_attempt(
            db, normalized, None, False, ip_address, user_agent,
            login_attempts.FAILURE_USER_NOT_FOUND,
        )
        attempts = await login_attempts.get_remaining_attempts(db, normalized)
        logger.warning(f"Login attempt for non-existent email: {normalized}")
        raise InvalidCredentialsError(attempts["remaining"], attempts["max"])

    if not verify_password(password, user.password_hash):
        await login_attempts.record_login_attempt(
            db, normalized, user.id, False, ip_address, user_agent,
            login_attempts.FAILURE_INVALID_PASSWORD,
        )
        attempts = await login_attempts.get_remaining_attempts(db, normalized)

        if attempts["remaining"] <= 0:
            await login_attempts.lock_account(db, user)
            lock = await login_attempts.get_account_lock_status(db, user)
            raise AccountLockedError(
                "Account has been locked due to too many failed login attempts. "
                "Please try again later.",
                lock["locked_until"],
                lock["minutes_remaining"],
            )

        logger.warning(f"Invalid password for user: {normalized}")
        raise InvalidCredentialsError(attempts["remaining"], attempts["max"])

    await login_attempts.record_login_attempt(
        db, normalized, user.id, True, ip_address, user_agent
    )
    if user.locked_until is not None or user.failed_login_attempts:
        await login_attempts.unlock_account(db, user)

    issued = await session_service.issue_session(db, user, request)
    logger.info(f"User logged in: {user.email} (role: {user.role.value})")
    return AuthResult(user=user, issued=issued)


async def get_profile(db: AsyncSession, user_id: str) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


async def change_password(
    db: AsyncSession,
    user_id: str,
    current_session_id: str | None,
    current_password: str | None,
    new_password: str | None,
) -> int:
    """
    Change the password and revoke the user's other sessions.

    Returns:
        Number of sessions revoked
    """
    if not current_password or not new_password:
        raise _validation_error("Current password and new password are required")
    _check_new_password(new_password)

    user = await get_profile(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise AuthServiceError(
            message="Current password is incorrect",
            error_code="INVALID_PASSWORD",
            status_code=401,
        )

    await UserRepository.update_password(db, user, hash_password(new_password))
    revoked = await session_service.revoke_all_user_sessions(
        db, user.id, RevokeReason.PASSWORD_CHANGED, except_session_id=current_session_id
    )

    logger.info(f"Password changed for {user.email}, {revoked} other sessions revoked")
    return revoked


async def forgot_password(db: AsyncSession, email: str | None) -> str | None:
    """
    Issue a reset token and email it when the account exists.

    Returns:
        The raw token in development (for local testing), otherwise None
    """
    if not email:
        raise _validation_error("Email is required")

    normalized = login_attempts.normalize_email(email)
    user = await UserRepository.get_by_email(db, normalized)
    if user is None:
        logger.info(f"Password reset requested for unknown email: {normalized}")
        return None

    token = create_password_reset_token(str(user.id), user.email)
    db.add(
        PasswordResetToken(
            user_id=str(user.id),
            token_hash=hash_token(token),
            expires_at=datetime.now(UTC)
            + timedelta(minutes=settings.password_reset_expire_minutes),
        )
    )
    await db.flush()

    await send_password_reset_email(user.email, user.full_name, token)
    logger.info(f"Password reset token issued for {user.email}")

    return token if settings.is_development else None


async def reset_password(db: AsyncSession, token: str | None, new_password: str | None) -> None:
    """
    Set a new password from a reset token and revoke every session.

    Raises:
        InvalidResetTokenError: Token invalid, unknown, used or expired
    """
    if not token or not new_password:
        raise _validation_error("Token and new password are required")
    _check_new_password(new_password)

    payload = decode_token(token)
    if payload is None or payload.get("type") != TOKEN_TYPE_PASSWORD_RESET:
        raise InvalidResetTokenError("Invalid or expired reset token")

    result = await db.execute(
        select(PasswordResetToken).where(
            PasswordResetToken.token_hash == hash_token(token),
            PasswordResetToken.used.is_(False),
        )
    )
    reset_token = result.scalar_one_or_none()
    if reset_token is None:
        raise InvalidResetTokenError("Invalid or already used reset token")

    expires_at = reset_token.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    if expires_at < datetime.now(UTC):
        raise InvalidResetTokenError("Reset token has expired")

    user = await get_profile(db, reset_token.user_id)
    await UserRepository.update_password(db, user, hash_password(new_password))

    reset_token.used = True
    reset_token.used_at = datetime.now(UTC)
    await db.flush()

    await session_service.revoke_all_user_sessions(db, user.id, RevokeReason.PASSWORD_RESET)
    logger.info(f"Password reset completed for {user.email}")
