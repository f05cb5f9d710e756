"""
Users Service Layer

Admin account management (roles, lockout), the caller's saved details and
identity documents, and the client directory.
"""

import logging
from typing import Any

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth import login_attempts
from app.modules.auth.models import LoginAttempt
from app.modules.files.storage import delete_file, save_upload
from app.modules.shared import NotFoundError, ValidationFailedError
from app.modules.shared.profile import normalize_profile
from app.modules.users.models import DocumentType, User, UserDetails, UserDocument, UserRole
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


# ============================================================================
# Admin
# ============================================================================


async def update_role(db: AsyncSession, email: str, role: str | None) -> User:
    """
    Raises:
        ValidationFailedError: Role is not client or admin
        NotFoundError: No user with that email
    """
    try:
        new_role = UserRole(role)
    except ValueError as e:
        raise ValidationFailedError(
            'Invalid role. Must be "client" or "admin"', "INVALID_ROLE"
        ) from e

    user = await UserRepository.get_by_email(db, login_attempts.normalize_email(email))
    if user is None:
        raise NotFoundError("User")

    return await UserRepository.update_role(db, user, new_role)


async def unlock_user(db: AsyncSession, user_id: str) -> User:
    user = await get_user(db, user_id)
    await login_attempts.unlock_account(db, user)
    return user


async def get_lock_status(db: AsyncSession, user_id: str) -> dict[str, Any]:
    """Lock state plus recent failed attempts and the email."""
    user = await get_user(db, user_id)
    status = await login_attempts.get_account_lock_status(db, user)
    failed = await login_attempts.get_failed_attempts_count(db, user.email)
    return {**status, "failed_attempts": failed, "email": user.email}


async def list_login_attempts(db: AsyncSession, user_id: str, limit: int) -> list[LoginAttempt]:
    user = await get_user(db, user_id)
    return await login_attempts.list_login_attempts(db, str(user.id), user.email, limit)


# ============================================================================
# Saved details
# ============================================================================


async def get_details(db: AsyncSession, user_id: str) -> UserDetails | None:
    return await UserRepository.get_details(db, user_id)


async def save_details(db: AsyncSession, user_id: str, data: dict) -> UserDetails:
    """
    Upsert the caller's saved details.

    A supplied first or last name is also written to the account.
    """
    profile = normalize_profile(data)

    if profile["first_name"] or profile["last_name"]:
        user = await get_user(db, user_id)
        if profile["first_name"]:
            user.first_name = profile["first_name"]
        if profile["last_name"]:
            user.last_name = profile["last_name"]

    details = await UserRepository.upsert_details(db, user_id, profile)
    await db.refresh(details)
    return details


# ============================================================================
# Documents
# ============================================================================


async def list_documents(db: AsyncSession, user_id: str) -> list[UserDocument]:
    return await UserRepository.list_documents(db, user_id)


def parse_document_type(document_type: str) -> DocumentType:
    try:
        return DocumentType(document_type)
    except ValueError as e:
        raise ValidationFailedError("Invalid document type", "INVALID_DOCUMENT_TYPE") from e


async def upload_document(
    db: AsyncSession, user_id: str, document_type: str, upload: UploadFile
) -> UserDocument:
    """
    Store a new picture, diploma or passport, replacing the previous one.

    The old file is removed from disk once the new row is saved; the new
    file is removed again if saving the row fails.
    """
    doc_type = parse_document_type(document_type)
    file_path, file_size = await save_upload(user_id, upload, prefix=doc_type.value)

    existing = await UserRepository.get_document(db, user_id, doc_type)
    old_path = existing.file_path if existing is not None else None

    try:
        document = await UserRepository.save_document(
            db,
            existing,
            user_id=user_id,
            document_type=doc_type,
            file_path=file_path,
            file_name=upload.filename or file_path.rsplit("/", 1)[-1],
            file_size=file_size,
        )
    except Exception:
        await delete_file(file_path)
        raise

    if old_path and old_path != file_path:
        await delete_file(old_path)

    logger.info(f"Stored {doc_type.value} document for user {user_id}")
    return document


# ============================================================================
# Clients
# ============================================================================


async def list_clients(db: AsyncSession) -> list[User]:
    return await UserRepository.list_clients(db)


async def get_client_by_grit_id(db: AsyncSession, grit_id: str) -> User:
    client = await UserRepository.get_client_by_grit_id(db, grit_id)
    if client is None:
        raise NotFoundError("Client")
    return client
