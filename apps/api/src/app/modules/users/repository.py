"""
User Repository

Database operations for users, saved details and documents.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import DocumentType, User, UserDetails, UserDocument, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        grit_id: str | None,
        role: UserRole = UserRole.CLIENT,
        is_guest: bool = False,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: Normalized email address (unique)
            password_hash: bcrypt hash
            first_name: User's first name
            last_name: User's last name
            grit_id: GRIT ID assigned to the user
            role: User's role
            is_guest: True for accounts created from a public quotation

        Returns:
            Created User instance
        """
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            grit_id=grit_id,
            role=role,
            is_guest=is_guest,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> User | None:
        result = await db.execute(select(User).where(User.id == str(user_id)))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address. Callers pass a normalized email."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_client_by_grit_id(db: AsyncSession, grit_id: str) -> User | None:
        result = await db.execute(
            select(User).where(User.grit_id == grit_id, User.role == UserRole.CLIENT)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        user = await UserRepository.get_by_email(db, email)
        return user is not None

    @staticmethod
    async def grit_id_exists(db: AsyncSession, grit_id: str) -> bool:
        result = await db.execute(select(User.id).where(User.grit_id == grit_id))
        return result.first() is not None

    @staticmethod
    async def list_clients(db: AsyncSession) -> list[User]:
        """Registered clients, newest first. Guest accounts are excluded."""
        result = await db.execute(
            select(User)
            .where(User.role == UserRole.CLIENT, User.is_guest.is_(False))
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_clients(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count()).select_from(User).where(User.role == UserRole.CLIENT)
        )
        return result.scalar_one()

    @staticmethod
    async def update_role(db: AsyncSession, user: User, role: UserRole) -> User:
        user.role = role
        await db.flush()
        logger.info(f"Updated role for {user.email} to {role.value}")
        return user

    @staticmethod
    async def update_password(db: AsyncSession, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        await db.flush()

    @staticmethod
    async def set_lock(
        db: AsyncSession,
        user: User,
        locked_until: datetime | None,
        failed_attempts: int,
    ) -> None:
        user.locked_until = locked_until
        user.failed_login_attempts = failed_attempts
        await db.flush()

    # ------------------------------------------------------------------
    # User details
    # ------------------------------------------------------------------

    @staticmethod
    async def get_details(db: AsyncSession, user_id: str) -> UserDetails | None:
        return await db.get(UserDetails, str(user_id))

    @staticmethod
    async def upsert_details(db: AsyncSession, user_id: str, profile: dict) -> UserDetails:
        """Insert or replace the saved details for a user."""
        details = await db.get(UserDetails, str(user_id))
        if details is None:
            details = UserDetails(user_id=str(user_id), **profile)
            db.add(details)
        else:
            for field, value in profile.items():
                setattr(details, field, value)

        await db.flush()
        return details

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @staticmethod
    async def list_documents(db: AsyncSession, user_id: str) -> list[UserDocument]:
        result = await db.execute(
            select(UserDocument)
            .where(UserDocument.user_id == str(user_id))
            .order_by(UserDocument.document_type)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_document(
        db: AsyncSession, user_id: str, document_type: DocumentType
    ) -> UserDocument | None:
        result = await db.execute(
            select(UserDocument).where(
                UserDocument.user_id == str(user_id),
                UserDocument.document_type == document_type,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def save_document(
        db: AsyncSession,
        existing: UserDocument | None,
        *,
        user_id: str,
        document_type: DocumentType,
        file_path: str,
        file_name: str,
        file_size: int,
    ) -> UserDocument:
        """Update the existing document row or insert a new one."""
        if existing is None:
            existing = UserDocument(
                user_id=str(user_id),
                document_type=document_type,
                file_path=file_path,
                file_name=file_name,
                file_size=file_size,
            )
            db.add(existing)
        else:
            existing.file_path = file_path
            existing.file_name = file_name
            existing.file_size = file_size
            existing.uploaded_at = func.now()

        await db.flush()
        await db.refresh(existing)
        return existing
