"""
Unit tests for the users service layer.

These tests cover:
- Role changes
- Saved details
- Identity document replacement
- Client lookup
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.shared import NotFoundError, ValidationFailedError
from app.modules.users.models import DocumentType, UserRole
from app.modules.users.service import (
    get_client_by_grit_id,
    get_lock_status,
    parse_document_type,
    save_details,
    update_role,
    upload_document,
)

SERVICE = "app.modules.users.service"
USER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def user():
    return SimpleNamespace(
        id=USER_ID,
        email="maria.santos@example.com",
        first_name="Maria",
        last_name="Santos",
        grit_id="GRIT321569",
    )


@pytest.fixture
def upload():
    file = MagicMock()
    file.filename = "passport.pdf"
    return file


class TestUpdateRole:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["superuser", None])
    async def test_invalid_role(self, mock_db, role):
        with pytest.raises(ValidationFailedError) as exc_info:
            await update_role(mock_db, "maria.santos@example.com", role)

        assert exc_info.value.error_code == "INVALID_ROLE"

    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_email = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError) as exc_info:
                await update_role(mock_db, "nobody@example.com", "admin")

        assert exc_info.value.error_code == "USER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_email_is_normalized(self, mock_db, user):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_email = AsyncMock(return_value=user)
            mock_users.update_role = AsyncMock(return_value=user)

            await update_role(mock_db, "  Maria.Santos@Example.com ", "admin")

        mock_users.get_by_email.assert_awaited_once_with(mock_db, "maria.santos@example.com")
        mock_users.update_role.assert_awaited_once_with(mock_db, user, UserRole.ADMIN)


class TestLockStatus:
    @pytest.mark.asyncio
    async def test_includes_failed_attempts(self, mock_db, user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.login_attempts") as mock_attempts,
        ):
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_attempts.get_account_lock_status = AsyncMock(
                return_value={"is_locked": False, "locked_until": None}
            )
            mock_attempts.get_failed_attempts_count = AsyncMock(return_value=3)

            result = await get_lock_status(mock_db, USER_ID)

        assert result["failed_attempts"] == 3
        assert result["email"] == user.email
        assert result["is_locked"] is False


class TestSaveDetails:
    @pytest.mark.asyncio
    async def test_names_are_copied_to_account(self, mock_db, user):
        details = MagicMock()

        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_users.upsert_details = AsyncMock(return_value=details)

            result = await save_details(
                mock_db, USER_ID, {"first_name": "Ma. Luz", "last_name": "", "city": "Manila"}
            )

        assert result is details
        assert user.first_name == "Ma. Luz"
        assert user.last_name == "Santos"
        profile = mock_users.upsert_details.call_args.args[2]
        assert profile["city"] == "Manila"
        assert profile["last_name"] is None

    @pytest.mark.asyncio
    async def test_without_names_account_untouched(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock()
            mock_users.upsert_details = AsyncMock(return_value=MagicMock())

            await save_details(mock_db, USER_ID, {"city": "Manila"})

        mock_users.get_by_id.assert_not_called()


class TestDocuments:
    """Tests for document uploads."""

    def test_parse_document_type(self):
        assert parse_document_type("passport") == DocumentType.PASSPORT

        with pytest.raises(ValidationFailedError) as exc_info:
            parse_document_type("selfie")
        assert exc_info.value.error_code == "INVALID_DOCUMENT_TYPE"

    @pytest.mark.asyncio
    async def test_replacement_removes_old_file(self, mock_db, upload):
        existing = SimpleNamespace(file_path=f"{USER_ID}/passport_old_aaaa.pdf")
        saved = MagicMock()

        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(
                f"{SERVICE}.save_upload",
                AsyncMock(return_value=(f"{USER_ID}/passport_passport_bbbb.pdf", 2048)),
            ),
            patch(f"{SERVICE}.delete_file", new_callable=AsyncMock) as mock_delete,
        ):
            mock_users.get_document = AsyncMock(return_value=existing)
            mock_users.save_document = AsyncMock(return_value=saved)

            result = await upload_document(mock_db, USER_ID, "passport", upload)

        assert result is saved
        kwargs = mock_users.save_document.call_args.kwargs
        assert kwargs["file_name"] == "passport.pdf"
        assert kwargs["file_size"] == 2048
        mock_delete.assert_awaited_once_with(f"{USER_ID}/passport_old_aaaa.pdf")

    @pytest.mark.asyncio
    async def test_failed_save_removes_new_file(self, mock_db, upload):
        new_path = f"{USER_ID}/passport_passport_bbbb.pdf"

        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.save_upload", AsyncMock(return_value=(new_path, 2048))),
            patch(f"{SERVICE}.delete_file", new_callable=AsyncMock) as mock_delete,
        ):
            mock_users.get_document = AsyncMock(return_value=None)
            mock_users.save_document = AsyncMock(side_effect=RuntimeError("db down"))

            with pytest.raises(RuntimeError):
                await upload_document(mock_db, USER_ID, "passport", upload)

        mock_delete.assert_awaited_once_with(new_path)

    @pytest.mark.asyncio
    async def test_invalid_type_stores_nothing(self, mock_db, upload):
        with patch(f"{SERVICE}.save_upload", new_callable=AsyncMock) as mock_save:
            with pytest.raises(ValidationFailedError):
                await upload_document(mock_db, USER_ID, "selfie", upload)

        mock_save.assert_not_called()


class TestClients:
    @pytest.mark.asyncio
    async def test_unknown_grit_id(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_client_by_grit_id = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError) as exc_info:
                await get_client_by_grit_id(mock_db, "GRIT000000")

        assert exc_info.value.error_code == "CLIENT_NOT_FOUND"
