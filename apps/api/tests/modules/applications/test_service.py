"""
Unit tests for the applications service layer.

These tests cover:
- Access checks
- Submission and default processing accounts
- Status changes and their notifications
- Stage payments
- Processing account permissions
- Timeline step upserts
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.applications.models import (
    AccountType,
    ApplicationStatus,
    PaymentType,
    StepStatus,
)
from app.modules.applications.schemas import ProcessingAccountCreate, ProcessingAccountUpdate
from app.modules.applications.service import (
    DocumentsRequiredError,
    InvalidPaymentTypeError,
    PaymentAlreadyCompletedError,
    UploadedDocuments,
    _sort_accounts,
    create_application,
    create_payment,
    create_processing_account,
    delete_processing_account,
    ensure_default_accounts,
    get_accessible_application,
    status_message,
    step_name_for,
    update_processing_account,
    update_status,
    upsert_timeline_step,
)
from app.modules.files import storage
from app.modules.files.storage import InvalidFileTypeError
from app.modules.notifications.models import NotificationType
from app.modules.shared import AccessDeniedError, NotFoundError, ValidationFailedError

SERVICE = "app.modules.applications.service"


def make_upload(filename: str, content: bytes = b"%PDF-1.4"):
    upload = MagicMock()
    upload.filename = filename
    upload.read = AsyncMock(return_value=content)
    return upload


def make_documents(passport: str = "passport.pdf") -> UploadedDocuments:
    return UploadedDocuments(
        picture=make_upload("me.png"),
        diploma=make_upload("diploma.pdf"),
        passport=make_upload(passport),
    )


class TestGetAccessibleApplication:
    """Tests for the owner-or-admin access rule."""

    @pytest.mark.asyncio
    async def test_owner_can_access(self, mock_db, client_user, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            result = await get_accessible_application(mock_db, "AP36S25D451F2G", client_user)

        assert result is sample_application

    @pytest.mark.asyncio
    async def test_admin_can_access_any(self, mock_db, admin_user, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            result = await get_accessible_application(mock_db, "AP36S25D451F2G", admin_user)

        assert result is sample_application

    @pytest.mark.asyncio
    async def test_other_client_is_denied(self, mock_db, other_client_user, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            with pytest.raises(AccessDeniedError):
                await get_accessible_application(mock_db, "AP36S25D451F2G", other_client_user)

    @pytest.mark.asyncio
    async def test_missing_application(self, mock_db, client_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError) as exc_info:
                await get_accessible_application(mock_db, "AP000000000000", client_user)

        assert exc_info.value.error_code == "APPLICATION_NOT_FOUND"
        assert exc_info.value.status_code == 404


class TestCreateApplication:
    """Tests for create_application."""

    @pytest.mark.asyncio
    async def test_requires_all_documents(self, mock_db, client_user):
        documents = UploadedDocuments(picture=MagicMock(), diploma=MagicMock(), passport=None)

        with pytest.raises(DocumentsRequiredError):
            await create_application(mock_db, client_user, {}, documents)

    @pytest.mark.asyncio
    async def test_success_stores_documents_and_opens_accounts(
        self, mock_db, client_user, sample_application, sample_owner
    ):
        documents = make_documents()
        form = {
            "first_name": "Maria",
            "middle_name": "Luz",
            "last_name": "Santos",
            "marital_status": "married",
            "single_full_name": "Maria Luz Reyes",
            "unrelated": "ignored",
        }

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.save_upload") as mock_save,
        ):
            mock_save.side_effect = [
                (f"{client_user.id}/picture_me.png", 10),
                (f"{client_user.id}/diploma_bsn.pdf", 20),
                (f"{client_user.id}/passport_p1.pdf", 30),
            ]
            mock_repo.application_id_exists = AsyncMock(return_value=False)
            mock_repo.create_application = AsyncMock(return_value=sample_application)
            mock_repo.list_accounts = AsyncMock(return_value=[])
            mock_repo.create_account = AsyncMock(side_effect=lambda db, **fields: MagicMock(**fields))
            mock_users.upsert_details = AsyncMock()
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            result = await create_application(mock_db, client_user, form, documents)

        assert result is sample_application
        assert mock_save.await_count == 3

        kwargs = mock_repo.create_application.call_args.kwargs
        assert kwargs["application_id"].startswith("AP")
        assert kwargs["picture_path"] == f"{client_user.id}/picture_me.png"
        assert kwargs["profile"]["single_full_name"] is None
        assert "unrelated" not in kwargs["profile"]

        mock_users.upsert_details.assert_awaited_once()
        assert mock_repo.create_account.await_count == 2

    @pytest.mark.asyncio
    async def test_details_sync_failure_does_not_fail_submission(
        self, mock_db, client_user, sample_application, sample_owner
    ):
        documents = make_documents()

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.save_upload", AsyncMock(return_value=("u/f.png", 1))),
        ):
            mock_repo.application_id_exists = AsyncMock(return_value=False)
            mock_repo.create_application = AsyncMock(return_value=sample_application)
            mock_repo.list_accounts = AsyncMock(return_value=[])
            mock_repo.create_account = AsyncMock()
            mock_users.upsert_details = AsyncMock(side_effect=RuntimeError("db down"))
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            result = await create_application(mock_db, client_user, {}, documents)

        assert result is sample_application

    @pytest.mark.asyncio
    async def test_bad_document_type_writes_nothing(self, mock_db, client_user, tmp_path):
        with (
            patch.object(storage.settings, "upload_dir", str(tmp_path)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            with pytest.raises(InvalidFileTypeError):
                await create_application(
                    mock_db, client_user, {}, make_documents(passport="passport.exe")
                )

        assert list(tmp_path.rglob("*.*")) == []
        mock_repo.create_application.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_insert_removes_saved_documents(self, mock_db, client_user, tmp_path):
        with (
            patch.object(storage.settings, "upload_dir", str(tmp_path)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.application_id_exists = AsyncMock(return_value=False)
            mock_repo.create_application = AsyncMock(side_effect=RuntimeError("insert failed"))

            with pytest.raises(RuntimeError):
                await create_application(mock_db, client_user, {}, make_documents())

        assert list(tmp_path.rglob("*.*")) == []


class TestEnsureDefaultAccounts:
    """Tests for the default Gmail and Pearson VUE accounts."""

    @pytest.mark.asyncio
    async def test_creates_both_with_gmail_and_grit_id(
        self, mock_db, sample_application, sample_owner
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.create_account = AsyncMock(side_effect=lambda db, **fields: fields)
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            created = await ensure_default_accounts(mock_db, sample_application, existing=[])

        assert [a["account_type"] for a in created] == [AccountType.GMAIL, AccountType.PEARSON_VUE]
        assert all(a["email"] == "mlsantosusrn@gmail.com" for a in created)
        assert all(a["password"] == "GRIT321569" for a in created)
        assert all(a["status"] == "active" for a in created)

    @pytest.mark.asyncio
    async def test_only_missing_type_is_created(
        self, mock_db, sample_application, sample_owner, gmail_account
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.create_account = AsyncMock(side_effect=lambda db, **fields: fields)
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            created = await ensure_default_accounts(
                mock_db, sample_application, existing=[gmail_account]
            )

        assert [a["account_type"] for a in created] == [AccountType.PEARSON_VUE]

    @pytest.mark.asyncio
    async def test_skipped_without_grit_id(self, mock_db, sample_application, sample_owner):
        sample_owner.grit_id = None

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.create_account = AsyncMock()
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            created = await ensure_default_accounts(mock_db, sample_application, existing=[])

        assert created == []
        mock_repo.create_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_skipped_without_names(self, mock_db, sample_application, sample_owner):
        sample_application.last_name = None

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.create_account = AsyncMock()
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            created = await ensure_default_accounts(mock_db, sample_application, existing=[])

        assert created == []

    @pytest.mark.asyncio
    async def test_errors_are_swallowed(self, mock_db, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_accounts = AsyncMock(side_effect=RuntimeError("db down"))

            created = await ensure_default_accounts(mock_db, sample_application)

        assert created == []


class TestUpdateStatus:
    """Tests for admin status changes."""

    @pytest.mark.asyncio
    async def test_invalid_status(self, mock_db):
        with pytest.raises(ValidationFailedError) as exc_info:
            await update_status(mock_db, "AP36S25D451F2G", "archived")

        assert exc_info.value.error_code == "INVALID_STATUS"

    @pytest.mark.asyncio
    async def test_change_notifies_applicant(self, mock_db, sample_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.create_notification", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.update_status = AsyncMock()

            await update_status(mock_db, "AP36S25D451F2G", "approved")

        mock_repo.update_status.assert_awaited_once_with(
            mock_db, sample_application, ApplicationStatus.APPROVED
        )
        kwargs = mock_notify.call_args.kwargs
        assert kwargs["notification_type"] == NotificationType.STATUS_CHANGE
        assert kwargs["message"] == "Your application has been approved! 🎉"

    @pytest.mark.asyncio
    async def test_same_status_does_not_notify(self, mock_db, sample_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.create_notification", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.update_status = AsyncMock()

            await update_status(mock_db, "AP36S25D451F2G", "pending")

        mock_notify.assert_not_called()

    def test_status_messages(self):
        assert status_message(ApplicationStatus.REJECTED) == "Your application has been rejected"
        assert status_message(ApplicationStatus.IN_PROGRESS) == (
            "Your application is now in progress"
        )


class TestCreatePayment:
    """Tests for stage payments."""

    @pytest.mark.asyncio
    async def test_invalid_payment_type(self, mock_db, client_user, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            with pytest.raises(InvalidPaymentTypeError):
                await create_payment(mock_db, "AP36S25D451F2G", client_user, "step3", 100)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, "abc", None])
    async def test_amount_must_be_positive(self, mock_db, client_user, sample_application, amount):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            with pytest.raises(ValidationFailedError) as exc_info:
                await create_payment(mock_db, "AP36S25D451F2G", client_user, "step1", amount)

        assert exc_info.value.error_code == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_already_paid_type(self, mock_db, client_user, sample_application, sample_payment):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.get_paid_payment = AsyncMock(return_value=sample_payment)

            with pytest.raises(PaymentAlreadyCompletedError):
                await create_payment(mock_db, "AP36S25D451F2G", client_user, "step1", "267.99")

    @pytest.mark.asyncio
    async def test_success(self, mock_db, client_user, sample_application, sample_payment):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.get_paid_payment = AsyncMock(return_value=None)
            mock_repo.payment_id_exists = AsyncMock(return_value=False)
            mock_repo.create_payment = AsyncMock(return_value=sample_payment)

            result = await create_payment(
                mock_db, "AP36S25D451F2G", client_user, "step1", "267.99"
            )

        assert result is sample_payment
        kwargs = mock_repo.create_payment.call_args.kwargs
        assert kwargs["payment_id"].startswith("PAY")
        assert kwargs["payment_type"] == PaymentType.STEP1
        assert kwargs["amount"] == Decimal("267.99")


class TestProcessingAccounts:
    """Tests for processing account permissions."""

    @pytest.mark.asyncio
    async def test_client_cannot_add_default_type(self, mock_db, client_user, sample_application):
        body = ProcessingAccountCreate(account_type="gmail", email="x@gmail.com", password="p")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            with pytest.raises(AccessDeniedError) as exc_info:
                await create_processing_account(mock_db, "AP36S25D451F2G", client_user, body)

        assert exc_info.value.message == "Users can only add custom accounts"

    @pytest.mark.asyncio
    async def test_custom_account_requires_name(self, mock_db, client_user, sample_application):
        body = ProcessingAccountCreate(email="maria@cgfns.example", password="secret")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            with pytest.raises(ValidationFailedError):
                await create_processing_account(mock_db, "AP36S25D451F2G", client_user, body)

    @pytest.mark.asyncio
    async def test_client_account_is_forced_custom(self, mock_db, client_user, sample_application):
        body = ProcessingAccountCreate(name="CGFNS", email="maria@cgfns.example", password="secret")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.create_account = AsyncMock(side_effect=lambda db, **fields: fields)

            created = await create_processing_account(
                mock_db, "AP36S25D451F2G", client_user, body
            )

        assert created["account_type"] == AccountType.CUSTOM
        assert created["created_by"] == client_user.id

    @pytest.mark.asyncio
    async def test_admin_can_add_pearson_vue(self, mock_db, admin_user, sample_application):
        body = ProcessingAccountCreate(
            account_type="pearson_vue", email="mlsantosusrn@gmail.com", password="GRIT321569"
        )

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.create_account = AsyncMock(side_effect=lambda db, **fields: fields)

            created = await create_processing_account(mock_db, "AP36S25D451F2G", admin_user, body)

        assert created["account_type"] == AccountType.PEARSON_VUE

    @pytest.mark.asyncio
    async def test_admin_unknown_type(self, mock_db, admin_user, sample_application):
        body = ProcessingAccountCreate(account_type="facebook", email="a@b.c", password="p")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            with pytest.raises(ValidationFailedError) as exc_info:
                await create_processing_account(mock_db, "AP36S25D451F2G", admin_user, body)

        assert exc_info.value.error_code == "INVALID_ACCOUNT_TYPE"

    @pytest.mark.asyncio
    async def test_update_validates_merged_fields(
        self, mock_db, client_user, sample_application, custom_account
    ):
        body = ProcessingAccountUpdate(password="")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_account = AsyncMock(return_value=custom_account)
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            with pytest.raises(ValidationFailedError):
                await update_processing_account(
                    mock_db, "AP36S25D451F2G", custom_account.id, client_user, body
                )

    @pytest.mark.asyncio
    async def test_update_applies_changes(
        self, mock_db, client_user, sample_application, custom_account
    ):
        body = ProcessingAccountUpdate(password="new-secret")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_account = AsyncMock(return_value=custom_account)
            mock_repo.get_application = AsyncMock(return_value=sample_application)

            result = await update_processing_account(
                mock_db, "AP36S25D451F2G", custom_account.id, client_user, body
            )

        assert result.password == "new-secret"
        assert result.name == "CGFNS"
        mock_db.flush.assert_awaited()

    @pytest.mark.asyncio
    async def test_client_deletes_own_custom_account(self, mock_db, client_user, custom_account):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_account = AsyncMock(return_value=custom_account)
            mock_repo.delete_account = AsyncMock()

            await delete_processing_account(
                mock_db, "AP36S25D451F2G", custom_account.id, client_user
            )

        mock_repo.delete_account.assert_awaited_once_with(mock_db, custom_account)

    @pytest.mark.asyncio
    async def test_client_cannot_delete_default_account(
        self, mock_db, client_user, gmail_account
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_account = AsyncMock(return_value=gmail_account)

            with pytest.raises(AccessDeniedError) as exc_info:
                await delete_processing_account(
                    mock_db, "AP36S25D451F2G", gmail_account.id, client_user
                )

        assert exc_info.value.message == "You can only delete custom accounts"

    @pytest.mark.asyncio
    async def test_client_cannot_delete_others_account(
        self, mock_db, other_client_user, custom_account
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_account = AsyncMock(return_value=custom_account)

            with pytest.raises(AccessDeniedError) as exc_info:
                await delete_processing_account(
                    mock_db, "AP36S25D451F2G", custom_account.id, other_client_user
                )

        assert exc_info.value.message == "You can only delete accounts you created"

    def test_sort_puts_defaults_first(self, custom_account, gmail_account):
        pearson = MagicMock()
        pearson.account_type = AccountType.PEARSON_VUE
        pearson.created_at = None

        result = _sort_accounts([custom_account, pearson, gmail_account])

        assert result == [gmail_account, pearson, custom_account]


class TestTimelineSteps:
    """Tests for upsert_timeline_step."""

    def test_step_name_for(self):
        assert step_name_for("app_created") == "App Created"
        assert step_name_for("nclex_eligibility_approved") == "Nclex Eligibility Approved"

    @pytest.mark.asyncio
    async def test_invalid_status(self, mock_db):
        with pytest.raises(ValidationFailedError) as exc_info:
            await upsert_timeline_step(
                mock_db, "AP36S25D451F2G", "letter_generated", "done", None, False
            )

        assert exc_info.value.error_code == "INVALID_STEP_STATUS"

    @pytest.mark.asyncio
    async def test_new_completed_step_is_stamped_and_notified(
        self, mock_db, sample_application, completed_step
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.create_notification", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.get_step = AsyncMock(return_value=None)
            mock_repo.create_step = AsyncMock(return_value=completed_step)

            await upsert_timeline_step(
                mock_db, "AP36S25D451F2G", "letter_generated", "completed", {"note": "sent"}, True
            )

        kwargs = mock_repo.create_step.call_args.kwargs
        assert kwargs["step_name"] == "Letter Generated"
        assert kwargs["status"] == StepStatus.COMPLETED
        assert kwargs["completed_at"] is not None
        assert kwargs["data"] == {"note": "sent"}
        assert mock_notify.call_args.kwargs["title"] == "Timeline Step Completed"

    @pytest.mark.asyncio
    async def test_new_step_defaults_to_pending_without_notification(
        self, mock_db, sample_application, pending_step
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.create_notification", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.get_step = AsyncMock(return_value=None)
            mock_repo.create_step = AsyncMock(return_value=pending_step)

            await upsert_timeline_step(
                mock_db, "AP36S25D451F2G", "letter_generated", None, None, False
            )

        kwargs = mock_repo.create_step.call_args.kwargs
        assert kwargs["status"] == StepStatus.PENDING
        assert kwargs["completed_at"] is None
        mock_notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_reopening_clears_completed_at(
        self, mock_db, sample_application, completed_step
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.create_notification", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.get_step = AsyncMock(return_value=completed_step)

            result = await upsert_timeline_step(
                mock_db, "AP36S25D451F2G", "letter_generated", "pending", None, False
            )

        assert result.status == StepStatus.PENDING
        assert result.completed_at is None
        assert result.data == {"note": "sent"}
        assert mock_notify.call_args.kwargs["title"] == "Timeline Step Updated"

    @pytest.mark.asyncio
    async def test_recompleting_keeps_original_stamp(
        self, mock_db, sample_application, completed_step
    ):
        original = completed_step.completed_at

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.create_notification", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_application = AsyncMock(return_value=sample_application)
            mock_repo.get_step = AsyncMock(return_value=completed_step)

            result = await upsert_timeline_step(
                mock_db, "AP36S25D451F2G", "letter_generated", "completed", {"note": "x"}, True
            )

        assert result.completed_at == original
        assert result.data == {"note": "x"}
        mock_notify.assert_not_called()
