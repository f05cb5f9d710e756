"""
Applications Service Layer

Business logic for NCLEX applications:

1. Submission: stores the three required documents, creates the
   application, then (best effort) syncs the applicant's saved details and
   opens the default Gmail / Pearson VUE processing accounts.
2. Listing with progress: steps, payments and accounts are loaded in three
   batched queries and summarized by `compute_progress`.
3. Admin status changes and timeline step updates, each notifying the
   applicant when something actually changed.
4. Payments due per stage and processing account management.

Access rule everywhere: the owner or an admin.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.modules.applications import repository
from app.modules.applications.models import (
    AccountType,
    Application,
    ApplicationPayment,
    ApplicationStatus,
    PaymentType,
    ProcessingAccount,
    StepStatus,
    TimelineStep,
)
from app.modules.applications.progress import ProgressSummary, compute_progress
from app.modules.applications.schemas import (
    ApplicationSummary,
    ProcessingAccountCreate,
    ProcessingAccountUpdate,
)
from app.modules.files.storage import check_file_type, delete_file, save_upload
from app.modules.notifications.models import NotificationType
from app.modules.notifications.service import create_notification
from app.modules.shared import (
    AccessDeniedError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)
from app.modules.shared.identifiers import (
    generate_application_id,
    generate_gmail_address,
    generate_payment_id,
    generate_unique,
)
from app.modules.shared.profile import normalize_profile
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    ApplicationStatus.APPROVED: "Your application has been approved! 🎉",
    ApplicationStatus.REJECTED: "Your application has been rejected",
    ApplicationStatus.PENDING: "Your application is now pending review",
    ApplicationStatus.IN_PROGRESS: "Your application is now in progress",
    ApplicationStatus.COMPLETED: "Your application has been completed",
    ApplicationStatus.INITIATED: "Your application has been initiated",
}

ACCOUNT_TYPE_ORDER = {
    AccountType.GMAIL: 1,
    AccountType.PEARSON_VUE: 2,
    AccountType.CUSTOM: 3,
}

APPLICATION_SUBMITTED_MESSAGE = "Application submitted successfully"


# ============================================================================
# Errors
# ============================================================================


class DocumentsRequiredError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Picture, diploma and passport are all required",
            error_code="DOCUMENTS_REQUIRED",
            status_code=400,
        )


class InvalidPaymentTypeError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Invalid payment type",
            error_code="INVALID_PAYMENT_TYPE",
            status_code=400,
        )


class PaymentAlreadyCompletedError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Payment already completed for this type",
            error_code="PAYMENT_ALREADY_COMPLETED",
            status_code=400,
        )


@dataclass
class UploadedDocuments:
    picture: UploadFile | None
    diploma: UploadFile | None
    passport: UploadFile | None

    @property
    def complete(self) -> bool:
        return bool(self.picture and self.diploma and self.passport)

    def by_type(self) -> dict[str, UploadFile]:
        return {"picture": self.picture, "diploma": self.diploma, "passport": self.passport}


# ============================================================================
# Access
# ============================================================================


async def get_accessible_application(
    db: AsyncSession, application_id: str, user: CurrentUser
) -> Application:
    """
    Load an application the caller may see.

    Raises:
        NotFoundError: No such application
        AccessDeniedError: Caller is neither the owner nor an admin
    """
    application = await repository.get_application(db, application_id)
    if application is None:
        raise NotFoundError("Application")

    if not user.is_admin and str(application.user_id) != str(user.id):
        raise AccessDeniedError()

    return application


async def _get_application(db: AsyncSession, application_id: str) -> Application:
    application = await repository.get_application(db, application_id)
    if application is None:
        raise NotFoundError("Application")
    return application


# ============================================================================
# Listing
# ============================================================================


def display_email(application: Application, accounts: list[ProcessingAccount]) -> str | None:
    """The oldest Gmail processing account's address, else the form email."""
    gmail = [a for a in accounts if a.account_type == AccountType.GMAIL]
    if gmail:
        oldest = min(gmail, key=lambda a: (a.created_at is not None, a.created_at or 0))
        return oldest.email
    return application.email


def summarize(
    application: Application,
    steps: list[TimelineStep],
    payments: list[ApplicationPayment],
    accounts: list[ProcessingAccount],
) -> ApplicationSummary:
    progress: ProgressSummary = compute_progress(application, steps, payments, accounts)
    return ApplicationSummary(
        id=application.id,
        user_id=str(application.user_id),
        first_name=application.first_name,
        last_name=application.last_name,
        email=display_email(application, accounts),
        status=application.status.value,
        created_at=application.created_at,
        updated_at=application.updated_at,
        current_progress=progress.current_progress,
        next_step=progress.next_step,
        latest_update=progress.latest_update,
        progress_percentage=progress.progress_percentage,
        completed_steps=progress.completed_steps,
        total_steps=progress.total_steps,
        is_timeline_completed=progress.is_timeline_completed,
    )


async def list_applications(db: AsyncSession, user: CurrentUser) -> list[ApplicationSummary]:
    """Own applications (all for admins), newest first, with progress."""
    applications = await repository.list_applications(db, None if user.is_admin else user.id)
    ids = [application.id for application in applications]

    steps = await repository.steps_by_application(db, ids)
    payments = await repository.payments_by_application(db, ids)
    accounts = await repository.accounts_by_application(db, ids)

    return [
        summarize(
            application,
            steps.get(application.id, []),
            payments.get(application.id, []),
            accounts.get(application.id, []),
        )
        for application in applications
    ]


async def is_retaker(db: AsyncSession, user_id: str) -> bool:
    return await repository.count_applications(db, user_id=user_id) > 0


# ============================================================================
# Submission
# ============================================================================


async def create_application(
    db: AsyncSession,
    user: CurrentUser,
    form: dict,
    documents: UploadedDocuments,
) -> Application:
    """
    Submit a new application.

    Raises:
        DocumentsRequiredError: A document is missing
        InvalidFileTypeError / FileTooLargeError: A document was rejected
    """
    if not documents.complete:
        raise DocumentsRequiredError()

    uploads = documents.by_type()
    for upload in uploads.values():
        check_file_type(upload)

    saved: dict[str, str] = {}
    try:
        for doc_type, upload in uploads.items():
            saved[doc_type], _ = await save_upload(user.id, upload, prefix=doc_type)

        application_id = await generate_unique(
            generate_application_id,
            lambda candidate: repository.application_id_exists(db, candidate),
            "application ID",
        )
        profile = normalize_profile(form)

        application = await repository.create_application(
            db,
            application_id=application_id,
            user_id=user.id,
            profile=profile,
            picture_path=saved["picture"],
            diploma_path=saved["diploma"],
            passport_path=saved["passport"],
        )
    except Exception:
        for path in saved.values():
            await delete_file(path)
        raise

    await sync_user_details(db, user.id, profile)
    await ensure_default_accounts(db, application, created_by=user.id)

    return application


async def sync_user_details(db: AsyncSession, user_id: str, profile: dict) -> None:
    """Copy the submitted form into the user's saved details. Best effort."""
    try:
        async with db.begin_nested():
            await UserRepository.upsert_details(db, user_id, profile)
    except Exception as e:
        logger.error(f"Error syncing application data to user details for {user_id}: {e}")


async def ensure_default_accounts(
    db: AsyncSession,
    application: Application,
    created_by: str | None = None,
    existing: list[ProcessingAccount] | None = None,
) -> list[ProcessingAccount]:
    """
    Create the Gmail and Pearson VUE accounts when missing. Best effort.

    Both share the generated Gmail address and use the owner's GRIT ID as
    password. Nothing is created without a GRIT ID and a first and last
    name on the application.

    Returns:
        The accounts created
    """
    created: list[ProcessingAccount] = []
    try:
        if existing is None:
            existing = await repository.list_accounts(db, application.id)
        existing_types = {account.account_type for account in existing}
        missing = [
            account_type
            for account_type in (AccountType.GMAIL, AccountType.PEARSON_VUE)
            if account_type not in existing_types
        ]
        if not missing:
            return created

        owner = await UserRepository.get_by_id(db, application.user_id)
        if owner is None or not owner.grit_id:
            return created
        if not application.first_name or not application.last_name:
            return created

        email = generate_gmail_address(
            application.first_name, application.middle_name, application.last_name
        )
        async with db.begin_nested():
            for account_type in missing:
                account = await repository.create_account(
                    db,
                    application_id=application.id,
                    account_type=account_type,
                    email=email,
                    password=owner.grit_id,
                    status="active",
                    created_by=str(created_by or application.user_id),
                )
                created.append(account)
    except Exception as e:
        logger.error(f"Error creating default processing accounts for {application.id}: {e}")
        return []

    return created


# ============================================================================
# Status
# ============================================================================


def status_message(status: ApplicationStatus) -> str:
    return STATUS_MESSAGES.get(
        status, f"Your application status has been changed to {status.value}"
    )


async def update_status(db: AsyncSession, application_id: str, status: str) -> Application:
    """
    Change an application's status and notify the applicant.

    Raises:
        ValidationFailedError: Unknown status
        NotFoundError: No such application
    """
    try:
        new_status = ApplicationStatus(status)
    except ValueError as e:
        raise ValidationFailedError(f"Invalid status: {status}", "INVALID_STATUS") from e

    application = await _get_application(db, application_id)
    previous = application.status

    await repository.update_status(db, application, new_status)

    if previous != new_status:
        await create_notification(
            db,
            user_id=str(application.user_id),
            application_id=application.id,
            notification_type=NotificationType.STATUS_CHANGE,
            title="Application Status Updated",
            message=status_message(new_status),
        )

    return application


# ============================================================================
# Payments
# ============================================================================


def _parse_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationFailedError("Amount must be greater than zero", "INVALID_AMOUNT") from e
    if not value.is_finite() or value <= 0:
        raise ValidationFailedError("Amount must be greater than zero", "INVALID_AMOUNT")
    return value


async def create_payment(
    db: AsyncSession,
    application_id: str,
    user: CurrentUser,
    payment_type: str,
    amount,
) -> ApplicationPayment:
    """
    Open a pending payment for one stage of an application.

    Raises:
        InvalidPaymentTypeError: Not step1, step2 or full
        ValidationFailedError: Amount is not positive
        PaymentAlreadyCompletedError: A paid payment of this type exists
    """
    application = await get_accessible_application(db, application_id, user)

    try:
        kind = PaymentType(payment_type)
    except ValueError as e:
        raise InvalidPaymentTypeError() from e
    value = _parse_amount(amount)

    if await repository.get_paid_payment(db, application.id, kind):
        raise PaymentAlreadyCompletedError()

    payment_id = await generate_unique(
        generate_payment_id,
        lambda candidate: repository.payment_id_exists(db, candidate),
        "payment ID",
    )
    payment = await repository.create_payment(
        db,
        payment_id=payment_id,
        application_id=application.id,
        user_id=user.id,
        payment_type=kind,
        amount=value,
    )

    logger.info(f"Created {kind.value} payment {payment_id} for application {application.id}")
    return payment


async def list_payments(
    db: AsyncSession, application_id: str, user: CurrentUser
) -> list[ApplicationPayment]:
    application = await get_accessible_application(db, application_id, user)
    return await repository.list_payments(db, application.id)


# ============================================================================
# Processing accounts
# ============================================================================


def _sort_accounts(accounts: list[ProcessingAccount]) -> list[ProcessingAccount]:
    newest_first = sorted(
        accounts,
        key=lambda a: (a.created_at is not None, a.created_at or 0),
        reverse=True,
    )
    return sorted(newest_first, key=lambda a: ACCOUNT_TYPE_ORDER.get(a.account_type, 99))


async def list_processing_accounts(
    db: AsyncSession, application_id: str, user: CurrentUser
) -> list[ProcessingAccount]:
    """Accounts of an application, default ones first, creating them when missing."""
    application = await get_accessible_application(db, application_id, user)
    accounts = await repository.list_accounts(db, application.id)
    accounts += await ensure_default_accounts(db, application, existing=accounts)
    return _sort_accounts(accounts)


def _validate_account_fields(
    account_type: AccountType, name: str | None, email: str | None, password: str | None
) -> None:
    if account_type == AccountType.CUSTOM:
        if not name or not email or not password:
            raise ValidationFailedError(
                "Name, email/username, and password are required for custom accounts"
            )
    elif not email or not password:
        raise ValidationFailedError("Email and password are required")


def _parse_account_type(value: str) -> AccountType:
    try:
        return AccountType(value)
    except ValueError as e:
        raise ValidationFailedError(
            "Invalid account type. Must be gmail, pearson_vue, or custom",
            "INVALID_ACCOUNT_TYPE",
        ) from e


async def create_processing_account(
    db: AsyncSession,
    application_id: str,
    user: CurrentUser,
    body: ProcessingAccountCreate,
) -> ProcessingAccount:
    """
    Add a processing account. Clients may only add custom accounts.

    Raises:
        AccessDeniedError: Not the owner, or a client adding a non-custom type
        ValidationFailedError: Missing credentials or unknown type
    """
    application = await get_accessible_application(db, application_id, user)

    if not user.is_admin and body.account_type and body.account_type != AccountType.CUSTOM.value:
        raise AccessDeniedError("Users can only add custom accounts")

    account_type = AccountType.CUSTOM
    if user.is_admin and body.account_type:
        account_type = _parse_account_type(body.account_type)

    _validate_account_fields(account_type, body.name, body.email, body.password)

    return await repository.create_account(
        db,
        application_id=application.id,
        account_type=account_type,
        name=body.name or None,
        link=body.link or None,
        email=body.email,
        password=body.password,
        security_question_1=body.security_question_1 or None,
        security_question_2=body.security_question_2 or None,
        security_question_3=body.security_question_3 or None,
        status="active",
        created_by=str(user.id),
    )


async def _get_account(db: AsyncSession, application_id: str, account_id: str) -> ProcessingAccount:
    account = await repository.get_account(db, application_id, account_id)
    if account is None:
        raise NotFoundError("Processing account")
    return account


async def update_processing_account(
    db: AsyncSession,
    application_id: str,
    account_id: str,
    user: CurrentUser,
    body: ProcessingAccountUpdate,
) -> ProcessingAccount:
    """Partially update an account on an application the caller may see."""
    account = await _get_account(db, application_id, account_id)
    await get_accessible_application(db, application_id, user)

    changes = body.model_dump(exclude_unset=True)
    if "account_type" in changes:
        changes["account_type"] = (
            _parse_account_type(changes["account_type"])
            if changes["account_type"]
            else account.account_type
        )

    merged = {
        field: changes.get(field, getattr(account, field))
        for field in ("account_type", "name", "email", "password")
    }
    _validate_account_fields(
        merged["account_type"], merged["name"], merged["email"], merged["password"]
    )

    for field, value in changes.items():
        if field == "status" and not value:
            continue
        setattr(account, field, value)

    await db.flush()
    await db.refresh(account)
    return account


async def delete_processing_account(
    db: AsyncSession, application_id: str, account_id: str, user: CurrentUser
) -> None:
    """
    Delete an account. Clients may only delete custom accounts they created.

    Raises:
        NotFoundError: No such account on this application
        AccessDeniedError: Client deleting someone else's or a default account
    """
    account = await _get_account(db, application_id, account_id)

    if not user.is_admin:
        if str(account.created_by) != str(user.id):
            raise AccessDeniedError("You can only delete accounts you created")
        if account.account_type != AccountType.CUSTOM:
            raise AccessDeniedError("You can only delete custom accounts")

    await repository.delete_account(db, account)


# ============================================================================
# Timeline steps
# ============================================================================


def step_name_for(step_key: str) -> str:
    """'app_created' -> 'App Created'"""
    return " ".join(word[:1].upper() + word[1:] for word in step_key.split("_"))


async def list_timeline_steps(
    db: AsyncSession, application_id: str, user: CurrentUser
) -> list[TimelineStep]:
    application = await get_accessible_application(db, application_id, user)
    return await repository.list_steps(db, application.id)


async def upsert_timeline_step(
    db: AsyncSession,
    application_id: str,
    step_key: str,
    status: str | None,
    data: dict | None,
    data_given: bool,
) -> TimelineStep:
    """
    Create or update a timeline step (admin).

    completed_at is stamped when a step becomes completed (an existing stamp
    is kept) and cleared when it goes back to pending. A status change is
    notified to the applicant.

    Raises:
        NotFoundError: No such application
        ValidationFailedError: Unknown step status
    """
    new_status: StepStatus | None = None
    if status is not None:
        try:
            new_status = StepStatus(status)
        except ValueError as e:
            raise ValidationFailedError(
                f"Invalid step status: {status}", "INVALID_STEP_STATUS"
            ) from e

    application = await _get_application(db, application_id)
    step = await repository.get_step(db, application.id, step_key)
    step_name = step_name_for(step_key)
    now = datetime.now(UTC)

    previous = step.status if step is not None else None

    if step is None:
        resolved = new_status or StepStatus.PENDING
        step = await repository.create_step(
            db,
            application_id=application.id,
            step_key=step_key,
            step_name=step_name,
            status=resolved,
            data=data if data_given else None,
            completed_at=now if resolved == StepStatus.COMPLETED else None,
        )
    else:
        if new_status == StepStatus.COMPLETED:
            step.completed_at = step.completed_at or now
        elif new_status == StepStatus.PENDING:
            step.completed_at = None
        if new_status is not None:
            step.status = new_status
        if data_given:
            step.data = data
        await db.flush()
        await db.refresh(step)

    if previous != step.status:
        if step.status == StepStatus.COMPLETED:
            await create_notification(
                db,
                user_id=str(application.user_id),
                application_id=application.id,
                notification_type=NotificationType.TIMELINE_UPDATE,
                title="Timeline Step Completed",
                message=f'The step "{step_name}" has been completed for your application.',
            )
        elif step.status == StepStatus.PENDING and previous == StepStatus.COMPLETED:
            await create_notification(
                db,
                user_id=str(application.user_id),
                application_id=application.id,
                notification_type=NotificationType.TIMELINE_UPDATE,
                title="Timeline Step Updated",
                message=f'The step "{step_name}" has been marked as pending.',
            )

    return step
