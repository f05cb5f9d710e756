"""
Applications Repository

Database operations for applications, their payments, timeline steps and
processing accounts.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.applications.models import (
    Application,
    ApplicationPayment,
    ApplicationStatus,
    PaymentStatus,
    PaymentType,
    ProcessingAccount,
    StepStatus,
    TimelineStep,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Applications
# ============================================================================


async def application_id_exists(db: AsyncSession, application_id: str) -> bool:
    result = await db.execute(select(Application.id).where(Application.id == application_id))
    return result.scalar_one_or_none() is not None


async def create_application(
    db: AsyncSession,
    *,
    application_id: str,
    user_id: str,
    profile: dict,
    picture_path: str,
    diploma_path: str,
    passport_path: str,
) -> Application:
    application = Application(
        id=application_id,
        user_id=str(user_id),
        picture_path=picture_path,
        diploma_path=diploma_path,
        passport_path=passport_path,
        status=ApplicationStatus.PENDING,
        **profile,
    )
    db.add(application)
    await db.flush()
    await db.refresh(application)

    logger.info(f"Created application {application.id} for user {user_id}")
    return application


async def get_application(db: AsyncSession, application_id: str) -> Application | None:
    return await db.get(Application, application_id)


async def list_applications(db: AsyncSession, user_id: str | None = None) -> list[Application]:
    """List applications newest first; all of them when user_id is None."""
    stmt = select(Application)
    if user_id is not None:
        stmt = stmt.where(Application.user_id == str(user_id))
    stmt = stmt.order_by(Application.created_at.desc())

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_applications(
    db: AsyncSession,
    user_id: str | None = None,
    status: ApplicationStatus | None = None,
) -> int:
    stmt = select(func.count()).select_from(Application)
    if user_id is not None:
        stmt = stmt.where(Application.user_id == str(user_id))
    if status is not None:
        stmt = stmt.where(Application.status == status)

    result = await db.execute(stmt)
    return result.scalar_one()


async def update_status(
    db: AsyncSession, application: Application, status: ApplicationStatus
) -> Application:
    application.status = status
    await db.flush()
    return application


async def _group_by_application(db: AsyncSession, model, application_ids: list[str]) -> dict:
    grouped: dict[str, list] = defaultdict(list)
    if not application_ids:
        return grouped

    result = await db.execute(select(model).where(model.application_id.in_(application_ids)))
    for row in result.scalars().all():
        grouped[row.application_id].append(row)
    return grouped


async def steps_by_application(db: AsyncSession, application_ids: list[str]) -> dict[str, list]:
    return await _group_by_application(db, TimelineStep, application_ids)


async def payments_by_application(db: AsyncSession, application_ids: list[str]) -> dict[str, list]:
    return await _group_by_application(db, ApplicationPayment, application_ids)


async def accounts_by_application(db: AsyncSession, application_ids: list[str]) -> dict[str, list]:
    return await _group_by_application(db, ProcessingAccount, application_ids)


# ============================================================================
# Payments
# ============================================================================


async def payment_id_exists(db: AsyncSession, payment_id: str) -> bool:
    result = await db.execute(
        select(ApplicationPayment.id).where(ApplicationPayment.id == payment_id)
    )
    return result.scalar_one_or_none() is not None


async def get_payment(db: AsyncSession, payment_id: str) -> ApplicationPayment | None:
    return await db.get(ApplicationPayment, payment_id)


async def get_paid_payment(
    db: AsyncSession, application_id: str, payment_type: PaymentType
) -> ApplicationPayment | None:
    result = await db.execute(
        select(ApplicationPayment)
        .where(
            ApplicationPayment.application_id == application_id,
            ApplicationPayment.payment_type == payment_type,
            ApplicationPayment.status == PaymentStatus.PAID,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_payments(db: AsyncSession, application_id: str) -> list[ApplicationPayment]:
    result = await db.execute(
        select(ApplicationPayment)
        .where(ApplicationPayment.application_id == application_id)
        .order_by(ApplicationPayment.created_at.desc())
    )
    return list(result.scalars().all())


async def create_payment(
    db: AsyncSession,
    *,
    payment_id: str,
    application_id: str,
    user_id: str,
    payment_type: PaymentType,
    amount: Decimal,
) -> ApplicationPayment:
    payment = ApplicationPayment(
        id=payment_id,
        application_id=application_id,
        user_id=str(user_id),
        payment_type=payment_type,
        amount=amount,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await db.flush()
    await db.refresh(payment)
    return payment


async def sum_paid_amount(db: AsyncSession) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(ApplicationPayment.amount), 0)).where(
            ApplicationPayment.status == PaymentStatus.PAID
        )
    )
    return Decimal(result.scalar_one())


# ============================================================================
# Timeline steps
# ============================================================================


async def list_steps(db: AsyncSession, application_id: str) -> list[TimelineStep]:
    result = await db.execute(
        select(TimelineStep)
        .where(TimelineStep.application_id == application_id)
        .order_by(TimelineStep.created_at.asc())
    )
    return list(result.scalars().all())


async def get_step(db: AsyncSession, application_id: str, step_key: str) -> TimelineStep | None:
    result = await db.execute(
        select(TimelineStep).where(
            TimelineStep.application_id == application_id,
            TimelineStep.step_key == step_key,
        )
    )
    return result.scalar_one_or_none()


async def create_step(
    db: AsyncSession,
    *,
    application_id: str,
    step_key: str,
    step_name: str,
    status: StepStatus,
    data: dict | None,
    completed_at,
) -> TimelineStep:
    step = TimelineStep(
        application_id=application_id,
        step_key=step_key,
        step_name=step_name,
        status=status,
        data=data,
        completed_at=completed_at,
    )
    db.add(step)
    await db.flush()
    await db.refresh(step)
    return step


# ============================================================================
# Processing accounts
# ============================================================================


async def list_accounts(db: AsyncSession, application_id: str) -> list[ProcessingAccount]:
    result = await db.execute(
        select(ProcessingAccount)
        .where(ProcessingAccount.application_id == application_id)
        .order_by(ProcessingAccount.created_at.desc())
    )
    return list(result.scalars().all())


async def get_account(
    db: AsyncSession, application_id: str, account_id: str
) -> ProcessingAccount | None:
    result = await db.execute(
        select(ProcessingAccount).where(
            ProcessingAccount.id == account_id,
            ProcessingAccount.application_id == application_id,
        )
    )
    return result.scalar_one_or_none()


async def create_account(db: AsyncSession, **fields) -> ProcessingAccount:
    account = ProcessingAccount(**fields)
    db.add(account)
    await db.flush()
    await db.refresh(account)
    return account


async def delete_account(db: AsyncSession, account: ProcessingAccount) -> None:
    await db.execute(delete(ProcessingAccount).where(ProcessingAccount.id == account.id))
