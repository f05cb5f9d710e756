"""
Payments Repository
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.applications.models import ApplicationPayment
from app.modules.payments.models import Receipt


async def get_payment(db: AsyncSession, payment_id: str) -> ApplicationPayment | None:
    return await db.get(ApplicationPayment, payment_id)


async def get_receipt_for_payment(db: AsyncSession, payment_id: str) -> Receipt | None:
    result = await db.execute(select(Receipt).where(Receipt.payment_id == payment_id))
    return result.scalar_one_or_none()


async def receipt_number_exists(db: AsyncSession, receipt_number: str) -> bool:
    result = await db.execute(select(Receipt.id).where(Receipt.receipt_number == receipt_number))
    return result.scalar_one_or_none() is not None


async def create_receipt(db: AsyncSession, payment: ApplicationPayment, receipt_number: str, items: list) -> Receipt:
    receipt = Receipt(
        receipt_number=receipt_number,
        payment_id=payment.id,
        application_id=payment.application_id,
        user_id=str(payment.user_id),
        amount=payment.amount,
        payment_type=payment.payment_type,
        items=items,
    )
    db.add(receipt)
    await db.flush()
    await db.refresh(receipt)
    return receipt
