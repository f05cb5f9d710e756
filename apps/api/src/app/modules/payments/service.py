"""
Payments Service Layer

Stripe checkout for application payments:

1. create_intent: opens a Stripe PaymentIntent for a pending payment.
2. complete_payment: called by the client after checkout. Verifies the
   intent when one is given, then runs the shared completion path.
3. Webhooks: `payment_intent.succeeded` runs the same completion path for
   application payments and marks quotations paid;
   `payment_intent.payment_failed` marks pending payments failed.

Completion is idempotent: the notification is only sent on the transition
to paid, and a payment that already has a receipt keeps it.
"""

import logging
from dataclasses import dataclass
from typing import Any

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.payments_gateway import (
    create_payment_intent,
    is_stripe_configured,
    retrieve_payment_intent,
)
from app.modules.applications.models import ApplicationPayment, PaymentStatus
from app.modules.notifications.models import NotificationType
from app.modules.notifications.service import create_notification
from app.modules.payments import repository
from app.modules.payments.models import Receipt
from app.modules.payments.receipts import (
    INTENT_DESCRIPTION_LABELS,
    PAYMENT_TYPE_LABELS,
    receipt_items,
)
from app.modules.quotations import repository as quotations_repository
from app.modules.quotations.models import QuotationStatus
from app.modules.shared import AccessDeniedError, NotFoundError, ServiceError
from app.modules.shared.identifiers import generate_receipt_number, generate_unique

logger = logging.getLogger(__name__)

PAYMENT_COMPLETED_MESSAGE = "Payment completed successfully"

EVENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_INTENT_FAILED = "payment_intent.payment_failed"


class StripeUnavailableError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable.",
            error_code="STRIPE_NOT_CONFIGURED",
            status_code=503,
        )


class PaymentNotPendingError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Payment is not pending",
            error_code="PAYMENT_NOT_PENDING",
            status_code=400,
        )


class PaymentIntentError(ServiceError):
    def __init__(self, message: str, error_code: str):
        super().__init__(message=message, error_code=error_code, status_code=400)


@dataclass
class CompletedPayment:
    payment: ApplicationPayment
    receipt: Receipt


# ============================================================================
# Access
# ============================================================================


async def get_accessible_payment(
    db: AsyncSession, payment_id: str, user: CurrentUser
) -> ApplicationPayment:
    """
    Raises:
        NotFoundError: No such payment
        AccessDeniedError: Not the payer and not an admin
    """
    payment = await repository.get_payment(db, payment_id)
    if payment is None:
        raise NotFoundError("Payment")

    if not user.is_admin and str(payment.user_id) != str(user.id):
        raise AccessDeniedError()

    return payment


# ============================================================================
# Checkout
# ============================================================================


def intent_description(payment: ApplicationPayment) -> str:
    label = INTENT_DESCRIPTION_LABELS.get(payment.payment_type, "Full")
    return f"NCLEX Application Payment - {label}"


def to_cents(amount) -> int:
    return int(round(float(amount) * 100))


async def create_intent(db: AsyncSession, payment_id: str, user: CurrentUser) -> dict[str, str]:
    """
    Open a Stripe PaymentIntent for a pending payment.

    Returns:
        {"client_secret": ..., "payment_intent_id": ...}

    Raises:
        StripeUnavailableError: No Stripe key configured
        PaymentNotPendingError: Payment is paid, failed or cancelled
    """
    if not is_stripe_configured():
        raise StripeUnavailableError()

    payment = await get_accessible_payment(db, payment_id, user)
    if payment.status != PaymentStatus.PENDING:
        raise PaymentNotPendingError()

    intent = await create_payment_intent(
        amount_cents=to_cents(payment.amount),
        metadata={
            "payment_id": payment.id,
            "application_id": payment.application_id,
            "user_id": str(payment.user_id),
            "payment_type": payment.payment_type.value,
        },
        description=intent_description(payment),
    )

    return {"client_secret": intent.client_secret, "payment_intent_id": intent.id}


async def _verify_intent(payment_intent_id: str) -> None:
    try:
        intent = await retrieve_payment_intent(payment_intent_id)
    except stripe.StripeError as e:
        logger.error(f"Error verifying payment intent {payment_intent_id}: {e}")
        raise PaymentIntentError("Invalid payment intent", "INVALID_PAYMENT_INTENT") from e

    if intent.status != "succeeded":
        raise PaymentIntentError(
            "Payment intent has not been completed", "PAYMENT_INTENT_NOT_SUCCEEDED"
        )


async def mark_paid(
    db: AsyncSession,
    payment: ApplicationPayment,
    *,
    payment_method: str = "stripe",
    transaction_id: str | None = None,
    payment_intent_id: str | None = None,
) -> CompletedPayment:
    """
    Mark a payment paid, notify on the transition and issue its receipt.

    Shared by the client completion endpoint and the Stripe webhook.
    """
    was_paid = payment.status == PaymentStatus.PAID

    payment.status = PaymentStatus.PAID
    payment.payment_method = payment_method
    if transaction_id:
        payment.transaction_id = transaction_id
    if payment_intent_id:
        payment.stripe_payment_intent_id = payment_intent_id
    await db.flush()

    if not was_paid:
        label = PAYMENT_TYPE_LABELS.get(payment.payment_type, "payment")
        await create_notification(
            db,
            user_id=str(payment.user_id),
            application_id=payment.application_id,
            notification_type=NotificationType.PAYMENT,
            title="Payment Successful",
            message=(
                f"Your {label} of ${float(payment.amount):.2f} has been processed successfully."
            ),
        )

    receipt = await repository.get_receipt_for_payment(db, payment.id)
    if receipt is None:
        receipt_number = await generate_unique(
            generate_receipt_number,
            lambda candidate: repository.receipt_number_exists(db, candidate),
            "receipt number",
        )
        receipt = await repository.create_receipt(
            db, payment, receipt_number, receipt_items(payment.payment_type)
        )
        logger.info(f"Issued receipt {receipt_number} for payment {payment.id}")

    return CompletedPayment(payment=payment, receipt=receipt)


async def complete_payment(
    db: AsyncSession,
    payment_id: str,
    user: CurrentUser,
    *,
    transaction_id: str | None = None,
    payment_intent_id: str | None = None,
    payment_method: str = "stripe",
) -> CompletedPayment:
    """
    Complete a payment after checkout.

    Raises:
        PaymentIntentError: The given intent is unknown or not succeeded
    """
    payment = await get_accessible_payment(db, payment_id, user)

    if payment_intent_id and is_stripe_configured():
        await _verify_intent(payment_intent_id)

    return await mark_paid(
        db,
        payment,
        payment_method=payment_method,
        transaction_id=transaction_id,
        payment_intent_id=payment_intent_id,
    )


async def get_receipt(db: AsyncSession, payment_id: str, user: CurrentUser) -> Receipt:
    payment = await get_accessible_payment(db, payment_id, user)
    receipt = await repository.get_receipt_for_payment(db, payment.id)
    if receipt is None:
        raise NotFoundError("Receipt")
    return receipt


# ============================================================================
# Webhooks
# ============================================================================


async def _handle_intent_succeeded(db: AsyncSession, intent: dict[str, Any]) -> None:
    metadata = intent.get("metadata") or {}
    logger.info(f"PaymentIntent succeeded: {intent.get('id')}")

    payment_id = metadata.get("payment_id")
    if payment_id:
        payment = await repository.get_payment(db, payment_id)
        if payment is not None and payment.status == PaymentStatus.PENDING:
            completed = await mark_paid(
                db, payment, payment_method="stripe", payment_intent_id=intent.get("id")
            )
            logger.info(
                f"Payment {payment_id} completed via webhook "
                f"(receipt {completed.receipt.receipt_number})"
            )

    quotation_id = metadata.get("quotation_id")
    if quotation_id:
        quotation = await quotations_repository.get_quotation(db, quotation_id)
        if quotation is not None and quotation.status != QuotationStatus.PAID:
            quotation.status = QuotationStatus.PAID
            await db.flush()
            logger.info(f"Quotation {quotation_id} marked as paid via webhook")


async def _handle_intent_failed(db: AsyncSession, intent: dict[str, Any]) -> None:
    metadata = intent.get("metadata") or {}
    logger.warning(f"PaymentIntent failed: {intent.get('id')}")

    payment_id = metadata.get("payment_id")
    if not payment_id:
        return

    payment = await repository.get_payment(db, payment_id)
    if payment is not None and payment.status == PaymentStatus.PENDING:
        payment.status = PaymentStatus.FAILED
        payment.stripe_payment_intent_id = intent.get("id")
        await db.flush()
        logger.info(f"Payment {payment_id} marked as failed via webhook")


async def handle_webhook_event(db: AsyncSession, event: dict[str, Any]) -> None:
    """Apply a Stripe event to payments and quotations."""
    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}

    if event_type == EVENT_INTENT_SUCCEEDED:
        await _handle_intent_succeeded(db, intent)
    elif event_type == EVENT_INTENT_FAILED:
        await _handle_intent_failed(db, intent)
    else:
        logger.warning(f"Unhandled Stripe event type: {event_type}")
