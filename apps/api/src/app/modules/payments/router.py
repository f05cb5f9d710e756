"""
Payments Router

Endpoints:
- POST /payments/{id}/create-intent  - Open a Stripe PaymentIntent
- POST /payments/{id}/complete       - Mark paid and issue the receipt
- GET  /payments/{id}/receipt        - Receipt of a paid payment
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.modules.applications.schemas import PaymentResponse
from app.modules.payments import service
from app.modules.payments.schemas import (
    CompletePaymentRequest,
    CompletePaymentResponse,
    PaymentIntentResponse,
    ReceiptResponse,
)
from app.modules.shared import ServiceError, raise_http_error

router = APIRouter()


@router.post("/{payment_id}/create-intent", response_model=PaymentIntentResponse)
async def create_intent(
    payment_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaymentIntentResponse:
    try:
        intent = await service.create_intent(db, payment_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return PaymentIntentResponse(**intent)


@router.post("/{payment_id}/complete", response_model=CompletePaymentResponse)
async def complete_payment(
    payment_id: str,
    body: CompletePaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CompletePaymentResponse:
    try:
        completed = await service.complete_payment(
            db,
            payment_id,
            user,
            transaction_id=body.transaction_id,
            payment_intent_id=body.stripe_payment_intent_id,
            payment_method=body.payment_method,
        )
    except ServiceError as e:
        raise_http_error(e)

    return CompletePaymentResponse(
        message=service.PAYMENT_COMPLETED_MESSAGE,
        payment=PaymentResponse.model_validate(completed.payment),
        receipt=ReceiptResponse.model_validate(completed.receipt),
    )


@router.get("/{payment_id}/receipt", response_model=ReceiptResponse)
async def get_receipt(
    payment_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ReceiptResponse:
    try:
        receipt = await service.get_receipt(db, payment_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return ReceiptResponse.model_validate(receipt)
