"""
Quotations Router

Endpoints:
- GET    /quotations                              - Own quotations (all for admins)
- POST   /quotations/public                       - Public quote request
- POST   /quotations                              - Create for the caller
- GET    /quotations/public/{id}                  - Public quote lookup
- GET    /quotations/{id}                         - Quote detail
- PUT    /quotations/{id}                         - Update (admin)
- DELETE /quotations/{id}                         - Delete (admin)
- POST   /quotations/{id}/create-payment-intent   - Stripe checkout
- PATCH  /quotations/{id}/status                  - Change status
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user, get_current_user
from app.core.database import get_db
from app.core.rate_limit import STRICT_LIMIT, enforce_rate_limit, get_client_ip
from app.modules.payments.schemas import PaymentIntentResponse
from app.modules.quotations import service
from app.modules.quotations.schemas import (
    MessageResponse,
    PublicQuotationCreate,
    QuotationCreate,
    QuotationCreatedResponse,
    QuotationIntentRequest,
    QuotationResponse,
    QuotationStatusUpdate,
    QuotationUpdate,
)
from app.modules.shared import ServiceError, raise_http_error

router = APIRouter()


@router.get("", response_model=list[QuotationResponse])
async def list_quotations(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[QuotationResponse]:
    quotations = await service.list_quotations(db, user)
    return [QuotationResponse.model_validate(q) for q in quotations]


@router.post("/public", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def create_public_quotation(
    body: PublicQuotationCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> QuotationResponse:
    await enforce_rate_limit(f"quotation:{get_client_ip(request)}", *STRICT_LIMIT)

    try:
        quotation = await service.create_public_quotation(db, body)
    except ServiceError as e:
        raise_http_error(e)

    return QuotationResponse.model_validate(quotation)


@router.post("", response_model=QuotationCreatedResponse)
async def create_quotation(
    body: QuotationCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> QuotationCreatedResponse:
    try:
        quotation = await service.create_quotation(db, user, body.amount, body.description)
    except ServiceError as e:
        raise_http_error(e)

    return QuotationCreatedResponse(id=quotation.id, message=service.QUOTATION_CREATED_MESSAGE)


@router.get("/public/{quote_id}", response_model=QuotationResponse)
async def get_public_quotation(
    quote_id: str,
    db: AsyncSession = Depends(get_db),
) -> QuotationResponse:
    try:
        quotation = await service.get_quotation(db, quote_id)
    except ServiceError as e:
        raise_http_error(e)

    return QuotationResponse.model_validate(quotation)


@router.get("/{quote_id}", response_model=QuotationResponse)
async def get_quotation(
    quote_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> QuotationResponse:
    try:
        quotation = await service.get_accessible_quotation(db, quote_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return QuotationResponse.model_validate(quotation)


@router.put("/{quote_id}", response_model=QuotationResponse)
async def update_quotation(
    quote_id: str,
    body: QuotationUpdate,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> QuotationResponse:
    try:
        quotation = await service.update_quotation(db, quote_id, body)
    except ServiceError as e:
        raise_http_error(e)

    return QuotationResponse.model_validate(quotation)


@router.delete("/{quote_id}", response_model=MessageResponse)
async def delete_quotation(
    quote_id: str,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.delete_quotation(db, quote_id)
    except ServiceError as e:
        raise_http_error(e)

    return MessageResponse(message="Quotation deleted successfully")


@router.post("/{quote_id}/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    quote_id: str,
    body: QuotationIntentRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaymentIntentResponse:
    try:
        intent = await service.create_intent(db, quote_id, user, body.amount if body else None)
    except ServiceError as e:
        raise_http_error(e)

    return PaymentIntentResponse(**intent)


@router.patch("/{quote_id}/status", response_model=MessageResponse)
async def update_status(
    quote_id: str,
    body: QuotationStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.update_status(db, quote_id, user, body.status)
    except ServiceError as e:
        raise_http_error(e)

    return MessageResponse(message="Quotation status updated successfully")
