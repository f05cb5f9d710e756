"""
Applications Router

Endpoints:
- GET    /applications                                   - List with progress
- GET    /applications/check-retaker                     - Has the caller applied before
- GET    /applications/{id}                              - Application detail
- POST   /applications                                   - Submit (multipart, three documents)
- PATCH  /applications/{id}                              - Change status (admin)
- POST   /applications/{id}/payments                     - Open a payment
- GET    /applications/{id}/payments                     - Payments, newest first
- GET    /applications/{id}/processing-accounts          - Accounts (creates the defaults)
- POST   /applications/{id}/processing-accounts          - Add an account
- PUT    /applications/{id}/processing-accounts/{aid}    - Update an account
- DELETE /applications/{id}/processing-accounts/{aid}    - Delete an account
- GET    /applications/{id}/timeline-steps               - Timeline step rows
- PUT    /applications/{id}/timeline-steps/{step_key}    - Upsert a step (admin)
"""

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user, get_current_user
from app.core.database import get_db
from app.modules.applications import service
from app.modules.applications.schemas import (
    ApplicationCreatedResponse,
    ApplicationResponse,
    ApplicationStatusUpdate,
    ApplicationSummary,
    MessageResponse,
    PaymentCreate,
    PaymentResponse,
    ProcessingAccountCreate,
    ProcessingAccountResponse,
    ProcessingAccountUpdate,
    RetakerResponse,
    TimelineStepResponse,
    TimelineStepUpdate,
)
from app.modules.applications.service import APPLICATION_SUBMITTED_MESSAGE, UploadedDocuments
from app.modules.shared import ServiceError, raise_http_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[ApplicationSummary])
async def list_applications(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationSummary]:
    return await service.list_applications(db, user)


@router.get("/check-retaker", response_model=RetakerResponse)
async def check_retaker(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RetakerResponse:
    return RetakerResponse(is_retaker=await service.is_retaker(db, user.id))


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = await service.get_accessible_application(db, application_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return ApplicationResponse.model_validate(application)


@router.post("", response_model=ApplicationCreatedResponse)
async def create_application(
    request: Request,
    picture: UploadFile | None = File(None),
    diploma: UploadFile | None = File(None),
    passport: UploadFile | None = File(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationCreatedResponse:
    """
    Submit an application.

    The applicant fields arrive as plain form fields next to the three
    document uploads.

    Raises:
        HTTPException 400: Missing document or disallowed file type
        HTTPException 413: Document too large
    """
    form = await request.form()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}

    try:
        application = await service.create_application(
            db,
            user,
            fields,
            UploadedDocuments(picture=picture, diploma=diploma, passport=passport),
        )
    except ServiceError as e:
        raise_http_error(e)

    return ApplicationCreatedResponse(id=application.id, message=APPLICATION_SUBMITTED_MESSAGE)


@router.patch("/{application_id}", response_model=MessageResponse)
async def update_application(
    application_id: str,
    body: ApplicationStatusUpdate,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.update_status(db, application_id, body.status)
    except ServiceError as e:
        raise_http_error(e)

    logger.info(f"Admin {admin.email} set application {application_id} to {body.status}")
    return MessageResponse(message="Application updated successfully")


# ============================================================================
# Payments
# ============================================================================


@router.post("/{application_id}/payments", response_model=PaymentResponse)
async def create_payment(
    application_id: str,
    body: PaymentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    try:
        payment = await service.create_payment(
            db, application_id, user, body.payment_type, body.amount
        )
    except ServiceError as e:
        raise_http_error(e)

    return PaymentResponse.model_validate(payment)


@router.get("/{application_id}/payments", response_model=list[PaymentResponse])
async def list_payments(
    application_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[PaymentResponse]:
    try:
        payments = await service.list_payments(db, application_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return [PaymentResponse.model_validate(p) for p in payments]


# ============================================================================
# Processing accounts
# ============================================================================


@router.get(
    "/{application_id}/processing-accounts",
    response_model=list[ProcessingAccountResponse],
)
async def list_processing_accounts(
    application_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ProcessingAccountResponse]:
    try:
        accounts = await service.list_processing_accounts(db, application_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return [ProcessingAccountResponse.model_validate(a) for a in accounts]


@router.post(
    "/{application_id}/processing-accounts",
    response_model=ProcessingAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_processing_account(
    application_id: str,
    body: ProcessingAccountCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProcessingAccountResponse:
    try:
        account = await service.create_processing_account(db, application_id, user, body)
    except ServiceError as e:
        raise_http_error(e)

    return ProcessingAccountResponse.model_validate(account)


@router.put(
    "/{application_id}/processing-accounts/{account_id}",
    response_model=ProcessingAccountResponse,
)
async def update_processing_account(
    application_id: str,
    account_id: str,
    body: ProcessingAccountUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProcessingAccountResponse:
    try:
        account = await service.update_processing_account(
            db, application_id, account_id, user, body
        )
    except ServiceError as e:
        raise_http_error(e)

    return ProcessingAccountResponse.model_validate(account)


@router.delete(
    "/{application_id}/processing-accounts/{account_id}",
    response_model=MessageResponse,
)
async def delete_processing_account(
    application_id: str,
    account_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.delete_processing_account(db, application_id, account_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return MessageResponse(message="Processing account deleted successfully")


# ============================================================================
# Timeline steps
# ============================================================================


@router.get("/{application_id}/timeline-steps", response_model=list[TimelineStepResponse])
async def list_timeline_steps(
    application_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[TimelineStepResponse]:
    try:
        steps = await service.list_timeline_steps(db, application_id, user)
    except ServiceError as e:
        raise_http_error(e)

    return [TimelineStepResponse.model_validate(s) for s in steps]


@router.put("/{application_id}/timeline-steps/{step_key}", response_model=TimelineStepResponse)
async def upsert_timeline_step(
    application_id: str,
    step_key: str,
    body: TimelineStepUpdate,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> TimelineStepResponse:
    try:
        step = await service.upsert_timeline_step(
            db,
            application_id,
            step_key,
            status=body.status,
            data=body.data,
            data_given="data" in body.model_fields_set,
        )
    except ServiceError as e:
        raise_http_error(e)

    return TimelineStepResponse.model_validate(step)
