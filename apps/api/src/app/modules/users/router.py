"""
Self-Service User Router

Endpoints:
- GET  /user/details           - Saved applicant details (or null)
- POST /user/details           - Save applicant details
- GET  /user/documents         - Stored identity documents
- POST /user/documents/{type}  - Upload picture, diploma or passport
"""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.modules.shared import ServiceError, raise_http_error
from app.modules.shared.profile import ApplicantProfileSchema
from app.modules.users import service
from app.modules.users.schemas import (
    DocumentResponse,
    DocumentUploadResponse,
    UserDetailsResponse,
)

router = APIRouter()


@router.get("/details", response_model=UserDetailsResponse | None)
async def get_details(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserDetailsResponse | None:
    details = await service.get_details(db, user.id)
    return UserDetailsResponse.model_validate(details) if details else None


@router.post("/details", response_model=UserDetailsResponse)
async def save_details(
    body: ApplicantProfileSchema,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserDetailsResponse:
    try:
        details = await service.save_details(db, user.id, body.model_dump())
    except ServiceError as e:
        raise_http_error(e)

    return UserDetailsResponse.model_validate(details)


@router.get("/documents", response_model=list[DocumentResponse])
async def list_documents(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[DocumentResponse]:
    documents = await service.list_documents(db, user.id)
    return [DocumentResponse.model_validate(d) for d in documents]


@router.post("/documents/{document_type}", response_model=DocumentUploadResponse)
async def upload_document(
    document_type: str,
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DocumentUploadResponse:
    try:
        document = await service.upload_document(db, user.id, document_type, file)
    except ServiceError as e:
        raise_http_error(e)

    return DocumentUploadResponse(
        message="Document uploaded successfully",
        document=DocumentResponse.model_validate(document),
    )
