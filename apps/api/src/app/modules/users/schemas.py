"""User, client and saved-details schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from app.modules.shared.profile import ApplicantProfileSchema


class RoleUpdate(BaseModel):
    role: str | None = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    grit_id: str | None = None
    full_name: str | None = None
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> str:
        return str(v)


class RoleUpdateResponse(BaseModel):
    message: str
    user: UserSummary


class UserRef(BaseModel):
    id: str
    email: str


class UnlockResponse(BaseModel):
    message: str
    user: UserRef


class LockStatusResponse(BaseModel):
    locked: bool
    locked_until: str | None = None
    minutes_remaining: int | None = None
    failed_attempts: int
    email: str


class LoginAttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    email: str
    ip_address: str | None = None
    user_agent: str | None = None
    success: bool
    failure_reason: str | None = None
    created_at: datetime


class UserDetailsResponse(ApplicantProfileSchema):
    user_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    document_type: str
    file_path: str
    file_name: str
    file_size: int
    uploaded_at: datetime | None = None

    @field_validator("document_type", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


class DocumentUploadResponse(BaseModel):
    message: str
    document: DocumentResponse


class MessageResponse(BaseModel):
    message: str
