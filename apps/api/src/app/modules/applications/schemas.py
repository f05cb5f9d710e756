"""
Application Schemas

Request and response models for applications, payments, timeline steps and
processing accounts.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.modules.shared.profile import ApplicantProfileSchema

DISPLAY_NAME = "NCLEX APPLICATION, NEWYORK STATE BOARD OF NURSING"
SERVICE_TYPE = "NCLEX Processing"
SERVICE_STATE = "New York"


# ============================================================================
# Applications
# ============================================================================


class ApplicationResponse(ApplicantProfileSchema):
    id: str
    user_id: str
    picture_path: str | None = None
    diploma_path: str | None = None
    passport_path: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


class ApplicationSummary(BaseModel):
    """Row of the application list, with its progress."""

    id: str
    user_id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime
    display_name: str = DISPLAY_NAME
    current_progress: str
    next_step: str | None = None
    latest_update: datetime | None = None
    progress_percentage: int
    completed_steps: int
    total_steps: int
    is_timeline_completed: bool = False
    service_type: str = SERVICE_TYPE
    service_state: str = SERVICE_STATE


class ApplicationCreatedResponse(BaseModel):
    id: str
    message: str


class RetakerResponse(BaseModel):
    is_retaker: bool


class ApplicationStatusUpdate(BaseModel):
    status: str


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# Payments
# ============================================================================


class PaymentCreate(BaseModel):
    payment_type: str = Field(validation_alias=AliasChoices("payment_type", "paymentType"))
    amount: Decimal


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    user_id: str
    amount: Decimal
    payment_type: str
    status: str
    payment_method: str | None = None
    transaction_id: str | None = None
    stripe_payment_intent_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("payment_type", "status", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


# ============================================================================
# Timeline steps
# ============================================================================


class TimelineStepUpdate(BaseModel):
    status: str | None = None
    data: dict[str, Any] | None = None


class TimelineStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    step_key: str
    step_name: str
    status: str
    data: dict[str, Any] | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


# ============================================================================
# Processing accounts
# ============================================================================


class ProcessingAccountCreate(BaseModel):
    account_type: str | None = None
    name: str | None = None
    link: str | None = None
    email: str | None = None
    password: str | None = None
    security_question_1: str | None = None
    security_question_2: str | None = None
    security_question_3: str | None = None


class ProcessingAccountUpdate(ProcessingAccountCreate):
    status: str | None = None


class ProcessingAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    account_type: str
    name: str | None = None
    link: str | None = None
    email: str
    password: str
    security_question_1: str | None = None
    security_question_2: str | None = None
    security_question_3: str | None = None
    status: str
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("account_type", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)
