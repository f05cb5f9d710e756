"""Quotation schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator


class PublicQuotationCreate(BaseModel):
    amount: Decimal | None = None
    description: str | None = None
    email: EmailStr | None = None
    name: str | None = None
    service: str | None = None
    state: str | None = None
    payment_type: str | None = None
    line_items: list[dict[str, Any]] | None = None
    client_first_name: str | None = None
    client_last_name: str | None = None
    client_email: str | None = None
    client_mobile: str | None = None


class QuotationCreate(BaseModel):
    amount: Decimal | None = None
    description: str | None = None


class QuotationUpdate(BaseModel):
    amount: Decimal | None = None
    description: str | None = None
    service: str | None = None
    state: str | None = None
    payment_type: str | None = None
    line_items: list[dict[str, Any]] | None = None
    client_first_name: str | None = None
    client_last_name: str | None = None
    client_email: str | None = None
    client_mobile: str | None = None
    validity_date: datetime | None = None


class QuotationStatusUpdate(BaseModel):
    status: str


class QuotationIntentRequest(BaseModel):
    amount: int | None = None


class QuotationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    amount: Decimal
    description: str
    status: str
    service: str | None = None
    state: str | None = None
    payment_type: str | None = None
    line_items: list[dict[str, Any]] | None = None
    client_first_name: str | None = None
    client_last_name: str | None = None
    client_email: str | None = None
    client_mobile: str | None = None
    validity_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


class QuotationCreatedResponse(BaseModel):
    id: str
    message: str


class MessageResponse(BaseModel):
    message: str
