"""Service catalogue schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict


class ServiceUpsert(BaseModel):
    id: str | None = None
    service_name: str | None = None
    state: str | None = None
    payment_type: str | None = None
    line_items: list[dict[str, Any]] | None = None
    total_full: Decimal | None = None
    total_step1: Decimal | None = None
    total_step2: Decimal | None = None


class ServiceUpdate(BaseModel):
    service_name: str | None = None
    state: str | None = None
    payment_type: str | None = None
    line_items: list[dict[str, Any]] | None = None
    total_full: Decimal | None = None
    total_step1: Decimal | None = None
    total_step2: Decimal | None = None


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    service_name: str
    state: str
    payment_type: str
    line_items: list[dict[str, Any]]
    total_full: Decimal
    total_step1: Decimal | None = None
    total_step2: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ServiceSavedResponse(BaseModel):
    id: str
    message: str


class MessageResponse(BaseModel):
    message: str
