"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.modules.applications.schemas import PaymentResponse


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class CompletePaymentRequest(BaseModel):
    transaction_id: str | None = Field(
        default=None, validation_alias=AliasChoices("transaction_id", "transactionId")
    )
    stripe_payment_intent_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("stripe_payment_intent_id", "paymentIntentId"),
    )
    payment_method: str = "stripe"


class ReceiptItem(BaseModel):
    name: str
    amount: float


class ReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    receipt_number: str
    payment_id: str
    application_id: str
    user_id: str
    amount: Decimal
    payment_type: str
    items: list[ReceiptItem]
    created_at: datetime

    @field_validator("payment_type", mode="before")
    @classmethod
    def _enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


class CompletePaymentResponse(BaseModel):
    message: str
    payment: PaymentResponse
    receipt: ReceiptResponse


class WebhookAck(BaseModel):
    received: bool = True
