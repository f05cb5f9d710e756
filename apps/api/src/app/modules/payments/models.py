"""
Payment Models
"""

from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.applications.models import PaymentType
from app.modules.shared import BaseModel, enum_values


class Receipt(BaseModel):
    """Receipt issued once an application payment is paid."""

    __tablename__ = "receipts"

    receipt_number: Mapped[str] = mapped_column(String(13), unique=True, nullable=False)
    payment_id: Mapped[str] = mapped_column(
        String(13),
        ForeignKey("application_payments.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    application_id: Mapped[str] = mapped_column(
        String(14),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(
        SAEnum(PaymentType, name="payment_type", values_callable=enum_values),
        nullable=False,
    )
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
