"""
Application Models

NCLEX applications with their payments, timeline step rows and the
processing accounts (Gmail, Pearson VUE, custom) kept for each applicant.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import BaseModel, TimestampMixin, enum_values
from app.modules.shared.profile import ApplicantProfileMixin


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INITIATED = "initiated"


class PaymentType(str, Enum):
    STEP1 = "step1"
    STEP2 = "step2"
    FULL = "full"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class AccountType(str, Enum):
    GMAIL = "gmail"
    PEARSON_VUE = "pearson_vue"
    CUSTOM = "custom"


class Application(ApplicantProfileMixin, TimestampMixin, Base):
    """
    An NCLEX application.

    The id is a human-readable "AP" identifier that doubles as the public
    tracking number.
    """

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(14), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    picture_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    diploma_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    passport_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        SAEnum(ApplicationStatus, name="application_status", values_callable=enum_values),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status.value})>"


class ApplicationPayment(TimestampMixin, Base):
    """A payment due (or made) for one stage of an application."""

    __tablename__ = "application_payments"

    id: Mapped[str] = mapped_column(String(13), primary_key=True)
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
    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, name="payment_status", values_callable=enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (Index("ix_application_payments_application_id", "application_id"),)


class TimelineStep(BaseModel):
    """Status row for one step or sub-step of an application's timeline."""

    __tablename__ = "application_timeline_steps"

    application_id: Mapped[str] = mapped_column(
        String(14),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    step_key: Mapped[str] = mapped_column(String(100), nullable=False)
    step_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[StepStatus] = mapped_column(
        SAEnum(StepStatus, name="timeline_step_status", values_callable=enum_values),
        nullable=False,
        default=StepStatus.PENDING,
    )
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("application_id", "step_key", name="uq_timeline_steps_app_key"),
    )


class ProcessingAccount(BaseModel):
    """Credentials of an account opened on the applicant's behalf."""

    __tablename__ = "processing_accounts"

    application_id: Mapped[str] = mapped_column(
        String(14),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(AccountType, name="processing_account_type", values_callable=enum_values),
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    security_question_1: Mapped[str | None] = mapped_column(Text, nullable=True)
    security_question_2: Mapped[str | None] = mapped_column(Text, nullable=True)
    security_question_3: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
