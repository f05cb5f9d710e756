"""
Service Catalogue Models
"""

from decimal import Decimal

from sqlalchemy import JSON, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import TimestampMixin


class Service(TimestampMixin, Base):
    """
    A priced service offering for one state.

    Staggered services are paid in two steps; full services in one payment.
    """

    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    service_name: Mapped[str] = mapped_column(String(200), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    payment_type: Mapped[str] = mapped_column(String(20), nullable=False, default="staggered")
    line_items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    total_full: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    total_step1: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    total_step2: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "service_name", "state", "payment_type", name="uq_services_name_state_payment"
        ),
    )
