"""
Quotations Service Layer

Quotes can be requested publicly by email. An unknown email gets a guest
client account (random password, GRIT ID) so the quote has an owner; guest
accounts are hidden from the admin client list.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.payments_gateway import create_payment_intent, is_stripe_configured
from app.core.security import hash_password
from app.modules.auth.login_attempts import normalize_email
from app.modules.payments.service import StripeUnavailableError
from app.modules.quotations import repository
from app.modules.quotations.models import Quotation, QuotationStatus
from app.modules.quotations.schemas import PublicQuotationCreate, QuotationUpdate
from app.modules.shared import AccessDeniedError, NotFoundError, ValidationFailedError
from app.modules.shared.identifiers import generate_grit_id, generate_quote_id, generate_unique
from app.modules.users.models import User, UserRole
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

VALIDITY_DAYS = 30
GUEST_FIRST_NAME = "Guest"
GUEST_LAST_NAME = "User"

QUOTATION_CREATED_MESSAGE = "Quotation created successfully"


def split_name(name: str | None) -> tuple[str, str]:
    """'Maria Luz Santos' -> ('Maria', 'Luz Santos'), defaulting to Guest / User."""
    parts = (name or "").split()
    first = parts[0] if parts else GUEST_FIRST_NAME
    last = " ".join(parts[1:]) or GUEST_LAST_NAME
    return first, last


async def _get_or_create_guest(db: AsyncSession, email: str, name: str | None) -> User:
    user = await UserRepository.get_by_email(db, email)
    if user is not None:
        return user

    first_name, last_name = split_name(name)
    grit_id = await generate_unique(
        generate_grit_id,
        lambda candidate: UserRepository.grit_id_exists(db, candidate),
        "GRIT ID",
    )
    user = await UserRepository.create(
        db,
        email=email,
        password_hash=hash_password(secrets.token_urlsafe(12)),
        first_name=first_name,
        last_name=last_name,
        grit_id=grit_id,
        role=UserRole.CLIENT,
        is_guest=True,
    )
    logger.info(f"Created guest account {user.id} for quotation request")
    return user


async def _new_quote_id(db: AsyncSession) -> str:
    return await generate_unique(
        generate_quote_id,
        lambda candidate: repository.quote_id_exists(db, candidate),
        "quote ID",
    )


async def create_public_quotation(db: AsyncSession, body: PublicQuotationCreate) -> Quotation:
    """
    Create a quotation for an email address, opening a guest account if needed.

    Raises:
        ValidationFailedError: Amount, description or email missing
    """
    if not body.amount or not body.description or not body.email:
        raise ValidationFailedError("Amount, description, and email are required")

    email = normalize_email(str(body.email))
    user = await _get_or_create_guest(db, email, body.name)

    quotation = await repository.create_quotation(
        db,
        id=await _new_quote_id(db),
        user_id=str(user.id),
        amount=body.amount,
        description=body.description,
        status=QuotationStatus.PENDING,
        service=body.service or None,
        state=body.state or None,
        payment_type=body.payment_type or None,
        line_items=body.line_items or None,
        client_first_name=body.client_first_name or None,
        client_last_name=body.client_last_name or None,
        client_email=body.client_email or email,
        client_mobile=body.client_mobile or None,
        validity_date=datetime.now(UTC) + timedelta(days=VALIDITY_DAYS),
    )
    logger.info(f"Created public quotation {quotation.id}")
    return quotation


async def create_quotation(
    db: AsyncSession, user: CurrentUser, amount: Decimal | None, description: str | None
) -> Quotation:
    if not amount or not description:
        raise ValidationFailedError("Amount and description are required")

    return await repository.create_quotation(
        db,
        id=await _new_quote_id(db),
        user_id=str(user.id),
        amount=amount,
        description=description,
        status=QuotationStatus.PENDING,
    )


async def list_quotations(db: AsyncSession, user: CurrentUser) -> list[Quotation]:
    return await repository.list_quotations(db, None if user.is_admin else user.id)


async def get_quotation(db: AsyncSession, quote_id: str) -> Quotation:
    quotation = await repository.get_quotation(db, quote_id)
    if quotation is None:
        raise NotFoundError("Quotation")
    return quotation


async def get_accessible_quotation(db: AsyncSession, quote_id: str, user: CurrentUser) -> Quotation:
    quotation = await get_quotation(db, quote_id)
    if not user.is_admin and str(quotation.user_id) != str(user.id):
        raise AccessDeniedError()
    return quotation


async def update_quotation(db: AsyncSession, quote_id: str, body: QuotationUpdate) -> Quotation:
    """Apply the supplied fields only."""
    quotation = await get_quotation(db, quote_id)

    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "line_items" and not value:
            continue
        setattr(quotation, field, value)

    await db.flush()
    await db.refresh(quotation)
    return quotation


async def delete_quotation(db: AsyncSession, quote_id: str) -> None:
    quotation = await get_quotation(db, quote_id)
    await repository.delete_quotation(db, quotation)
    logger.info(f"Deleted quotation {quote_id}")


async def update_status(
    db: AsyncSession, quote_id: str, user: CurrentUser, status: str
) -> Quotation:
    """
    Raises:
        ValidationFailedError: Not pending, paid, cancelled or expired
    """
    try:
        new_status = QuotationStatus(status)
    except ValueError as e:
        raise ValidationFailedError(f"Invalid status: {status}", "INVALID_STATUS") from e

    quotation = await get_accessible_quotation(db, quote_id, user)
    quotation.status = new_status
    await db.flush()
    return quotation


async def create_intent(
    db: AsyncSession, quote_id: str, user: CurrentUser, amount_cents: int | None
) -> dict[str, str]:
    """
    Open a PaymentIntent for a quotation.

    amount_cents overrides the quotation amount, which is otherwise
    converted to cents.
    """
    if not is_stripe_configured():
        raise StripeUnavailableError()

    quotation = await get_accessible_quotation(db, quote_id, user)
    cents = amount_cents or int(round(float(quotation.amount) * 100))

    intent = await create_payment_intent(
        amount_cents=cents,
        metadata={
            "quotation_id": quotation.id,
            "user_id": str(quotation.user_id),
            "type": "quotation",
        },
        description=f"Quotation Payment - {quotation.description or 'Service Payment'}",
    )
    return {"client_secret": intent.client_secret, "payment_intent_id": intent.id}
