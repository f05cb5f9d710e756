"""
Stripe Gateway

Thin async wrapper around the Stripe SDK. The secret key comes from the
environment or, when an admin saves one, from the settings table.
"""

import asyncio
import json
import logging
from typing import Any

import stripe

from app.core.config import settings

logger = logging.getLogger(__name__)

_configured_key: str | None = None


class StripeNotConfiguredError(RuntimeError):
    """Raised when a Stripe call is attempted without a secret key."""


def init_stripe(secret_key: str | None = None) -> bool:
    """
    Configure the Stripe SDK.

    Args:
        secret_key: Key to use instead of STRIPE_SECRET_KEY

    Returns:
        True when a key is configured
    """
    global _configured_key

    key = secret_key or settings.stripe_secret_key
    if not key:
        _configured_key = None
        stripe.api_key = None
        logger.warning("Stripe secret key not set - payment processing disabled")
        return False

    stripe.api_key = key
    _configured_key = key
    logger.info("Stripe initialized")
    return True


def is_stripe_configured() -> bool:
    return _configured_key is not None


def _require_configured() -> None:
    if not is_stripe_configured():
        raise StripeNotConfiguredError("Stripe is not configured")


async def create_payment_intent(
    amount_cents: int,
    metadata: dict[str, str],
    description: str | None = None,
    currency: str = "usd",
) -> Any:
    """Create a PaymentIntent with automatic payment methods."""
    _require_configured()
    params: dict[str, Any] = {
        "amount": amount_cents,
        "currency": currency,
        "metadata": metadata,
        "automatic_payment_methods": {"enabled": True},
    }
    if description:
        params["description"] = description

    intent = await asyncio.to_thread(stripe.PaymentIntent.create, **params)
    logger.info(f"Created payment intent {intent.id} for {amount_cents} {currency}")
    return intent


async def retrieve_payment_intent(payment_intent_id: str) -> Any:
    _require_configured()
    return await asyncio.to_thread(stripe.PaymentIntent.retrieve, payment_intent_id)


def construct_webhook_event(
    payload: bytes, sig_header: str | None, secret: str
) -> dict[str, Any]:
    """
    Verify a webhook signature and return the event as a plain dict.

    Raises:
        ValueError: Payload is not valid JSON
        stripe.SignatureVerificationError: Signature does not match
    """
    stripe.Webhook.construct_event(payload=payload, sig_header=sig_header or "", secret=secret)
    return json.loads(payload)
