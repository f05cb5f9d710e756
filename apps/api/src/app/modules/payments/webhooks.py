"""
Stripe Webhooks

- POST /webhooks/stripe

The signature is verified when a webhook secret is configured (environment
first, then the admin settings). Without one the raw JSON is accepted and a
warning is logged, which is only meant for local development with the
Stripe CLI.
"""

import json
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.payments_gateway import construct_webhook_event
from app.modules.dashboard.settings_store import get_setting
from app.modules.payments import service
from app.modules.payments.schemas import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter()

WEBHOOK_SECRET_SETTING = "stripeWebhookSecret"


async def resolve_webhook_secret(db: AsyncSession) -> str | None:
    if settings.stripe_webhook_secret:
        return settings.stripe_webhook_secret
    return await get_setting(db, WEBHOOK_SECRET_SETTING)


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)) -> WebhookAck:
    """
    Receive Stripe events.

    Raises:
        HTTPException 400: Bad signature or malformed payload
    """
    payload = await request.body()
    secret = await resolve_webhook_secret(db)

    try:
        if secret:
            event = construct_webhook_event(
                payload, request.headers.get("stripe-signature"), secret
            )
        else:
            logger.warning("Stripe webhook secret not set - webhook verification skipped")
            event = json.loads(payload)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "INVALID_WEBHOOK", "message": f"Webhook Error: {e}"},
        ) from e

    await service.handle_webhook_event(db, event)
    return WebhookAck()
