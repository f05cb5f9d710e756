"""
Service Catalogue Service Layer

The public catalogue is cached for five minutes under the "services"
prefix. Every write commits before clearing it.
"""

import logging
import secrets
import time

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import SERVICES_TTL_SECONDS, clear_cache, get_cached, set_cached
from app.modules.service_catalog import repository
from app.modules.service_catalog.models import Service
from app.modules.service_catalog.pricing import compute_service_totals, default_services
from app.modules.service_catalog.schemas import ServiceResponse, ServiceUpdate, ServiceUpsert
from app.modules.shared import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

CACHE_PREFIX = "services"
ALL_SERVICES_KEY = f"{CACHE_PREFIX}:all"

SERVICE_SAVED_MESSAGE = "Service created/updated successfully"


def new_service_id() -> str:
    return f"svc_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


async def ensure_default_services(db: AsyncSession) -> None:
    """Insert the default NCLEX New York services that are missing."""
    for fields in default_services():
        if await repository.get_service(db, fields["id"]) is not None:
            continue
        existing = await repository.find_service(
            db, fields["service_name"], fields["state"], fields["payment_type"]
        )
        if existing is not None:
            continue
        await repository.create_service(db, **fields)
        logger.info(f"Seeded default service {fields['id']}")


async def list_services(db: AsyncSession) -> list[dict]:
    """All services as response dicts, served from cache when warm."""
    cached = await get_cached(ALL_SERVICES_KEY)
    if cached is not None:
        return cached

    await ensure_default_services(db)
    services = await repository.list_services(db)
    payload = [ServiceResponse.model_validate(s).model_dump(mode="json") for s in services]
    await set_cached(ALL_SERVICES_KEY, payload, SERVICES_TTL_SECONDS)
    return payload


async def find_service(db: AsyncSession, service_name: str, state: str) -> Service | None:
    return await repository.find_service(db, service_name, state)


def _apply_totals(fields: dict, body: ServiceUpsert | ServiceUpdate) -> None:
    """Use supplied totals when all three are given, else compute them."""
    if body.total_full is not None and body.total_step1 is not None and body.total_step2 is not None:
        fields["total_full"] = body.total_full
        fields["total_step1"] = body.total_step1
        fields["total_step2"] = body.total_step2
        return

    totals = compute_service_totals(fields["line_items"])
    fields["total_full"] = totals.full
    fields["total_step1"] = totals.step1
    fields["total_step2"] = totals.step2


async def save_service(db: AsyncSession, body: ServiceUpsert) -> Service:
    """
    Create a service, or update the one with the same name, state and
    payment type.

    Raises:
        ValidationFailedError: A required field is missing
    """
    if not body.service_name or not body.state or not body.payment_type or not body.line_items:
        raise ValidationFailedError(
            "service_name, state, payment_type, and line_items are required"
        )

    fields = {
        "service_name": body.service_name,
        "state": body.state,
        "payment_type": body.payment_type,
        "line_items": body.line_items,
    }
    _apply_totals(fields, body)

    service = await repository.find_service(db, body.service_name, body.state, body.payment_type)
    if service is not None:
        for field, value in fields.items():
            setattr(service, field, value)
        await db.flush()
        logger.info(f"Updated service {service.id}")
    else:
        service = await repository.create_service(db, id=body.id or new_service_id(), **fields)
        logger.info(f"Created service {service.id}")

    await db.commit()
    await clear_cache(CACHE_PREFIX)
    return service


async def update_service(db: AsyncSession, service_id: str, body: ServiceUpdate) -> Service:
    """Apply the supplied fields; new line items recompute the totals."""
    service = await repository.get_service(db, service_id)
    if service is None:
        raise NotFoundError("Service")

    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    if "line_items" in fields:
        _apply_totals(fields, body)

    for field, value in fields.items():
        setattr(service, field, value)

    await db.flush()
    await db.refresh(service)
    await db.commit()
    await clear_cache(CACHE_PREFIX)
    return service


async def delete_service(db: AsyncSession, service_id: str) -> None:
    service = await repository.get_service(db, service_id)
    if service is None:
        raise NotFoundError("Service")

    await repository.delete_service(db, service)
    await db.commit()
    await clear_cache(CACHE_PREFIX)
    logger.info(f"Deleted service {service_id}")
