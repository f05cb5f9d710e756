"""
Service Catalogue Repository
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.service_catalog.models import Service


async def get_service(db: AsyncSession, service_id: str) -> Service | None:
    return await db.get(Service, service_id)


async def find_service(
    db: AsyncSession, service_name: str, state: str, payment_type: str | None = None
) -> Service | None:
    stmt = select(Service).where(Service.service_name == service_name, Service.state == state)
    if payment_type is not None:
        stmt = stmt.where(Service.payment_type == payment_type)
    result = await db.execute(stmt.order_by(Service.created_at.asc()).limit(1))
    return result.scalar_one_or_none()


async def list_services(db: AsyncSession) -> list[Service]:
    result = await db.execute(select(Service).order_by(Service.service_name, Service.state))
    return list(result.scalars().all())


async def create_service(db: AsyncSession, **fields) -> Service:
    service = Service(**fields)
    db.add(service)
    await db.flush()
    await db.refresh(service)
    return service


async def delete_service(db: AsyncSession, service: Service) -> None:
    await db.execute(delete(Service).where(Service.id == service.id))
