"""
Quotations Repository
"""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.quotations.models import Quotation


async def quote_id_exists(db: AsyncSession, quote_id: str) -> bool:
    result = await db.execute(select(Quotation.id).where(Quotation.id == quote_id))
    return result.scalar_one_or_none() is not None


async def get_quotation(db: AsyncSession, quote_id: str) -> Quotation | None:
    return await db.get(Quotation, quote_id)


async def list_quotations(db: AsyncSession, user_id: str | None = None) -> list[Quotation]:
    """Newest first; every quotation when user_id is None."""
    stmt = select(Quotation)
    if user_id is not None:
        stmt = stmt.where(Quotation.user_id == str(user_id))
    stmt = stmt.order_by(Quotation.created_at.desc())

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_quotations(db: AsyncSession, user_id: str | None = None) -> int:
    stmt = select(func.count()).select_from(Quotation)
    if user_id is not None:
        stmt = stmt.where(Quotation.user_id == str(user_id))
    result = await db.execute(stmt)
    return result.scalar_one()


async def create_quotation(db: AsyncSession, **fields) -> Quotation:
    quotation = Quotation(**fields)
    db.add(quotation)
    await db.flush()
    await db.refresh(quotation)
    return quotation


async def delete_quotation(db: AsyncSession, quotation: Quotation) -> None:
    await db.execute(delete(Quotation).where(Quotation.id == quotation.id))
