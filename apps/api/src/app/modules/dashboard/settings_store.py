"""
Settings Store

Read and write access to the settings table, used by login lockout,
notification emails, Stripe initialization and the admin settings page.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.dashboard.models import Setting

logger = logging.getLogger(__name__)


async def get_setting(db: AsyncSession, key: str) -> str | None:
    result = await db.execute(select(Setting.value).where(Setting.key == key))
    return result.scalar_one_or_none()


async def get_settings_map(db: AsyncSession, keys: list[str] | None = None) -> dict[str, str | None]:
    """All settings (or only the given keys) as a dict."""
    stmt = select(Setting.key, Setting.value)
    if keys:
        stmt = stmt.where(Setting.key.in_(keys))
    result = await db.execute(stmt)
    return {key: value for key, value in result.all()}


async def upsert_settings(db: AsyncSession, values: dict[str, str | None]) -> None:
    """Insert or update each key."""
    for key, value in values.items():
        setting = await db.get(Setting, key)
        if setting is None:
            db.add(Setting(key=key, value=value))
        else:
            setting.value = value
    await db.flush()
    logger.info(f"Saved settings: {sorted(values)}")


def is_enabled(value: str | None, default: bool = True) -> bool:
    """A boolean setting is on unless stored as anything other than "true"."""
    if value is None:
        return default
    return value.strip().lower() == "true"


async def get_int_setting(db: AsyncSession, key: str, default: int) -> int:
    """Integer setting with a default when missing or unparsable."""
    value = await get_setting(db, key)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Setting {key} is not an integer: {value!r}")
        return default
    return parsed or default
