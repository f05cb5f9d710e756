"""
Database Configuration and Session Management
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    pool_size=10,
    max_overflow=10,
    pool_pre_ping=True,
    pool_timeout=30,
    pool_recycle=3600,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Commits when the request handler returns and rolls back on any error.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Database session error: {type(e).__name__}: {e}")
            await session.rollback()
            raise


def _import_models() -> None:
    """Import every model module so the metadata knows all tables."""
    from app.modules.applications import models as application_models  # noqa: F401
    from app.modules.auth import models as auth_models  # noqa: F401
    from app.modules.dashboard import models as dashboard_models  # noqa: F401
    from app.modules.notifications import models as notification_models  # noqa: F401
    from app.modules.payments import models as payment_models  # noqa: F401
    from app.modules.quotations import models as quotation_models  # noqa: F401
    from app.modules.service_catalog import models as service_models  # noqa: F401
    from app.modules.sessions import models as session_models  # noqa: F401
    from app.modules.users import models as user_models  # noqa: F401


async def init_db() -> None:
    """Create database tables that do not exist yet."""
    _import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def close_db() -> None:
    """Dispose of the connection pool."""
    await engine.dispose()
