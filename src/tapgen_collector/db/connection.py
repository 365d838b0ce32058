"""
Sample storage database lifecycle.

One process-wide SQLAlchemy async engine (asyncpg driver) and the session
factory the storage sink writes through.
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tapgen_collector.config import Settings, get_settings
from tapgen_collector.db.orm_models import Base
from tapgen_collector.logger import get_logger

logger = get_logger(__name__)

_async_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_async_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Return the storage engine, creating it on first use.

    Args:
        settings: Connection settings; only consulted when the engine is created
    """
    global _async_engine

    if _async_engine is not None:
        return _async_engine

    settings = settings or get_settings()
    target = f"{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}"
    try:
        _async_engine = create_async_engine(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
    except Exception as e:
        logger.error(f"Cannot create storage engine for {target}: {e}")
        raise

    logger.info(f"Storage engine created for {target}")
    return _async_engine


def get_async_session_factory(settings: Optional[Settings] = None) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the storage engine."""
    global _async_session_factory

    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            get_async_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_factory


async def init_db(settings: Optional[Settings] = None) -> None:
    """Create the samples table if it does not exist."""
    async with get_async_engine(settings).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Samples table verified")


async def check_db_health() -> bool:
    """
    Ping the storage database.

    Returns:
        False when the engine was never created or the ping fails
    """
    if _async_engine is None:
        return False
    try:
        async with _async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Storage database ping failed: {e}")
        return False
    return True


async def close_async_engine() -> None:
    """Dispose of the engine's pool; called on shutdown."""
    global _async_engine, _async_session_factory

    if _async_engine is None:
        return

    await _async_engine.dispose()
    _async_engine = None
    _async_session_factory = None
    logger.info("Storage engine disposed")
