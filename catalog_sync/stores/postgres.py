"""Engine and sessions for the local catalog database.

The import runs (script or admin API) call init_db() once, then every
SqlCatalogStore batch opens its own session through get_session(): the
batch commits when the block exits and rolls back on error, so batches
written before a failing phase stay committed.

Pool size comes from DB_POOL_SIZE / DB_MAX_OVERFLOW. An import holds at
most one connection at a time; the extra slots serve the admin API.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from catalog_sync.settings import get_settings


class Base(DeclarativeBase):
    """Declarative base of the catalog, device, mapping and report tables."""

    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db() -> None:
    """Create the engine and session factory from DATABASE_URL."""
    global _engine, _session_factory

    settings = get_settings()
    _engine = create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        connect_args=settings.asyncpg_connect_args,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def close_db() -> None:
    """Dispose the engine; get_session() fails until init_db() runs again."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def ping_db() -> None:
    """Run SELECT 1. Raises when the database is unreachable."""
    async with get_session() as session:
        await session.execute(text("SELECT 1"))


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One committed-on-exit session per store batch.

    Usage:
        async with get_session() as session:
            await session.execute(delete(DeviceProductLink).where(...))
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
