"""
Async SQLAlchemy engine + session factory for the feed store.

The production database is TiDB (wire-compatible with MySQL 5.7) via the
aiomysql driver; tests point the same code at SQLite through aiosqlite.
The engine is created once at startup and reused across all operations.
"""
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from feed_service.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    url = settings.db_url
    if url.startswith("sqlite"):
        # SQLite has no connection pool sizing
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        echo=False,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist (idempotent)."""
    # Register the mapped classes on Base.metadata
    from feed_service import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")
