"""
ProSe Counsel Database Module
Async SQLAlchemy with SQLite (dev) / PostgreSQL (prod) support.
Includes connection pooling configuration for production.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from prose_counsel.core.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# Engine and session factory (lazy initialization)
_engine = None
_async_session_factory = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> AsyncEngine:
    """
    Get or create the async engine with proper connection pooling.

    Pool settings:
    - PostgreSQL: QueuePool with configurable size
    - SQLite: NullPool (SQLite doesn't support concurrent connections well)
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        is_sqlite = "sqlite" in settings.database_url

        if is_sqlite:
            pool_config = {
                "poolclass": NullPool,
                "connect_args": {"check_same_thread": False},
            }
        else:
            pool_config = {
                "poolclass": AsyncAdaptedQueuePool,
                "pool_size": 5,
                "max_overflow": 10,
                "pool_timeout": 30,
                "pool_recycle": 1800,
                "pool_pre_ping": True,
            }

        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            **pool_config,
        )
        if is_sqlite:
            event.listen(_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_factory


async def init_db():
    """
    Initialize the database - create all tables.
    Call this on startup.
    """
    from prose_counsel.models import models  # noqa: F401  registers tables on Base.metadata

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """
    Close database connections.
    Call this on shutdown.
    """
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None


@asynccontextmanager
async def get_db_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions.
    Commits on success, rolls back on any exception.

    Usage:
        async with get_db_session() as db:
            case = await db.get(Case, case_id)
    """
    factory = factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
