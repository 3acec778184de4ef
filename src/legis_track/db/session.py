# ABOUTME: Async engine, session factory and transaction scopes for the bill store.
# ABOUTME: get_session is used by CLI and ingestion runs; get_db_session scopes one API request.

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from legis_track.config import get_settings
from legis_track.db.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

log = structlog.get_logger()

_engine: "AsyncEngine | None" = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> "AsyncEngine":
    """Get or create the async engine for the configured PostgreSQL database."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
            pool_pre_ping=True,
            echo=settings.db_echo,
        )
        log.info("db_engine_created", host=settings.db_host, database=settings.db_name)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory. Rows stay readable after commit."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession]:
    """One unit of work: commit on clean exit, roll back and re-raise on error.

    Usage:
        async with get_session() as session:
            repo = SqlDocumentRepository(session)
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        await session.commit()
    except Exception as e:
        log.warning("db_session_rolled_back", error=str(e))
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency: one session per request, committed when the route returns."""
    async with get_session() as session:
        yield session


async def init_db() -> None:
    """Create the bill tables that don't exist yet. There are no migrations."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("db_initialized", tables=sorted(Base.metadata.tables))


async def close_db() -> None:
    """Dispose the engine and forget the singletons."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
