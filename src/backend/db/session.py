"""
Async SQLAlchemy session management.

One engine per process, lazily created from settings. Every store operation
is bounded: connection acquisition by the pool timeout, connection setup by
the driver connect timeout, and statements by the driver command timeout.
"""

from typing import Any, AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from db.base import Base

logger = structlog.get_logger(__name__)

# Global instances (lazy-initialized)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(url: str) -> dict[str, Any]:
    """Driver-specific timeout and pool options."""
    if url.startswith("sqlite"):
        # sqlite3 busy timeout: how long a writer waits for a competing writer
        return {"connect_args": {"timeout": settings.DATABASE_COMMAND_TIMEOUT_SECONDS}}

    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "pool_timeout": settings.DATABASE_POOL_TIMEOUT_SECONDS,
        "pool_pre_ping": True,
        "connect_args": {
            "timeout": settings.DATABASE_CONNECT_TIMEOUT_SECONDS,
            "command_timeout": settings.DATABASE_COMMAND_TIMEOUT_SECONDS,
        },
    }


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with the configured timeouts."""
    return create_async_engine(url, echo=echo, **_engine_options(url))


def get_engine() -> AsyncEngine:
    """Get or create the process-wide engine."""
    global _engine

    if _engine is None:
        _engine = create_engine_for_url(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        logger.info("database_engine_created", backend=_engine.dialect.name)

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory bound to the process-wide engine."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )

    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    Usage:
        @router.get("/")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...

    Uncommitted work is rolled back when the request ends.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables that don't exist yet."""
    # Import models so they are registered on the metadata
    import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized")


async def close_db() -> None:
    """
    Dispose of the engine and its connections.

    Should be called during application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("database_closed")
