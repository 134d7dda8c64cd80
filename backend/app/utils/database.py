"""
Database engine and session management
Async SQLAlchemy over asyncpg (PostgreSQL) or aiosqlite (SQLite)
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings
from app.models import Base

logger = logging.getLogger(__name__)

# Plain URLs are rewritten to the async driver for their backend
ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite:///": "sqlite+aiosqlite:///",
}

# Created on first use so importing the app never opens a connection
_engine = None
_async_session_maker = None


def resolve_database_url(url: str) -> str:
    """Swap a sync driver prefix for its async counterpart; other URLs pass through"""
    for prefix, async_prefix in ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return async_prefix + url[len(prefix):]
    return url


def engine_options(url: str, settings: Settings) -> Dict[str, Any]:
    """
    Keyword arguments for create_async_engine.

    SQLite gets no pool sizing; an in-memory SQLite database is pinned to a
    single connection so every session sees the same tables.
    """
    options: Dict[str, Any] = {"echo": settings.DEBUG}

    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
        options["pool_size"] = settings.DATABASE_POOL_SIZE
        options["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
    elif ":memory:" in url:
        options["poolclass"] = StaticPool
        options["connect_args"] = {"check_same_thread": False}

    return options


def _get_engine():
    global _engine
    if _engine is None:
        settings = get_settings()
        url = resolve_database_url(settings.DATABASE_URL)
        _engine = create_async_engine(url, **engine_options(url, settings))
    return _engine


def _get_session_maker():
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            _get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_maker


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on error (scripts, jobs)"""
    async with _get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session"""
    async with get_db_context() as session:
        yield session


async def init_db():
    """Create any missing tables"""
    async with _get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready ({len(Base.metadata.tables)} tables)")


async def close_db():
    """Dispose the engine; the next use creates a fresh one"""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
