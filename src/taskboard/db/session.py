"""Database engine and session management."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def _engine_options(url: str, echo: bool) -> dict[str, object]:
    if url.startswith("sqlite") and ":memory:" in url:
        return {
            "echo": echo,
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    if url.startswith("sqlite"):
        return {"echo": echo, "connect_args": {"check_same_thread": False}}
    return {"echo": echo, "pool_pre_ping": True}


def init_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the process-wide engine if it does not exist yet."""

    global _engine, _session_maker
    if _engine is not None:
        return _engine
    settings = settings or get_settings()
    _engine = create_async_engine(
        settings.database_url,
        **_engine_options(settings.database_url, settings.db_echo),
    )
    _session_maker = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    logger.info("Database engine created", extra={"dialect": _engine.dialect.name})
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Database engine has not been initialised.")
    return _engine


def session_maker() -> async_sessionmaker[AsyncSession]:
    if _session_maker is None:
        init_engine()
    assert _session_maker is not None
    return _session_maker


async def create_schema() -> None:
    """Create all tables (development and tests; deployments use alembic)."""

    async with get_engine().begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_maker
    engine = _engine
    _engine = None
    _session_maker = None
    if engine is not None:
        await engine.dispose()


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` for request-scoped work."""

    async with session_maker()() as session:
        yield session


__all__ = [
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session",
    "init_engine",
    "session_maker",
]
