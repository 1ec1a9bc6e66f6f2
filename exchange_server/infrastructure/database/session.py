"""Async SQLAlchemy engine and session management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from exchange_server.core.config import DatabaseSettings, get_settings
from exchange_server.infrastructure.database.base import Base

_engine: AsyncEngine | None = None
AsyncSessionFactory: async_sessionmaker[AsyncSession] | None = None


def build_engine(database: DatabaseSettings, *, echo: bool = False) -> AsyncEngine:
    engine_kwargs: dict[str, Any] = {
        "echo": database.echo or echo,
    }
    if database.url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"timeout": database.busy_timeout}
    else:
        if database.pool_size is not None:
            engine_kwargs["pool_size"] = database.pool_size
        if database.max_overflow is not None:
            engine_kwargs["max_overflow"] = database.max_overflow

    return create_async_engine(database.url, **engine_kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    global _engine, AsyncSessionFactory
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(settings.database, echo=settings.debug)
        AsyncSessionFactory = build_session_factory(_engine)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if AsyncSessionFactory is None:
        get_engine()
    assert AsyncSessionFactory is not None  # for mypy
    return AsyncSessionFactory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables(engine: AsyncEngine) -> None:
    # Import models lazily so metadata is populated without circular imports.
    from exchange_server.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Create database tables in development mode (migrations preferred)."""
    await create_tables(get_engine())


async def dispose_engine() -> None:
    global _engine, AsyncSessionFactory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    AsyncSessionFactory = None
