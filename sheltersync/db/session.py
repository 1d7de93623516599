"""Engine, sessionmaker and request-scoped session helpers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sheltersync.core.config import get_settings

_engine_cache: dict[str, AsyncEngine] = {}
_sessionmaker_cache: dict[str, async_sessionmaker[AsyncSession]] = {}


def _resolve_database_url(override: str | None = None) -> str:
    return override or get_settings().database_url


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str) -> AsyncEngine:
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    engine = create_async_engine(url, echo=False, pool_pre_ping=not is_sqlite)
    if is_sqlite:
        # ON DELETE CASCADE is a no-op on SQLite unless enforcement is on.
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return (and cache) an async sessionmaker for the given database URL."""
    url = _resolve_database_url(database_url)
    sessionmaker = _sessionmaker_cache.get(url)
    if sessionmaker is None:
        engine = _build_engine(url)
        sessionmaker = async_sessionmaker(
            engine, expire_on_commit=False, class_=AsyncSession
        )
        _engine_cache[url] = engine
        _sessionmaker_cache[url] = sessionmaker
    return sessionmaker


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the configured database."""
    async with get_sessionmaker()() as session:
        yield session


async def dispose_engine(database_url: str | None = None) -> None:
    """Dispose the cached engine and sessionmaker for a database URL."""
    url = _resolve_database_url(database_url)
    _sessionmaker_cache.pop(url, None)
    engine = _engine_cache.pop(url, None)
    if engine is not None:
        await engine.dispose()
