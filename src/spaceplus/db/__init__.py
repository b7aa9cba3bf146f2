"""SpacePlus database access.

One async engine per process, created from settings on first use:
- get_async_session(): session context manager used by the API, the
  scheduler and scripts
- get_engine(): the engine itself, for DDL
- close_engine(): dispose on shutdown

Models live in ``spaceplus.db.models``, migrations in
``spaceplus/db/migrations``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from spaceplus.core.config import DatabaseSettings

DRIVER_SCHEME = "postgresql+psycopg://"
_PLAIN_SCHEMES = ("postgresql://", "postgres://")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def to_driver_url(url: str) -> str:
    """Point a plain PostgreSQL URL at the psycopg driver.

    psycopg 3 serves both the async engine and Alembic's sync engine, so one
    URL works for both. URLs that already name a driver are returned as is.
    """
    for scheme in _PLAIN_SCHEMES:
        if url.startswith(scheme):
            return DRIVER_SCHEME + url[len(scheme) :]
    return url


def build_engine(database: DatabaseSettings) -> AsyncEngine:
    return create_async_engine(
        to_driver_url(str(database.url)),
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
        pool_timeout=database.pool_timeout,
        pool_pre_ping=True,
        echo=database.echo,
    )


def _ensure_engine() -> async_sessionmaker[AsyncSession]:
    global _engine, _session_factory

    if _session_factory is None:
        from spaceplus.core.settings import get_settings

        _engine = build_engine(get_settings().database)
        _session_factory = async_sessionmaker(bind=_engine, expire_on_commit=False)
    return _session_factory


def get_engine() -> AsyncEngine:
    """Return the shared async engine, creating it if needed."""
    _ensure_engine()
    assert _engine is not None
    return _engine


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Open a session; roll back if the block raises.

    Callers commit explicitly:

        async with get_async_session() as session:
            source = await session.get(SocialSource, source_id)
            source.is_active = False
            await session.commit()
    """
    session = _ensure_engine()()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def close_engine() -> None:
    """Dispose of the engine during shutdown."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
