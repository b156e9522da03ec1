# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Database Connection Management — Async SQLAlchemy 2.0 engine and sessions.

One engine per process, created lazily from settings.DATABASE_URL. Request
handlers get a session through get_db, which commits on success and rolls
back on any error, so a handler that raises leaves nothing behind.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from wlink_bridge.core.config import settings


class Base(DeclarativeBase):
    """Declarative base for the bridge's tables."""


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"pool_pre_ping": True}
    # SQLite pools take no size arguments
    if make_url(url).get_backend_name() != "sqlite":
        options.update(pool_size=10, max_overflow=5)
    return options


def _bind(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Instances are serialized after commit, so attributes must stay loaded
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = _bind(get_engine())
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed when the handler returns."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Lifecycle ───────────────────────────────────────────────

async def init_db() -> None:
    """Fail startup early when the database is unreachable."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def create_all_tables() -> None:
    """Create the users and instances tables if they are missing."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def override_engine_for_test(engine: AsyncEngine) -> None:
    """Point the module at another engine (in-memory SQLite in tests)."""
    global _engine, _session_factory
    _engine = engine
    _session_factory = _bind(engine)
