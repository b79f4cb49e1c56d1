"""
Sprintpair — Async Database Engine & Session Factory

The engine is built lazily from ``DATABASE_URL`` on first use so that importing
the ORM models (tests, Alembic, scripts) never opens a connection pool.  A
plain ``postgresql://`` URL is upgraded to the ``asyncpg`` dialect; any other
async URL (for example ``sqlite+aiosqlite://``) is used as-is.

``get_db`` is the async generator used for FastAPI dependency injection.
"""

from __future__ import annotations

from typing import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

logger = structlog.get_logger("sprintpair.database")


# ------------------------------------------------------------------ #
# Declarative base for all ORM models
# ------------------------------------------------------------------ #

class Base(DeclarativeBase):
    """Shared declarative base.

    Every SQLAlchemy model in the project should inherit from this class::

        from app.database import Base

        class Participant(Base):
            __tablename__ = "participants"
            ...
    """
    pass


# ------------------------------------------------------------------ #
# Engine construction
# ------------------------------------------------------------------ #

def _normalise_url(url: str) -> str:
    # Developers should not need to remember the asyncpg dialect prefix.
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _build_engine() -> AsyncEngine:
    """Create an async engine from the ``DATABASE_URL`` setting.

    Pool tuning only applies to server databases; SQLite uses SQLAlchemy's
    default pool for the aiosqlite driver.
    """
    settings = get_settings()
    url = _normalise_url(settings.DATABASE_URL)

    kwargs: dict = {"echo": settings.LOG_LEVEL == "DEBUG"}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,
        )

    engine = create_async_engine(url, **kwargs)
    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


# ------------------------------------------------------------------ #
# Module-level engine & session factory (lazy-initialised)
# ------------------------------------------------------------------ #

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = _build_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def dispose_engine() -> None:
    """Close the connection pool and forget the engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database_engine_disposed")
    _engine = None
    _session_factory = None


# ------------------------------------------------------------------ #
# FastAPI dependency
# ------------------------------------------------------------------ #

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an ``AsyncSession`` and ensure it is closed afterwards.

    Usage in a FastAPI route::

        from fastapi import Depends
        from app.database import get_db

        @router.post("/matches/find")
        async def find(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
