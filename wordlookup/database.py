"""Database engines and session management."""

from pathlib import Path

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def cache_database_url(db_path: Path) -> str:
    """Return the SQLAlchemy URL for the cache database file."""
    return f"sqlite+aiosqlite:///{db_path}"


def create_cache_engine(url: str) -> AsyncEngine:
    """Create the async engine backing the lookup cache."""
    return create_async_engine(url, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for the cache engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def create_readonly_engine(db_path: Path) -> AsyncEngine:
    """Open a local dictionary file read-only.

    Uses SQLite URI mode so a missing file fails instead of being created.
    NullPool keeps no idle handles around once the provider is closed.
    """
    return create_async_engine(
        f"sqlite+aiosqlite:///file:{db_path}?mode=ro&uri=true",
        echo=False,
        poolclass=NullPool,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
