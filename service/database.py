"""Database engine and session management for the scan store."""

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for the scans, scan_results and scan_cache models."""

    pass


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for a database URL.

    PostgreSQL (asyncpg) gets a small pre-pinged pool; SQLite, used for
    local runs and tests, keeps SQLAlchemy's default pool.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Engine for the configured DATABASE_URL, created on first use."""
    from service.config import get_settings

    settings = get_settings()
    return build_engine(settings.database_url, echo=settings.debug)


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session maker bound to the configured engine."""
    return build_session_maker(get_engine())


async def create_all(engine: AsyncEngine | None = None) -> None:
    """Create the scan tables if they do not exist."""
    import service.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
