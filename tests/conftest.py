"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Set test environment before any app code runs
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.pop("CRUX_API_KEY", None)


@pytest.fixture
def settings():
    """Fresh test settings with the geocoding interval disabled."""
    from service.config import Settings, get_settings

    get_settings.cache_clear()  # Use test env, not stale or .env values
    return Settings(geocode_min_interval_seconds=0.0, crux_api_key=None)


@pytest.fixture
def memory_store():
    """In-memory scan store."""
    from tests.fixtures.store import InMemoryScanStore

    return InMemoryScanStore()


@pytest.fixture
async def session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session maker bound to a throwaway SQLite database with all tables."""
    from service.database import build_engine, build_session_maker, create_all

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/scans.db")
    await create_all(engine)

    yield build_session_maker(engine)

    await engine.dispose()


@pytest.fixture
def sql_store(session_maker):
    """SqlScanStore on the throwaway database."""
    from service.store import SqlScanStore

    return SqlScanStore(session_maker)
