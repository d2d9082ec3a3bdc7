"""Test fixtures: sample pages, canned data sources and an in-memory store."""

from tests.fixtures.pages import (
    BARE_HTML,
    CURRENT_YEAR,
    LOCAL_BUSINESS_HTML,
    LOCAL_BUSINESS_SCHEMA,
    SECURE_HEADERS,
    VALID_TLS,
    make_crawl,
)
from tests.fixtures.sources import FOUND_GEOCODE, FakeDataSources
from tests.fixtures.store import InMemoryScanStore

__all__ = [
    # Pages
    "BARE_HTML",
    "CURRENT_YEAR",
    "LOCAL_BUSINESS_HTML",
    "LOCAL_BUSINESS_SCHEMA",
    "SECURE_HEADERS",
    "VALID_TLS",
    "make_crawl",
    # Data sources
    "FOUND_GEOCODE",
    "FakeDataSources",
    # Storage
    "InMemoryScanStore",
]
