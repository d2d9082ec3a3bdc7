"""Tests for scan submission."""

from datetime import UTC, datetime, timedelta

import pytest

from service.exceptions import InvalidURLError
from service.models import ScanStatus
from service.services.scan_service import request_scan
from tests.fixtures import FOUND_GEOCODE, FakeDataSources, make_crawl


class TestRequestScan:
    """Tests for request_scan function."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "   ", "not a url", "ftp://example.com", "localhostish"])
    async def test_invalid_url(self, url: str, memory_store, settings) -> None:
        """Invalid input is rejected before any record is created."""
        with pytest.raises(InvalidURLError) as exc_info:
            await request_scan(url, memory_store, settings=settings)

        assert exc_info.value.message == "Please enter a valid website URL"
        assert memory_store.scans == {}

    @pytest.mark.asyncio
    async def test_creates_pending_scan(self, memory_store, settings) -> None:
        """A new URL creates a pending scan with the normalized key."""
        scan_id = await request_scan(
            "www.SunriseDental.com",
            memory_store,
            user_id="user_1",
            ip_address="203.0.113.5",
            settings=settings,
        )

        scan = memory_store.scans[scan_id]
        assert scan.status == ScanStatus.PENDING.value
        assert scan.url == "https://www.SunriseDental.com"
        assert scan.normalized_url == "https://sunrisedental.com/"
        assert scan.user_id == "user_1"
        assert scan.ip_address == "203.0.113.5"

    @pytest.mark.asyncio
    async def test_cache_hit_returns_existing_id(self, memory_store, settings) -> None:
        """A fresh cache entry short-circuits scan creation."""
        existing = await memory_store.create_scan(
            "https://sunrisedental.com", "https://sunrisedental.com/"
        )
        await memory_store.upsert_cache(
            "https://sunrisedental.com/", existing.id, timedelta(hours=24)
        )

        scan_id = await request_scan(
            "http://www.sunrisedental.com/", memory_store, settings=settings
        )

        assert scan_id == existing.id
        assert len(memory_store.scans) == 1

    @pytest.mark.asyncio
    async def test_expired_cache_creates_new_scan(self, memory_store, settings) -> None:
        """Expired entries are ignored."""
        existing = await memory_store.create_scan(
            "https://sunrisedental.com", "https://sunrisedental.com/"
        )
        await memory_store.upsert_cache(
            "https://sunrisedental.com/", existing.id, timedelta(hours=24)
        )
        later = datetime.now(UTC) + timedelta(hours=25)

        scan_id = await request_scan(
            "sunrisedental.com", memory_store, settings=settings, now=later
        )

        assert scan_id != existing.id
        assert len(memory_store.scans) == 2

    @pytest.mark.asyncio
    async def test_run_inline(self, memory_store, settings) -> None:
        """run=True drives the scan to completion before returning."""
        sources = FakeDataSources(make_crawl(), settings=settings, geocode=FOUND_GEOCODE)

        scan_id = await request_scan(
            "sunrisedental.com", memory_store, run=True, sources=sources, settings=settings
        )

        scan = memory_store.scans[scan_id]
        assert scan.status == ScanStatus.COMPLETED.value
        assert scan.total_score == 80
        assert sources.calls_to("fetch_page") == ["https://sunrisedental.com"]
        assert memory_store.cache["https://sunrisedental.com/"].scan_id == scan_id
