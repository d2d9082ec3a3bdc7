"""Scan submission service."""

from datetime import UTC, datetime

import structlog

from scanner.crawler.sources import DataSources
from scanner.crawler.url import normalize_url, validate_url
from scanner.tasks.scan import run_scan
from service.config import Settings, get_settings
from service.store import ScanStore

logger = structlog.get_logger(__name__)

__all__ = ["normalize_url", "request_scan", "validate_url"]


async def request_scan(
    url: str,
    store: ScanStore,
    *,
    user_id: str | None = None,
    ip_address: str | None = None,
    run: bool = False,
    sources: DataSources | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> str:
    """
    Submit a URL for scanning, reusing a cached scan when one is fresh.

    Args:
        url: URL as entered by the user
        store: Scan persistence
        user_id: Optional requesting user
        ip_address: Optional requester address
        run: Run the scan inline before returning
        sources: Data sources passed through to the scan
        settings: Settings passed through to the scan
        now: Reference time for cache expiry (defaults to current UTC time)

    Returns:
        Scan id, either cached or newly created

    Raises:
        InvalidURLError: If the URL is not an absolute http(s) URL
    """
    settings = settings or get_settings()
    valid_url = validate_url(url)
    normalized = normalize_url(valid_url)

    cached_id = await store.get_cached_scan_id(normalized, now or datetime.now(UTC))
    if cached_id:
        logger.info("scan_cache_hit", normalized_url=normalized, scan_id=cached_id)
        return cached_id

    scan = await store.create_scan(
        valid_url, normalized, user_id=user_id, ip_address=ip_address
    )
    if run:
        await run_scan(scan.id, valid_url, store=store, sources=sources, settings=settings)
    return scan.id
