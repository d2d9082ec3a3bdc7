"""Wayback Machine CDX client for archival capture history."""

from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
import structlog

logger = structlog.get_logger(__name__)

CDX_LIMIT = 100


@dataclass(frozen=True)
class WaybackResult:
    """Unique-content captures of a domain over the last 12 months."""

    has_captures: bool = False
    total_captures: int = 0
    captures_last_12_months: int = 0
    oldest_capture: str | None = None
    newest_capture: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "has_captures": self.has_captures,
            "total_captures": self.total_captures,
            "captures_last_12_months": self.captures_last_12_months,
            "oldest_capture": self.oldest_capture,
            "newest_capture": self.newest_capture,
            "error": self.error,
        }


def _cdx_date(value: datetime) -> str:
    return value.strftime("%Y%m%d")


def parse_cdx_rows(rows: list) -> WaybackResult:
    """Summarize CDX JSON output, whose first row is a header."""
    timestamps = [row[0] for row in rows[1:] if isinstance(row, list) and row]
    if not timestamps:
        return WaybackResult()
    return WaybackResult(
        has_captures=True,
        total_captures=len(timestamps),
        captures_last_12_months=len(timestamps),
        oldest_capture=timestamps[0],
        newest_capture=timestamps[-1],
    )


async def fetch_wayback(
    domain: str,
    *,
    cdx_url: str,
    user_agent: str,
    timeout: float = 10.0,
    now: datetime | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WaybackResult:
    """
    Count unique-content captures of a domain in the last year.

    Args:
        domain: Bare host name, e.g. example.com
        cdx_url: CDX search endpoint
        user_agent: Scanner user agent
        timeout: Request timeout in seconds
        now: Reference time (defaults to current UTC time)

    Returns:
        WaybackResult; empty with an error string on failure
    """
    now = now or datetime.now(UTC)
    try:
        year_ago = now.replace(year=now.year - 1)
    except ValueError:
        # Feb 29
        year_ago = now.replace(year=now.year - 1, day=28)

    params = {
        "url": domain,
        "output": "json",
        "fl": "timestamp",
        "from": _cdx_date(year_ago),
        "to": _cdx_date(now),
        "collapse": "digest",
        "limit": str(CDX_LIMIT),
    }

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(cdx_url, params=params, headers={"User-Agent": user_agent})
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("wayback_fetch_failed", domain=domain, error=str(e) or type(e).__name__)
        return WaybackResult(error=str(e) or type(e).__name__)

    if response.status_code != 200:
        logger.warning("wayback_fetch_failed", domain=domain, status_code=response.status_code)
        return WaybackResult(error=f"Wayback API returned {response.status_code}")

    # CDX returns an empty body when nothing matched
    if not response.content.strip():
        return WaybackResult()

    try:
        rows = response.json()
    except ValueError as e:
        logger.warning("wayback_parse_failed", domain=domain, error=str(e))
        return WaybackResult(error="Invalid Wayback response")

    if not isinstance(rows, list):
        return WaybackResult(error="Invalid Wayback response")

    return parse_cdx_rows(rows)
