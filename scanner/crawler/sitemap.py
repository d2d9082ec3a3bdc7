"""Sitemap.xml fetch and lastmod extraction."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from urllib.parse import urljoin
from xml.etree import ElementTree as ET

import httpx
import structlog

logger = structlog.get_logger(__name__)

MAX_LASTMOD_DATES = 20


@dataclass(frozen=True)
class SitemapResult:
    """Summary of the site's sitemap.xml."""

    exists: bool
    url_count: int = 0
    last_mod_dates: tuple[str, ...] = ()
    most_recent_mod: datetime | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "exists": self.exists,
            "url_count": self.url_count,
            "last_mod_dates": list(self.last_mod_dates),
            "most_recent_mod": self.most_recent_mod.isoformat() if self.most_recent_mod else None,
            "error": self.error,
        }


def _local_name(tag: str) -> str:
    """Strip an XML namespace from a tag name."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def parse_lastmod(value: str) -> datetime | None:
    """Parse a W3C datetime lastmod value; None if unparseable."""
    value = value.strip()
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class _Entries:
    count: int = 0
    lastmods: list[tuple[datetime, str]] = field(default_factory=list)


def parse_sitemap(content: str | bytes) -> SitemapResult:
    """
    Parse a <urlset> or <sitemapindex> document.

    Lastmods of index entries are used as-is; child sitemaps are not
    fetched. Works with or without the sitemap namespace.

    Args:
        content: Raw XML

    Returns:
        SitemapResult, with exists=False and an error for malformed XML
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        return SitemapResult(exists=False, error=f"Invalid sitemap XML: {e}")

    root_name = _local_name(root.tag)
    if root_name == "urlset":
        entry_name = "url"
    elif root_name == "sitemapindex":
        entry_name = "sitemap"
    else:
        return SitemapResult(exists=False, error=f"Unexpected sitemap root <{root_name}>")

    entries = _Entries()
    for entry in root:
        if _local_name(entry.tag) != entry_name:
            continue
        entries.count += 1
        for child in entry:
            if _local_name(child.tag) == "lastmod" and child.text:
                parsed = parse_lastmod(child.text)
                if parsed is not None:
                    entries.lastmods.append((parsed, child.text.strip()))
                break

    entries.lastmods.sort(key=lambda item: item[0], reverse=True)
    top = entries.lastmods[:MAX_LASTMOD_DATES]

    return SitemapResult(
        exists=True,
        url_count=entries.count,
        last_mod_dates=tuple(raw for _, raw in top),
        most_recent_mod=top[0][0] if top else None,
    )


async def fetch_sitemap(
    base_url: str,
    *,
    user_agent: str,
    timeout: float = 8.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SitemapResult:
    """Fetch /sitemap.xml for a site and summarize it. Never raises."""
    sitemap_url = urljoin(base_url, "/sitemap.xml")

    try:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, transport=transport
        ) as client:
            response = await client.get(sitemap_url, headers={"User-Agent": user_agent})
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("sitemap_fetch_failed", url=sitemap_url, error=str(e) or type(e).__name__)
        return SitemapResult(exists=False, error=str(e) or type(e).__name__)

    if response.status_code != 200:
        return SitemapResult(exists=False, error=f"HTTP {response.status_code}")

    result = parse_sitemap(response.content)
    if result.error:
        logger.warning("sitemap_parse_failed", url=sitemap_url, error=result.error)
    return result
