"""External data sources used by a scan, bundled behind one seam."""

import httpx

from scanner.crawler.crux import CruxResult, fetch_crux
from scanner.crawler.fetcher import CrawlResult, PageFetcher, TLSInspector
from scanner.crawler.geocoding import (
    GeocodeResult,
    Geocoder,
    MinIntervalRateLimiter,
    get_default_limiter,
)
from scanner.crawler.links import LinkChecker
from scanner.crawler.robots import RobotsResult, fetch_robots
from scanner.crawler.sitemap import SitemapResult, fetch_sitemap
from scanner.crawler.wayback import WaybackResult, fetch_wayback
from service.config import Settings, get_settings


class DataSources:
    """
    Live clients for the page and every auxiliary source.

    Everything except fetch_page fails soft and returns an empty result.
    Tests subclass this and override the methods with canned data.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        limiter: MinIntervalRateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        tls_inspector: TLSInspector | None = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._page_fetcher = PageFetcher(
            self.settings, transport=transport, tls_inspector=tls_inspector
        )
        self._geocoder = Geocoder(
            base_url=self.settings.nominatim_url,
            user_agent=self.settings.scanner_user_agent,
            limiter=limiter or get_default_limiter(self.settings.geocode_min_interval_seconds),
            timeout=self.settings.geocode_timeout_seconds,
            transport=transport,
        )
        self._link_checker = LinkChecker(
            user_agent=self.settings.browser_user_agent, transport=transport
        )

    @classmethod
    def default(cls, settings: Settings | None = None) -> "DataSources":
        """Live sources sharing the process-wide geocoding limiter."""
        return cls(settings)

    async def fetch_page(self, url: str) -> CrawlResult:
        return await self._page_fetcher.fetch(url)

    async def robots(self, base_url: str) -> RobotsResult:
        return await fetch_robots(
            base_url,
            user_agent=self.settings.scanner_user_agent,
            timeout=self.settings.robots_timeout_seconds,
            transport=self._transport,
        )

    async def sitemap(self, base_url: str) -> SitemapResult:
        return await fetch_sitemap(
            base_url,
            user_agent=self.settings.scanner_user_agent,
            timeout=self.settings.sitemap_timeout_seconds,
            transport=self._transport,
        )

    async def wayback(self, domain: str) -> WaybackResult:
        return await fetch_wayback(
            domain,
            cdx_url=self.settings.wayback_cdx_url,
            user_agent=self.settings.scanner_user_agent,
            timeout=self.settings.wayback_timeout_seconds,
            transport=self._transport,
        )

    async def crux(self, origin: str) -> CruxResult:
        return await fetch_crux(
            origin,
            api_url=self.settings.crux_api_url,
            api_key=self.settings.crux_api_key,
            timeout=self.settings.crux_timeout_seconds,
            transport=self._transport,
        )

    async def geocode(self, address: str) -> GeocodeResult:
        return await self._geocoder.geocode(address)

    async def check_links(self, urls: list[str], timeout: float) -> list[bool]:
        return await self._link_checker.check(urls, timeout)

    async def count_alive(self, urls: list[str], timeout: float) -> int:
        return await self._link_checker.count_alive(urls, timeout)
