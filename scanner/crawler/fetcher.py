"""Page fetcher with manual redirect tracking and TLS inspection."""

import asyncio
import socket
import ssl
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlparse

import httpx
import structlog

from scanner.crawler.tls import TLSInfo, inspect_tls
from service.config import Settings, get_settings
from service.exceptions import (
    CertificateError,
    DNSResolutionError,
    FetchConnectionError,
    FetchTimeoutError,
    PageFetchError,
)

logger = structlog.get_logger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

TLSInspector = Callable[[str], Awaitable[TLSInfo | None]]


@dataclass(frozen=True)
class CrawlResult:
    """Immutable snapshot of one page fetch."""

    html: str
    status_code: int
    final_url: str
    headers: dict[str, str] = field(default_factory=dict)
    redirect_chain: tuple[str, ...] = ()
    response_time_ms: int = 0
    tls_info: TLSInfo | None = None
    truncated: bool = False

    @property
    def is_https(self) -> bool:
        return self.final_url.lower().startswith("https://")

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def to_dict(self) -> dict:
        return {
            "status_code": self.status_code,
            "final_url": self.final_url,
            "redirect_chain": list(self.redirect_chain),
            "response_time_ms": self.response_time_ms,
            "html_length": len(self.html),
            "truncated": self.truncated,
            "tls_info": self.tls_info.to_dict() if self.tls_info else None,
        }


def _has_cause(exc: BaseException, types: tuple[type[BaseException], ...]) -> bool:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, types):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def classify_transport_error(url: str, exc: httpx.HTTPError) -> PageFetchError:
    """Turn an httpx transport failure into a typed fetch error."""
    message = str(exc) or type(exc).__name__
    lower = message.lower()

    if _has_cause(exc, (ssl.SSLError,)) or "certificate" in lower or "ssl" in lower:
        return CertificateError(url, message)

    if _has_cause(exc, (socket.gaierror,)) or any(
        marker in lower
        for marker in (
            "name or service not known",
            "nodename nor servname",
            "getaddrinfo",
            "temporary failure in name resolution",
            "no address associated",
        )
    ):
        return DNSResolutionError(url, message)

    if isinstance(
        exc, (httpx.ConnectError, httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)
    ):
        return FetchConnectionError(url, message)

    return PageFetchError(url, message)


class PageFetcher:
    """
    Fetches the single page under audit.

    Redirects are followed by hand so every hop is recorded. The body is
    streamed and truncated at a byte ceiling rather than rejected.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        tls_inspector: TLSInspector | None = None,
    ):
        self.settings = settings or get_settings()
        self.timeout = self.settings.crawl_timeout_seconds
        self.max_redirects = self.settings.crawl_max_redirects
        self.max_bytes = self.settings.crawl_max_html_bytes
        self._transport = transport
        self._tls_inspector = tls_inspector or self._inspect_tls

    @property
    def request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.settings.browser_user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": self.settings.browser_accept_language,
            "Cache-Control": "no-cache",
            "Upgrade-Insecure-Requests": "1",
        }

    async def _inspect_tls(self, host: str) -> TLSInfo | None:
        return await inspect_tls(host, timeout=self.settings.tls_timeout_seconds)

    async def _read_body(self, response: httpx.Response) -> tuple[str, bool]:
        chunks: list[bytes] = []
        size = 0
        truncated = False
        async for chunk in response.aiter_bytes():
            remaining = self.max_bytes - size
            if len(chunk) >= remaining:
                chunks.append(chunk[:remaining])
                truncated = len(chunk) > remaining
                size = self.max_bytes
                break
            chunks.append(chunk)
            size += len(chunk)

        body = b"".join(chunks)
        encoding = response.encoding or "utf-8"
        try:
            return body.decode(encoding, errors="replace"), truncated
        except LookupError:
            return body.decode("utf-8", errors="replace"), truncated

    async def _request(
        self, client: httpx.AsyncClient, url: str
    ) -> tuple[int, dict[str, str], str, bool]:
        """Issue one GET and read its body under the per-attempt timeout."""
        try:
            async with asyncio.timeout(self.timeout):
                async with client.stream("GET", url) as response:
                    headers = {k.lower(): v for k, v in response.headers.items()}
                    if response.status_code in REDIRECT_STATUSES:
                        return response.status_code, headers, "", False
                    html, truncated = await self._read_body(response)
                    return response.status_code, headers, html, truncated
        except TimeoutError as e:
            raise FetchTimeoutError(url, self.timeout) from e
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(url, self.timeout) from e
        except httpx.HTTPError as e:
            raise classify_transport_error(url, e) from e

    async def fetch(self, url: str) -> CrawlResult:
        """
        Fetch a page, recording the redirect chain and TLS details.

        Args:
            url: Absolute http(s) URL

        Returns:
            CrawlResult for the final response in the chain

        Raises:
            PageFetchError: On timeout, DNS, connection or certificate failures
        """
        start = time.monotonic()
        chain: list[str] = []
        current = url

        async with httpx.AsyncClient(
            headers=self.request_headers,
            follow_redirects=False,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            for _ in range(self.max_redirects + 1):
                status, headers, html, truncated = await self._request(client, current)

                location = headers.get("location")
                if status in REDIRECT_STATUSES and location:
                    chain.append(current)
                    current = urljoin(current, location)
                    logger.debug("fetch_redirect", url=chain[-1], location=current, status=status)
                    continue
                break
            else:
                raise PageFetchError(
                    url, f"Too many redirects (more than {self.max_redirects})"
                )

        if truncated:
            logger.info("fetch_body_truncated", url=current, max_bytes=self.max_bytes)

        tls_info = None
        parsed = urlparse(current)
        if parsed.scheme == "https" and parsed.hostname:
            tls_info = await self._tls_inspector(parsed.hostname)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "page_fetched",
            url=url,
            final_url=current,
            status_code=status,
            redirects=len(chain),
            response_time_ms=elapsed_ms,
        )

        return CrawlResult(
            html=html,
            status_code=status,
            final_url=current,
            headers=headers,
            redirect_chain=tuple(chain),
            response_time_ms=elapsed_ms,
            tls_info=tls_info,
            truncated=truncated,
        )


async def crawl_page(url: str, settings: Settings | None = None) -> CrawlResult:
    """Convenience wrapper around PageFetcher.fetch."""
    return await PageFetcher(settings=settings).fetch(url)
