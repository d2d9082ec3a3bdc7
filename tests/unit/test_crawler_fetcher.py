"""Tests for the page fetcher."""

import asyncio
import time

import httpx
import pytest

from scanner.crawler.fetcher import PageFetcher, classify_transport_error
from scanner.crawler.tls import TLSInfo
from service.exceptions import (
    CertificateError,
    DNSResolutionError,
    FetchConnectionError,
    FetchTimeoutError,
    PageFetchError,
)

TLS = TLSInfo(valid=True, issuer="Test CA", protocol="TLSv1.3")


def _fetcher(settings, handler, tls_hosts: list[str] | None = None) -> PageFetcher:
    async def inspector(host: str) -> TLSInfo | None:
        if tls_hosts is not None:
            tls_hosts.append(host)
        return TLS

    return PageFetcher(
        settings, transport=httpx.MockTransport(handler), tls_inspector=inspector
    )


class TestPageFetcher:
    """Tests for PageFetcher class."""

    @pytest.mark.asyncio
    async def test_simple_fetch(self, settings) -> None:
        """A 200 response is returned with lowercased headers and TLS info."""
        tls_hosts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                html="<html><title>Hi</title></html>",
                headers={"X-Frame-Options": "DENY"},
            )

        result = await _fetcher(settings, handler, tls_hosts).fetch("https://example.com/")

        assert result.status_code == 200
        assert result.final_url == "https://example.com/"
        assert "<title>Hi</title>" in result.html
        assert result.header("X-Frame-Options") == "DENY"
        assert result.redirect_chain == ()
        assert result.tls_info == TLS
        assert result.truncated is False
        assert tls_hosts == ["example.com"]

    @pytest.mark.asyncio
    async def test_browser_headers_sent(self, settings) -> None:
        """The fetch presents a browser-like profile."""
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, html="ok")

        await _fetcher(settings, handler).fetch("https://example.com/")

        assert seen["user-agent"] == settings.browser_user_agent
        assert seen["accept-language"] == settings.browser_accept_language
        assert "text/html" in seen["accept"]

    @pytest.mark.asyncio
    async def test_redirect_chain_recorded(self, settings) -> None:
        """Every hop is recorded and relative locations resolved."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "example.com" and request.url.scheme == "http":
                return httpx.Response(301, headers={"Location": "https://example.com/"})
            if request.url.path == "/":
                return httpx.Response(302, headers={"Location": "/home"})
            return httpx.Response(200, html="home")

        result = await _fetcher(settings, handler).fetch("http://example.com/")

        assert result.final_url == "https://example.com/home"
        assert result.redirect_chain == ("http://example.com/", "https://example.com/")
        assert result.html == "home"

    @pytest.mark.asyncio
    async def test_http_page_skips_tls(self, settings) -> None:
        """Plain http pages have no TLS info."""
        tls_hosts: list[str] = []
        result = await _fetcher(
            settings, lambda r: httpx.Response(200, html="x"), tls_hosts
        ).fetch("http://example.com/")
        assert result.tls_info is None
        assert tls_hosts == []

    @pytest.mark.asyncio
    async def test_too_many_redirects(self, settings) -> None:
        """Exceeding the redirect limit is a fetch error."""
        settings = settings.model_copy(update={"crawl_max_redirects": 2})

        def handler(request: httpx.Request) -> httpx.Response:
            hop = int(request.url.params.get("hop", "0"))
            return httpx.Response(302, headers={"Location": f"/loop?hop={hop + 1}"})

        with pytest.raises(PageFetchError) as exc_info:
            await _fetcher(settings, handler).fetch("https://example.com/loop")
        assert "Too many redirects" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_error_status_returned(self, settings) -> None:
        """Error statuses are returned, not raised."""
        result = await _fetcher(
            settings, lambda r: httpx.Response(404, html="missing")
        ).fetch("https://example.com/nope")
        assert result.status_code == 404

    @pytest.mark.asyncio
    async def test_body_truncated(self, settings) -> None:
        """Bodies over the byte ceiling are cut, not rejected."""
        settings = settings.model_copy(update={"crawl_max_html_bytes": 10})
        result = await _fetcher(
            settings, lambda r: httpx.Response(200, html="0123456789abcdef")
        ).fetch("https://example.com/")
        assert result.html == "0123456789"
        assert result.truncated is True

    @pytest.mark.asyncio
    async def test_body_at_limit_not_truncated(self, settings) -> None:
        """A body exactly at the ceiling is complete."""
        settings = settings.model_copy(update={"crawl_max_html_bytes": 10})
        result = await _fetcher(
            settings, lambda r: httpx.Response(200, html="0123456789")
        ).fetch("https://example.com/")
        assert result.html == "0123456789"
        assert result.truncated is False

    @pytest.mark.asyncio
    async def test_slow_body_times_out(self, settings) -> None:
        """A body that stalls mid-stream hits the per-attempt timeout."""
        settings = settings.model_copy(update={"crawl_timeout_seconds": 0.1})

        async def stalled_body():
            yield b"<html><title>Slow</title>"
            await asyncio.sleep(5)
            yield b"</html>"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=stalled_body())

        start = time.monotonic()
        with pytest.raises(FetchTimeoutError):
            await _fetcher(settings, handler).fetch("https://example.com/")
        assert time.monotonic() - start < 2


class TestTransportErrors:
    """Tests for transport failure classification."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (httpx.ConnectError("[Errno -2] Name or service not known"), DNSResolutionError),
            (httpx.ConnectError("[Errno 111] Connection refused"), FetchConnectionError),
            (
                httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed"),
                CertificateError,
            ),
            (httpx.ConnectTimeout("timed out"), FetchTimeoutError),
            (httpx.ReadTimeout("timed out"), FetchTimeoutError),
        ],
    )
    async def test_fetch_raises_typed_error(self, settings, error, expected) -> None:
        """Transport failures surface as typed fetch errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        with pytest.raises(expected):
            await _fetcher(settings, handler).fetch("https://example.com/")

    def test_unknown_transport_error(self) -> None:
        """Unrecognized failures are generic fetch errors."""
        error = classify_transport_error("https://example.com", httpx.DecodingError("bad gzip"))
        assert type(error) is PageFetchError
        assert error.url == "https://example.com"

    def test_codes(self) -> None:
        """Each error type carries its own code."""
        dns = classify_transport_error("u", httpx.ConnectError("getaddrinfo failed"))
        refused = classify_transport_error("u", httpx.RemoteProtocolError("peer closed"))
        assert dns.code == "dns_error"
        assert refused.code == "connection_error"
