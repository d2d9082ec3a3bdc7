"""Tests for URL validation and normalization."""

import pytest

from scanner.crawler.url import (
    get_domain,
    get_origin,
    is_same_origin,
    normalize_url,
    resolve_link,
    validate_url,
)
from service.exceptions import InvalidURLError


class TestValidateUrl:
    """Tests for validate_url function."""

    def test_adds_https_scheme(self) -> None:
        """Bare host names get https://."""
        assert validate_url("example.com") == "https://example.com"
        assert validate_url("  www.example.com/about ") == "https://www.example.com/about"

    def test_keeps_http_scheme(self) -> None:
        """Explicit http URLs are accepted unchanged."""
        assert validate_url("http://example.com/") == "http://example.com/"
        assert validate_url("HTTPS://Example.com") == "HTTPS://Example.com"

    def test_localhost_allowed(self) -> None:
        """localhost is accepted without a dot."""
        assert validate_url("http://localhost:8000") == "http://localhost:8000"

    @pytest.mark.parametrize(
        "value",
        ["", "   ", "ftp://example.com", "not a url", "intranet", "https://"],
    )
    def test_rejects_invalid(self, value: str) -> None:
        """Values that cannot become http(s) URLs raise InvalidURLError."""
        with pytest.raises(InvalidURLError) as exc_info:
            validate_url(value)
        assert exc_info.value.message == "Please enter a valid website URL"
        assert exc_info.value.code == "invalid_url"


class TestNormalizeUrl:
    """Tests for normalize_url function."""

    def test_scheme_and_www_ignored(self) -> None:
        """http/https and www. variants share one key."""
        assert normalize_url("http://Example.com/") == "https://example.com/"
        assert normalize_url("https://www.example.com") == "https://example.com/"

    def test_strips_query_and_fragment(self) -> None:
        """Query strings and fragments are dropped."""
        assert normalize_url("https://example.com/page?utm=1#top") == "https://example.com/page"

    def test_trailing_slash_removed_from_path(self) -> None:
        """Non-root paths lose their trailing slash."""
        assert normalize_url("https://example.com/about/") == "https://example.com/about"

    def test_default_ports_dropped(self) -> None:
        """Ports 80 and 443 are removed, others kept."""
        assert normalize_url("http://example.com:80/") == "https://example.com/"
        assert normalize_url("https://example.com:443/x") == "https://example.com/x"
        assert normalize_url("http://example.com:8080/") == "https://example.com:8080/"

    def test_path_case_preserved(self) -> None:
        """Only the host is lowercased."""
        assert normalize_url("https://EXAMPLE.com/About") == "https://example.com/About"


class TestOriginHelpers:
    """Tests for domain and origin helpers."""

    def test_get_domain(self) -> None:
        """Domain drops www. and path."""
        assert get_domain("https://www.example.com/about") == "example.com"
        assert get_domain("http://shop.example.com") == "shop.example.com"

    def test_get_origin(self) -> None:
        """Origin keeps scheme and port."""
        assert get_origin("https://Example.com:8443/path?q=1") == "https://example.com:8443"
        assert get_origin("not-a-url") == "not-a-url"

    def test_is_same_origin(self) -> None:
        """Same scheme, host and port required."""
        assert is_same_origin("https://example.com/a", "https://example.com/b")
        assert not is_same_origin("http://example.com/a", "https://example.com/a")
        assert not is_same_origin("relative", "relative")


class TestResolveLink:
    """Tests for resolve_link function."""

    def test_relative_link_resolved(self) -> None:
        """Relative hrefs resolve against the page."""
        assert resolve_link("/about", "https://example.com/") == "https://example.com/about"
        assert resolve_link("team", "https://example.com/about/") == (
            "https://example.com/about/team"
        )

    def test_fragment_removed(self) -> None:
        """Fragments are stripped from resolved links."""
        assert resolve_link("/faq#hours", "https://example.com/") == "https://example.com/faq"

    @pytest.mark.parametrize(
        "href",
        ["#top", "mailto:hi@example.com", "tel:+15555550100", "javascript:void(0)", "", "  "],
    )
    def test_skipped_schemes(self, href: str) -> None:
        """Non-page links resolve to None."""
        assert resolve_link(href, "https://example.com/") is None

    def test_non_http_scheme(self) -> None:
        """ftp links are not pages."""
        assert resolve_link("ftp://files.example.com/a", "https://example.com/") is None
