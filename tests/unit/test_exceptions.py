"""Tests for custom exceptions and failure messages."""

import pytest

from service.exceptions import (
    MESSAGE_BLOCKED,
    MESSAGE_CERTIFICATE,
    MESSAGE_CONNECTION,
    MESSAGE_DNS,
    MESSAGE_NOT_FOUND,
    MESSAGE_SERVER_ERROR,
    MESSAGE_TIMEOUT,
    CertificateError,
    DNSResolutionError,
    FetchConnectionError,
    FetchTimeoutError,
    InvalidURLError,
    PageFetchError,
    PageStatusError,
    ScannerError,
    ScanNotFoundError,
    ScanTimeoutError,
    categorize_error,
)


class TestScannerError:
    """Tests for the exception hierarchy."""

    def test_base_error(self) -> None:
        """Base error carries message, code and details."""
        error = ScannerError("boom", code="x", details={"a": 1})
        assert error.message == "boom"
        assert error.code == "x"
        assert error.details == {"a": 1}
        assert str(error) == "boom"

    def test_default_details(self) -> None:
        """Details default to an empty dict."""
        assert ScannerError("boom").details == {}

    def test_invalid_url(self) -> None:
        """Invalid URL error keeps the offending value."""
        error = InvalidURLError("not a url")
        assert error.code == "invalid_url"
        assert error.details == {"url": "not a url"}

    def test_fetch_errors_share_base(self) -> None:
        """Transport errors are all page fetch errors."""
        for error in (
            FetchTimeoutError("https://a.example", 10.0),
            DNSResolutionError("https://a.example", "nx"),
            FetchConnectionError("https://a.example", "refused"),
            CertificateError("https://a.example", "bad cert"),
        ):
            assert isinstance(error, PageFetchError)
            assert isinstance(error, ScannerError)
            assert error.url == "https://a.example"

    def test_scan_timeout_message(self) -> None:
        """Timeout message names the budget."""
        assert ScanTimeoutError(55.0).message == "Scan timeout - exceeded 55 seconds"

    def test_not_found(self) -> None:
        """Not found names the scan id."""
        error = ScanNotFoundError("sc_123")
        assert error.code == "not_found"
        assert "sc_123" in error.message


class TestCategorizeError:
    """Tests for categorize_error function."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ScanTimeoutError(55.0), MESSAGE_TIMEOUT),
            (FetchTimeoutError("u", 10.0), MESSAGE_TIMEOUT),
            (TimeoutError(), MESSAGE_TIMEOUT),
            (DNSResolutionError("u", "nx"), MESSAGE_DNS),
            (FetchConnectionError("u", "refused"), MESSAGE_CONNECTION),
            (CertificateError("u", "bad"), MESSAGE_CERTIFICATE),
            (PageStatusError("u", 403), MESSAGE_BLOCKED),
            (PageStatusError("u", 429), MESSAGE_BLOCKED),
            (PageStatusError("u", 404), MESSAGE_NOT_FOUND),
            (PageStatusError("u", 410), MESSAGE_NOT_FOUND),
            (PageStatusError("u", 503), MESSAGE_SERVER_ERROR),
        ],
    )
    def test_typed_errors(self, error: BaseException, expected: str) -> None:
        """Known exception types map directly."""
        assert categorize_error(error) == expected

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("The operation was aborted", MESSAGE_TIMEOUT),
            ("getaddrinfo ENOTFOUND example.invalid", MESSAGE_DNS),
            ("connect ECONNREFUSED 127.0.0.1:443", MESSAGE_CONNECTION),
            ("unable to verify the first certificate", MESSAGE_CERTIFICATE),
            ("HTTP 403 Forbidden", MESSAGE_BLOCKED),
            ("HTTP 404", MESSAGE_NOT_FOUND),
            ("upstream returned 502", MESSAGE_SERVER_ERROR),
        ],
    )
    def test_message_heuristics(self, message: str, expected: str) -> None:
        """Untyped errors are classified by their message."""
        assert categorize_error(RuntimeError(message)) == expected

    def test_other_status_falls_back(self) -> None:
        """Unmapped statuses use the message heuristics."""
        assert categorize_error(PageStatusError("u", 400)).startswith("Scan failed:")

    def test_fallback_truncated(self) -> None:
        """Unknown errors keep a truncated raw message."""
        message = categorize_error(ValueError("x" * 200))
        assert message == "Scan failed: " + "x" * 150 + "…"

    def test_fallback_uses_type_name(self) -> None:
        """Errors without a message fall back to their type name."""
        assert categorize_error(KeyError()) == "Scan failed: KeyError"
