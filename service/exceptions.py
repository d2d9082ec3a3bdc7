"""Custom exceptions and scan failure categorization."""

from typing import Any


class ScannerError(Exception):
    """Base exception for the scanner application."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class InvalidURLError(ScannerError):
    """Submitted URL is not an absolute http(s) URL."""

    def __init__(self, url: str):
        super().__init__(
            message="Please enter a valid website URL",
            code="invalid_url",
            details={"url": url},
        )


class PageFetchError(ScannerError):
    """The target page could not be retrieved."""

    def __init__(self, url: str, message: str, code: str = "fetch_error"):
        super().__init__(message=message, code=code, details={"url": url})
        self.url = url


class FetchTimeoutError(PageFetchError):
    """The page fetch exceeded its timeout."""

    def __init__(self, url: str, timeout: float):
        super().__init__(url, f"Request to {url} timed out after {timeout}s", code="timeout")
        self.timeout = timeout


class DNSResolutionError(PageFetchError):
    """The host name could not be resolved."""

    def __init__(self, url: str, message: str):
        super().__init__(url, message, code="dns_error")


class FetchConnectionError(PageFetchError):
    """The connection was refused or reset."""

    def __init__(self, url: str, message: str):
        super().__init__(url, message, code="connection_error")


class CertificateError(PageFetchError):
    """TLS negotiation failed badly enough that the page could not load."""

    def __init__(self, url: str, message: str):
        super().__init__(url, message, code="certificate_error")


class PageStatusError(ScannerError):
    """The final response carried an error status code."""

    def __init__(self, url: str, status_code: int):
        super().__init__(
            message=(
                f"Website returned error {status_code}. "
                "The page may not exist or may be blocking our scanner."
            ),
            code="http_status",
            details={"url": url, "status_code": status_code},
        )
        self.status_code = status_code


class ScanTimeoutError(ScannerError):
    """The whole scan exceeded its wall-clock budget."""

    def __init__(self, timeout: float):
        super().__init__(
            message=f"Scan timeout - exceeded {timeout:g} seconds",
            code="scan_timeout",
            details={"timeout": timeout},
        )


class ScanNotFoundError(ScannerError):
    """Scan record does not exist in the store."""

    def __init__(self, scan_id: str):
        super().__init__(
            message=f"Scan with id '{scan_id}' not found",
            code="not_found",
            details={"scan_id": scan_id},
        )


# User-facing failure messages. The persisted error_message is always one of
# these or the truncated "Scan failed:" fallback.
MESSAGE_TIMEOUT = (
    "The scan took too long. The website may be slow to respond or blocking "
    "our scanner. Try again in a minute."
)
MESSAGE_DNS = (
    "We couldn't find that website. Please double-check the URL and make sure "
    "the site is live."
)
MESSAGE_CONNECTION = (
    "The website refused our connection. It may be temporarily down or "
    "blocking automated requests."
)
MESSAGE_CERTIFICATE = (
    "There was a security certificate issue with this website. The scan could "
    "not complete safely."
)
MESSAGE_BLOCKED = (
    "This website is blocking our scanner. Some sites have strict security "
    "rules that prevent automated scans."
)
MESSAGE_NOT_FOUND = "That page doesn't exist. Check the URL and try again."
MESSAGE_SERVER_ERROR = (
    "The website returned a server error. It may be experiencing issues. "
    "Try again later."
)

MAX_RAW_MESSAGE_LENGTH = 150


def categorize_error(error: BaseException) -> str:
    """
    Map a fatal scan error to a user-readable message.

    Known exception types are matched first; anything else is classified by
    the characteristics of its message.
    """
    if isinstance(error, (ScanTimeoutError, FetchTimeoutError, TimeoutError)):
        return MESSAGE_TIMEOUT
    if isinstance(error, DNSResolutionError):
        return MESSAGE_DNS
    if isinstance(error, FetchConnectionError):
        return MESSAGE_CONNECTION
    if isinstance(error, CertificateError):
        return MESSAGE_CERTIFICATE
    if isinstance(error, PageStatusError):
        if error.status_code in (401, 403, 429):
            return MESSAGE_BLOCKED
        if error.status_code in (404, 410):
            return MESSAGE_NOT_FOUND
        if error.status_code >= 500:
            return MESSAGE_SERVER_ERROR

    message = str(error) or type(error).__name__
    lower = message.lower()

    if "abort" in lower or "timeout" in lower or "timed out" in lower:
        return MESSAGE_TIMEOUT
    if (
        "enotfound" in lower
        or "getaddrinfo" in lower
        or "name or service not known" in lower
        or "nodename nor servname" in lower
    ):
        return MESSAGE_DNS
    if (
        "econnrefused" in lower
        or "econnreset" in lower
        or "connection refused" in lower
        or "connection reset" in lower
    ):
        return MESSAGE_CONNECTION
    if "certificate" in lower or "ssl" in lower or "tls" in lower:
        return MESSAGE_CERTIFICATE
    if "403" in lower or "blocked" in lower:
        return MESSAGE_BLOCKED
    if "404" in lower or "not found" in lower:
        return MESSAGE_NOT_FOUND
    if "server error" in lower or any(f" {code}" in lower for code in range(500, 600)):
        return MESSAGE_SERVER_ERROR

    if len(message) > MAX_RAW_MESSAGE_LENGTH:
        message = message[:MAX_RAW_MESSAGE_LENGTH] + "…"
    return f"Scan failed: {message}"
