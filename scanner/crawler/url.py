"""URL validation and normalization for scan submission and link handling."""

import re
from urllib.parse import urljoin, urlparse, urlunparse

from service.exceptions import InvalidURLError

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)

# Link schemes that never point at a fetchable page
SKIP_LINK_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:", "sms:")


def validate_url(url: str) -> str:
    """
    Validate a user-submitted URL, adding https:// when no scheme is given.

    Args:
        url: Raw URL as typed by the user

    Returns:
        Absolute http(s) URL

    Raises:
        InvalidURLError: If the value cannot be turned into an http(s) URL
    """
    if not url or not url.strip():
        raise InvalidURLError(url)

    candidate = url.strip()
    if not _SCHEME_RE.match(candidate):
        if "://" in candidate:
            raise InvalidURLError(url)
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidURLError(url) from e

    if not hostname or " " in hostname:
        raise InvalidURLError(url)
    if "." not in hostname and hostname != "localhost":
        raise InvalidURLError(url)

    return candidate


def normalize_url(url: str) -> str:
    """
    Normalize a URL into the scan cache key.

    Scheme differences, host case, a leading "www.", default ports, query
    strings, fragments and trailing slashes on non-root paths are all
    ignored, so http://Example.com/ and https://www.example.com share a key.
    """
    try:
        parsed = urlparse(url.strip())
        host = (parsed.hostname or "").lower()
        port = parsed.port
    except ValueError:
        return url.strip().lower().rstrip("/")

    if not host:
        return url.strip().lower().rstrip("/")

    if host.startswith("www."):
        host = host[4:]

    netloc = host
    if port and port not in (80, 443):
        netloc = f"{host}:{port}"

    path = parsed.path or "/"
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"

    return urlunparse(("https", netloc, path, "", "", ""))


def get_domain(url: str) -> str:
    """Extract the host of a URL without a leading www."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return url
    if host.startswith("www."):
        host = host[4:]
    return host or url


def get_origin(url: str) -> str:
    """Return scheme://host[:port] for a URL."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    return f"{parsed.scheme}://{parsed.netloc.lower()}"


def is_same_origin(url1: str, url2: str) -> bool:
    """Check if two URLs share scheme, host and port."""
    origin1 = get_origin(url1)
    origin2 = get_origin(url2)
    return "://" in origin1 and origin1 == origin2


def resolve_link(href: str, page_url: str) -> str | None:
    """Resolve an href against the page URL, skipping non-page schemes."""
    href = href.strip()
    if not href or href.lower().startswith(SKIP_LINK_PREFIXES):
        return None
    try:
        resolved = urljoin(page_url, href)
        parsed = urlparse(resolved)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    # Drop the fragment so the same page is not checked twice
    return urlunparse(parsed._replace(fragment=""))
