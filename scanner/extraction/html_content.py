"""Visible content, links and meta tags from a page's HTML."""

import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from scanner.crawler.url import get_origin, resolve_link

_WHITESPACE_RE = re.compile(r"\s+")

MIXED_CONTENT_SELECTOR = 'img[src^="http://"], script[src^="http://"], link[href^="http://"]'


@dataclass
class HtmlContent:
    """Content extracted from one page."""

    title: str | None = None
    meta_description: str | None = None
    h1s: list[str] = field(default_factory=list)
    h2s: list[str] = field(default_factory=list)
    h3s: list[str] = field(default_factory=list)
    body_text: str = ""
    word_count: int = 0
    internal_links: list[str] = field(default_factory=list)
    external_links: list[str] = field(default_factory=list)
    canonical_url: str | None = None
    has_mixed_content: bool = False
    og_site_name: str | None = None
    og_title: str | None = None
    og_description: str | None = None

    @property
    def has_canonical(self) -> bool:
        return bool(self.canonical_url)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "meta_description": self.meta_description,
            "headings": {"h1": self.h1s, "h2": self.h2s, "h3": self.h3s},
            "word_count": self.word_count,
            "internal_links": len(self.internal_links),
            "external_links": len(self.external_links),
            "canonical_url": self.canonical_url,
            "has_mixed_content": self.has_mixed_content,
            "og": {
                "site_name": self.og_site_name,
                "title": self.og_title,
                "description": self.og_description,
            },
        }


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _meta(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = tag.get("content")
    if not isinstance(content, str):
        return None
    return content.strip() or None


def _texts(soup: BeautifulSoup, name: str) -> list[str]:
    return [text for tag in soup.find_all(name) if (text := collapse_whitespace(tag.get_text(" ")))]


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def extract_html_content(html: str, page_url: str) -> HtmlContent:
    """
    Extract title, headings, visible text, links and meta tags.

    Args:
        html: Raw page HTML
        page_url: Final URL of the page, used to resolve relative links

    Returns:
        HtmlContent with script, style and noscript text excluded
    """
    soup = BeautifulSoup(html, "html.parser")

    has_mixed_content = page_url.lower().startswith("https://") and bool(
        soup.select(MIXED_CONTENT_SELECTOR)
    )

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    title_tag = soup.find("title")
    title = collapse_whitespace(title_tag.get_text()) if title_tag else ""

    body = soup.body or soup
    body_text = collapse_whitespace(body.get_text(" "))

    origin = get_origin(page_url)
    internal: list[str] = []
    external: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href")
        if not isinstance(href, str):
            continue
        resolved = resolve_link(href, page_url)
        if resolved is None:
            continue
        if get_origin(resolved) == origin:
            internal.append(resolved)
        else:
            external.append(resolved)

    canonical_tag = soup.find("link", rel="canonical")
    canonical_href = canonical_tag.get("href") if canonical_tag else None

    return HtmlContent(
        title=title or None,
        meta_description=_meta(soup, name="description"),
        h1s=_texts(soup, "h1"),
        h2s=_texts(soup, "h2"),
        h3s=_texts(soup, "h3"),
        body_text=body_text,
        word_count=len(body_text.split()),
        internal_links=_unique(internal),
        external_links=_unique(external),
        canonical_url=(canonical_href.strip() or None) if isinstance(canonical_href, str) else None,
        has_mixed_content=has_mixed_content,
        og_site_name=_meta(soup, property="og:site_name"),
        og_title=_meta(soup, property="og:title"),
        og_description=_meta(soup, property="og:description"),
    )
