"""Name, address and phone (NAP) extraction and consistency matching."""

import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from scanner.extraction.html_content import collapse_whitespace
from scanner.extraction.schema import BusinessEntity

# US/CA phone numbers, optional extension
PHONE_RE = re.compile(
    r"(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}(?:\s*(?:ext|x|extension)\s*\d+)?",
    re.IGNORECASE,
)

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# US street addresses ending in a ZIP code
ADDRESS_RE = re.compile(
    r"\d{1,5}\s+(?:[A-Za-z0-9]+\s){1,4}"
    r"(?:St(?:reet)?|Ave(?:nue)?|Blvd|Boulevard|Dr(?:ive)?|Rd|Road|Ln|Lane|Way|Ct|Court"
    r"|Pl(?:ace)?|Pkwy|Parkway|Cir(?:cle)?|Hwy|Highway)[.,]?\s*"
    r"(?:(?:Suite|Ste|Apt|Unit|#)\s*[A-Za-z0-9-]+[.,]?\s*)?"
    r"(?:[A-Za-z\s]+,\s*)?"
    r"(?:[A-Z]{2}\s+)?"
    r"\d{5}(?:-\d{4})?",
    re.IGNORECASE,
)

_TITLE_SEPARATOR_RE = re.compile(r"[|–—-]")
_ADDRESS_TOKEN_RE = re.compile(r"[\s,]+")

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 99
ADDRESS_MATCH_TOKENS = 3


def normalize_phone(phone: str) -> str:
    """Digits only, without a leading country code 1."""
    digits = re.sub(r"\D", "", phone)
    return digits[1:] if digits.startswith("1") else digits


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(item for item in items if item))


@dataclass
class ExtractedContact:
    """Candidate business names, addresses, phones and emails."""

    names: list[str] = field(default_factory=list)
    addresses: list[str] = field(default_factory=list)
    phones: list[str] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.names or self.addresses or self.phones or self.emails)

    def to_dict(self) -> dict:
        return {
            "names": self.names,
            "addresses": self.addresses,
            "phones": self.phones,
            "emails": self.emails,
        }


@dataclass(frozen=True)
class NAPConsistency:
    """Which NAP fields agree between structured data and the page."""

    name_match: bool = False
    phone_match: bool = False
    address_match: bool = False

    @property
    def score(self) -> int:
        """1 for name, 1 for phone, 2 for address."""
        return int(self.name_match) + int(self.phone_match) + 2 * int(self.address_match)

    def to_dict(self) -> dict:
        return {
            "name_match": self.name_match,
            "phone_match": self.phone_match,
            "address_match": self.address_match,
        }


def _acceptable_name(name: str) -> bool:
    return MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH


def extract_contact_from_html(html: str) -> ExtractedContact:
    """
    Find NAP candidates in a page's visible text and head.

    Names come from the title (before any separator), og:site_name and
    the first H1.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    body = soup.body or soup
    text = collapse_whitespace(body.get_text(" "))

    names: list[str] = []
    title_tag = soup.find("title")
    if title_tag:
        title = collapse_whitespace(title_tag.get_text())
        name_part = _TITLE_SEPARATOR_RE.split(title, maxsplit=1)[0].strip()
        if name_part and _acceptable_name(name_part):
            names.append(name_part)

    site_name = soup.find("meta", attrs={"property": "og:site_name"})
    if site_name and isinstance(site_name.get("content"), str) and site_name["content"].strip():
        names.append(site_name["content"].strip())

    h1 = soup.find("h1")
    if h1:
        h1_text = collapse_whitespace(h1.get_text(" "))
        if _acceptable_name(h1_text):
            names.append(h1_text)

    return ExtractedContact(
        names=_unique(names),
        addresses=_unique([match.strip() for match in ADDRESS_RE.findall(text)]),
        phones=_unique([normalize_phone(match) for match in PHONE_RE.findall(text)]),
        emails=_unique([match.lower() for match in EMAIL_RE.findall(text)]),
    )


def extract_contact_from_entity(entity: BusinessEntity | None) -> ExtractedContact:
    """NAP values declared by an Organization/LocalBusiness node."""
    if entity is None:
        return ExtractedContact()

    address = entity.formatted_address
    phone = normalize_phone(entity.telephone) if entity.telephone else ""
    return ExtractedContact(
        names=[entity.name] if entity.name else [],
        addresses=[address] if address else [],
        phones=[phone] if phone else [],
        emails=[entity.email.lower()] if entity.email else [],
    )


def _names_match(schema_names: list[str], html_names: list[str]) -> bool:
    for schema_name in schema_names:
        s = schema_name.lower()
        for html_name in html_names:
            h = html_name.lower()
            if s in h or h in s:
                return True
    return False


def _address_matches(schema_address: str, html_address: str) -> bool:
    tokens = [t for t in _ADDRESS_TOKEN_RE.split(schema_address.lower()) if t]
    haystack = html_address.lower()
    shared = sum(1 for token in tokens if token in haystack)
    return shared >= min(ADDRESS_MATCH_TOKENS, len(tokens))


def check_nap_consistency(
    html_contact: ExtractedContact, schema_contact: ExtractedContact
) -> NAPConsistency:
    """
    Compare structured-data NAP against NAP found on the page.

    Names match by case-insensitive containment in either direction,
    phones by normalized equality, and addresses when the page address
    contains at least three of the structured address's tokens (all of
    them when there are fewer than three).
    """
    name_match = _names_match(schema_contact.names, html_contact.names)

    phone_match = any(phone in html_contact.phones for phone in schema_contact.phones)

    address_match = any(
        _address_matches(schema_address, html_address)
        for schema_address in schema_contact.addresses
        for html_address in html_contact.addresses
    )

    return NAPConsistency(
        name_match=name_match,
        phone_match=phone_match,
        address_match=address_match,
    )
