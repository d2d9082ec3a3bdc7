"""JSON-LD structured data extraction with schema.org subtype resolution."""

import json
import re
from dataclasses import dataclass, field
from typing import Any

import structlog
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

_JSONLD_TYPE_RE = re.compile(r"^\s*application/ld\+json\s*$", re.IGNORECASE)

# Common schema.org subtypes of LocalBusiness
LOCAL_BUSINESS_SUBTYPES = frozenset(
    {
        "Restaurant",
        "BarOrPub",
        "CafeOrCoffeeShop",
        "FastFoodRestaurant",
        "Bakery",
        "Dentist",
        "Physician",
        "Optician",
        "MedicalClinic",
        "HealthClub",
        "LodgingBusiness",
        "Hotel",
        "Motel",
        "AutoRepair",
        "AutoDealer",
        "BeautySalon",
        "HairSalon",
        "DaySpa",
        "RealEstateAgent",
        "InsuranceAgency",
        "LegalService",
        "Attorney",
        "Notary",
        "AccountingService",
        "FinancialService",
        "Store",
        "ClothingStore",
        "ElectronicsStore",
        "GroceryStore",
        "HardwareStore",
        "HomeGoodsStore",
        "PetStore",
        "SportingGoodsStore",
        "EntertainmentBusiness",
        "AmusementPark",
        "MovieTheater",
        "TouristAttraction",
    }
)

SUBTYPES: dict[str, frozenset[str]] = {"LocalBusiness": LOCAL_BUSINESS_SUBTYPES}


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


class PostalAddress(BaseModel):
    """schema.org PostalAddress; non-text values are dropped."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    street_address: str | None = Field(default=None, alias="streetAddress")
    address_locality: str | None = Field(default=None, alias="addressLocality")
    address_region: str | None = Field(default=None, alias="addressRegion")
    postal_code: str | None = Field(default=None, alias="postalCode")
    address_country: str | None = Field(default=None, alias="addressCountry")

    @field_validator(
        "street_address",
        "address_locality",
        "address_region",
        "postal_code",
        "address_country",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> str | None:
        if isinstance(value, dict):
            # addressCountry may be a Country object
            return _as_text(value.get("name"))
        return _as_text(value)

    def formatted(self) -> str:
        """Street, locality, region and postal code joined with commas."""
        parts = [
            self.street_address,
            self.address_locality,
            self.address_region,
            self.postal_code,
        ]
        return ", ".join(part for part in parts if part)


class BusinessEntity(BaseModel):
    """The validated view of an Organization or LocalBusiness node."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    types: list[str] = Field(default_factory=list, alias="@type")
    name: str | None = None
    telephone: str | None = None
    email: str | None = None
    address: PostalAddress | str | None = None
    same_as: list[str] = Field(default_factory=list, alias="sameAs")
    opening_hours: list[str] = Field(default_factory=list, alias="openingHours")
    opening_hours_specification: list[dict] = Field(
        default_factory=list, alias="openingHoursSpecification"
    )

    @field_validator("name", "telephone", "email", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return _as_text(value)

    @field_validator("types", "same_as", "opening_hours", mode="before")
    @classmethod
    def _strings(cls, value: Any) -> list[str]:
        return [item.strip() for item in _as_list(value) if isinstance(item, str) and item.strip()]

    @field_validator("opening_hours_specification", mode="before")
    @classmethod
    def _dicts(cls, value: Any) -> list[dict]:
        return [item for item in _as_list(value) if isinstance(item, dict)]

    @field_validator("address", mode="before")
    @classmethod
    def _address(cls, value: Any) -> PostalAddress | str | None:
        if isinstance(value, list):
            value = next((item for item in value if isinstance(item, (dict, str))), None)
        if isinstance(value, dict):
            return PostalAddress.model_validate(value)
        return _as_text(value)

    @property
    def formatted_address(self) -> str | None:
        if isinstance(self.address, PostalAddress):
            return self.address.formatted() or None
        return self.address

    @property
    def has_opening_hours(self) -> bool:
        return bool(self.opening_hours or self.opening_hours_specification)

    @classmethod
    def from_node(cls, node: dict) -> "BusinessEntity":
        return cls.model_validate(node)


def node_types(node: dict) -> list[str]:
    """@type values of a JSON-LD node as a list of strings."""
    value = node.get("@type")
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def is_type(type_name: str, target: str) -> bool:
    """True if type_name is target or one of its known subtypes."""
    return type_name == target or type_name in SUBTYPES.get(target, ())


@dataclass
class StructuredData:
    """Parsed JSON-LD of one page."""

    raw: list[dict] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    block_count: int = 0
    invalid_blocks: int = 0

    def find(self, target: str) -> dict | None:
        """First node whose @type is target or a subtype of it."""
        for node in self.raw:
            if any(is_type(t, target) for t in node_types(node)):
                return node
        return None

    @property
    def organization(self) -> BusinessEntity | None:
        node = self.find("Organization")
        return BusinessEntity.from_node(node) if node is not None else None

    @property
    def local_business(self) -> BusinessEntity | None:
        node = self.find("LocalBusiness")
        return BusinessEntity.from_node(node) if node is not None else None

    @property
    def entity(self) -> BusinessEntity | None:
        """LocalBusiness if present, else Organization."""
        return self.local_business or self.organization

    @property
    def entity_kind(self) -> str | None:
        if self.find("LocalBusiness") is not None:
            return "LocalBusiness"
        if self.find("Organization") is not None:
            return "Organization"
        return None

    @property
    def has_faq_page(self) -> bool:
        return self.find("FAQPage") is not None

    @property
    def has_breadcrumb_list(self) -> bool:
        return self.find("BreadcrumbList") is not None

    @property
    def has_website(self) -> bool:
        return self.find("WebSite") is not None

    def to_dict(self) -> dict:
        return {
            "types": self.types,
            "node_count": len(self.raw),
            "block_count": self.block_count,
            "invalid_blocks": self.invalid_blocks,
        }


def _nodes(parsed: Any) -> list:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("@graph"), list):
        return parsed["@graph"]
    return [parsed]


def extract_structured_data(html: str) -> StructuredData:
    """
    Extract every JSON-LD block on a page.

    Top-level arrays and @graph containers are flattened. A block that is
    not valid JSON is counted and skipped without affecting the others.

    Args:
        html: Raw page HTML

    Returns:
        StructuredData with nodes and @type values in document order
    """
    soup = BeautifulSoup(html, "html.parser")
    data = StructuredData()

    for script in soup.find_all("script", attrs={"type": _JSONLD_TYPE_RE}):
        text = (script.string or script.get_text() or "").strip()
        if not text:
            continue
        data.block_count += 1

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            data.invalid_blocks += 1
            logger.debug("jsonld_block_invalid", error=str(e))
            continue

        for node in _nodes(parsed):
            if isinstance(node, dict):
                data.raw.append(node)
                data.types.extend(node_types(node))

    return data
