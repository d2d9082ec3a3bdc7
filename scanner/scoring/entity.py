"""Entity Verifiability pillar (25 points).

Can AI systems confirm the business is real? Looks for an Organization or
LocalBusiness node, its name/address/phone, agreement between that node and
the visible page, a geocodable address and live social profile links.
"""

import asyncio

import structlog

from scanner.crawler.geocoding import GeocodeResult
from scanner.crawler.sources import DataSources
from scanner.extraction.nap import check_nap_consistency
from scanner.extraction.page import ParsedPage
from scanner.scoring.models import (
    CheckResult,
    Difficulty,
    Impact,
    ModuleResult,
    PillarName,
    Recommendation,
    pillar_recommendation,
)
from service.config import Settings

logger = structlog.get_logger(__name__)

PILLAR = PillarName.ENTITY_VERIFIABILITY
_rec = pillar_recommendation(PILLAR)

MIN_RESOLVING_SAMEAS = 2


async def _geocode(sources: DataSources, address: str) -> GeocodeResult | None:
    if not address:
        return None
    return await sources.geocode(address)


async def _count_live(sources: DataSources, links: list[str], timeout: float) -> int:
    if not links:
        return 0
    return await sources.count_alive(links, timeout)


async def score_entity_verifiability(
    page: ParsedPage, sources: DataSources, settings: Settings
) -> ModuleResult:
    """
    Score how verifiable the business entity is.

    Args:
        page: Parsed page
        sources: Geocoder and link checker
        settings: Sample sizes and timeouts

    Returns:
        ModuleResult for the entity pillar
    """
    checks: list[CheckResult] = []
    recommendations: list[Recommendation] = []

    entity = page.entity
    kind = page.structured_data.entity_kind
    html_nap = page.html_contact
    schema_nap = page.schema_contact
    same_as = entity.same_as if entity else []

    address_to_check = (schema_nap.addresses or html_nap.addresses or [""])[0]
    geocode_result, live_same_as = await asyncio.gather(
        _geocode(sources, address_to_check),
        _count_live(
            sources,
            same_as[: settings.sameas_sample_size],
            settings.sameas_check_timeout_seconds,
        ),
    )

    # 1. Business schema present (5 pts)
    has_entity = entity is not None
    checks.append(
        CheckResult(
            id="has_entity_schema",
            label="Business Schema Markup Found",
            passed=has_entity,
            score=5 if has_entity else 0,
            max_score=5,
            details=(
                f"Found {kind} schema"
                if has_entity
                else "No Organization or LocalBusiness schema markup found"
            ),
        )
    )
    if not has_entity:
        recommendations.append(
            _rec(
                "add_entity_schema",
                "Add Business Schema Markup",
                "AI systems use schema markup to understand who you are. Adding Organization "
                "or LocalBusiness schema helps AI confidently identify and recommend your "
                "business.",
                Impact.HIGH,
                Difficulty.MODERATE,
                5,
                "Add a JSON-LD script tag to your homepage with your business name, address, "
                "phone number, and type. You can use Google's Structured Data Markup Helper "
                "to generate the code.",
            )
        )

    # 2. Name in schema (3 pts)
    has_name = bool(schema_nap.names)
    checks.append(
        CheckResult(
            id="schema_has_name",
            label="Business Name in Schema",
            passed=has_name,
            score=3 if has_name else 0,
            max_score=3,
            details=(
                f'Found business name: "{schema_nap.names[0]}"'
                if has_name
                else "No business name found in schema markup"
            ),
        )
    )
    if not has_name and has_entity:
        recommendations.append(
            _rec(
                "add_schema_name",
                "Add Business Name to Schema",
                "Your schema markup exists but is missing your business name. AI needs this "
                "to identify you.",
                Impact.HIGH,
                Difficulty.EASY,
                3,
                'Add a "name" property to your Organization or LocalBusiness schema with your '
                "official business name.",
            )
        )

    # 3. Address in schema (3 pts)
    has_address = bool(schema_nap.addresses)
    checks.append(
        CheckResult(
            id="schema_has_address",
            label="Address in Schema",
            passed=has_address,
            score=3 if has_address else 0,
            max_score=3,
            details="Found address in schema" if has_address else "No address found in schema markup",
        )
    )
    if not has_address:
        recommendations.append(
            _rec(
                "add_schema_address",
                "Add Your Address to Schema",
                "AI systems use your address to recommend you for local searches. Without it, "
                'you may be invisible for "near me" queries.',
                Impact.HIGH,
                Difficulty.EASY,
                3,
                'Add a "address" property with streetAddress, addressLocality, addressRegion, '
                "and postalCode to your schema.",
            )
        )

    # 4. Phone in schema (2 pts)
    has_phone = bool(schema_nap.phones)
    checks.append(
        CheckResult(
            id="schema_has_phone",
            label="Phone Number in Schema",
            passed=has_phone,
            score=2 if has_phone else 0,
            max_score=2,
            details=(
                "Found phone number in schema"
                if has_phone
                else "No phone number found in schema markup"
            ),
        )
    )
    if not has_phone:
        recommendations.append(
            _rec(
                "add_schema_phone",
                "Add Phone Number to Schema",
                "A phone number in your schema markup helps AI verify your business is real "
                "and contactable.",
                Impact.MEDIUM,
                Difficulty.EASY,
                2,
                'Add a "telephone" property to your schema markup with your main business '
                "phone number.",
            )
        )

    # 5. NAP consistency (4 pts)
    consistency = check_nap_consistency(html_nap, schema_nap)
    consistency_score = consistency.score
    nap_passed = consistency_score >= 3

    def verdict(matched: bool) -> str:
        return "matches" if matched else "mismatch"

    checks.append(
        CheckResult(
            id="nap_consistency",
            label="NAP Consistency",
            passed=nap_passed,
            score=consistency_score,
            max_score=4,
            details=(
                f"Name {verdict(consistency.name_match)}, "
                f"Phone {verdict(consistency.phone_match)}, "
                f"Address {verdict(consistency.address_match)}"
            ),
        )
    )
    if not nap_passed:
        recommendations.append(
            _rec(
                "fix_nap_consistency",
                "Fix Name/Address/Phone Inconsistencies",
                "Your business details in the schema markup don't match what's shown on your "
                "page. AI systems see this as untrustworthy.",
                Impact.HIGH,
                Difficulty.EASY,
                4 - consistency_score,
                "Make sure your business name, address, and phone number are exactly the same "
                "in your schema markup and on your visible web page.",
            )
        )

    # 6. Address geocodes (3 pts)
    address_validates = bool(geocode_result and geocode_result.found)
    if address_validates:
        address_details = "Address successfully found on map"
    elif address_to_check:
        address_details = "Address could not be verified on map"
    else:
        address_details = "No address found to verify"
    checks.append(
        CheckResult(
            id="address_validates",
            label="Address Validates on Map",
            passed=address_validates,
            score=3 if address_validates else 0,
            max_score=3,
            details=address_details,
        )
    )
    if not address_validates and address_to_check:
        recommendations.append(
            _rec(
                "fix_address",
                "Verify Your Address Format",
                "Your address couldn't be found on a map. This may mean it's formatted "
                "incorrectly or incomplete.",
                Impact.MEDIUM,
                Difficulty.EASY,
                3,
                'Use a standard address format: "123 Main Street, City, ST 12345". Make sure '
                "it matches your actual Google Maps listing.",
            )
        )

    # 7. sameAs links declared (3 pts)
    same_as_count = len(same_as)
    has_same_as = same_as_count >= 2
    partial = 1 if same_as_count == 1 else 0
    checks.append(
        CheckResult(
            id="has_sameas_links",
            label="Social Profile Links in Schema",
            passed=has_same_as,
            score=3 if has_same_as else partial,
            max_score=3,
            details=f"Found {same_as_count} social profile link(s) in schema",
        )
    )
    if not has_same_as:
        recommendations.append(
            _rec(
                "add_sameas_links",
                "Link Your Social Profiles in Schema",
                "Adding links to your social media profiles (Facebook, Instagram, Yelp, etc.) "
                "in your schema helps AI verify you're a real, active business.",
                Impact.MEDIUM,
                Difficulty.EASY,
                3 - partial,
                'Add a "sameAs" property to your schema with an array of URLs to your social '
                "media profiles and business directory listings.",
            )
        )

    # 8. sameAs links resolve (2 pts)
    same_as_resolve = live_same_as >= MIN_RESOLVING_SAMEAS
    checks.append(
        CheckResult(
            id="sameas_links_resolve",
            label="Social Links Are Active",
            passed=same_as_resolve,
            score=2 if same_as_resolve else 0,
            max_score=2,
            details=(
                "Social profile links are active and reachable"
                if same_as_resolve
                else "Social profile links could not be verified"
            ),
        )
    )

    signals = {
        "schema_types": list(page.structured_data.types),
        "html_nap": {
            "name_count": len(html_nap.names),
            "address_count": len(html_nap.addresses),
            "phone_count": len(html_nap.phones),
        },
        "schema_nap": {
            "names": list(schema_nap.names),
            "has_address": has_address,
            "has_phone": has_phone,
        },
        "nap_consistency": consistency.to_dict(),
        "address_validated": address_validates,
        "same_as_count": same_as_count,
        "same_as_resolve": same_as_resolve,
    }

    logger.debug("entity_scored", url=page.url, score=sum(c.score for c in checks))
    return ModuleResult.from_checks(PILLAR, checks, recommendations, signals)
