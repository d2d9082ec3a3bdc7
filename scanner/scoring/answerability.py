"""Answerability Coverage pillar (20 points).

Does the page answer the questions people put to assistants: hours,
prices, location, contact, FAQs and what the business actually offers.
"""

import re

from scanner.crawler.sources import DataSources
from scanner.extraction.nap import EMAIL_RE, PHONE_RE
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

PILLAR = PillarName.ANSWERABILITY_COVERAGE
_rec = pillar_recommendation(PILLAR)

HOURS_PATTERNS = [
    re.compile(
        r"\b(?:mon(?:day)?|tue(?:sday)?|wed(?:nesday)?|thu(?:rsday)?|fri(?:day)?"
        r"|sat(?:urday)?|sun(?:day)?)\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"\d{1,2}(?::\d{2})?\s*(?:am|pm)\s*[-–to]+\s*\d{1,2}(?::\d{2})?\s*(?:am|pm)",
        re.IGNORECASE,
    ),
    re.compile(r"open\s+(?:daily|24|hours)", re.IGNORECASE),
    re.compile(r"business hours", re.IGNORECASE),
    re.compile(r"hours of operation", re.IGNORECASE),
]

PRICING_PATTERNS = [
    re.compile(r"\$\d"),
    re.compile(r"\bpric(?:e|ing|es)\b", re.IGNORECASE),
    re.compile(r"\bcosts?\b", re.IGNORECASE),
    re.compile(r"\brat(?:e|es)\b", re.IGNORECASE),
    re.compile(r"\bstarting\s+(?:at|from)\b", re.IGNORECASE),
    re.compile(r"\bper\s+(?:month|hour|session|visit|person)\b", re.IGNORECASE),
    re.compile(r"\bfree\s+(?:consultation|estimate|quote)\b", re.IGNORECASE),
]

LOCATION_PATTERNS = [
    re.compile(r"\blocated\s+(?:at|in|on)\b", re.IGNORECASE),
    re.compile(r"\bour\s+(?:location|address|office)\b", re.IGNORECASE),
    re.compile(r"\bvisit\s+us\b", re.IGNORECASE),
    re.compile(r"\bget\s+directions\b", re.IGNORECASE),
    re.compile(r"\bservice\s+area\b", re.IGNORECASE),
    re.compile(r"\bserving\b", re.IGNORECASE),
]

CONTACT_FORM_RE = re.compile(r"contact\s+(?:us|form)", re.IGNORECASE)

QUESTION_WORDS_RE = re.compile(
    r"\b(?:how|what|why|when|where|does|can|is|do|should|will|who)\b", re.IGNORECASE
)

SERVICE_KEYWORDS = (
    "service",
    "what we",
    "our ",
    "offer",
    "product",
    "solution",
    "feature",
    "specialt",
    "treatment",
    "package",
)

MIN_WORDS = 300
MIN_WORDS_PARTIAL = 150


def _any_match(patterns: list[re.Pattern], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def question_headings(headings: list[str]) -> list[str]:
    return [h for h in headings if QUESTION_WORDS_RE.search(h)]


def service_headings(headings: list[str]) -> list[str]:
    return [h for h in headings if any(word in h.lower() for word in SERVICE_KEYWORDS)]


def contact_methods(text: str) -> list[str]:
    """Which of phone, email and contact form the text offers."""
    found = []
    if PHONE_RE.search(text):
        found.append("phone")
    if EMAIL_RE.search(text):
        found.append("email")
    if CONTACT_FORM_RE.search(text):
        found.append("contact form")
    return found


async def score_answerability(
    page: ParsedPage, sources: DataSources, settings: Settings
) -> ModuleResult:
    """Score how well the page answers common customer questions."""
    checks: list[CheckResult] = []
    recommendations: list[Recommendation] = []

    content = page.content
    body = content.body_text
    schema = page.structured_data
    local_business = schema.local_business
    sub_headings = content.h2s + content.h3s

    # 1. Business hours (3 pts)
    hours_in_schema = bool(local_business and local_business.has_opening_hours)
    has_hours = hours_in_schema or _any_match(HOURS_PATTERNS, body)
    if not has_hours:
        hours_details = "No business hours found"
    elif hours_in_schema:
        hours_details = "Hours found in schema markup and on page"
    else:
        hours_details = "Hours found on page"
    checks.append(
        CheckResult(
            id="has_business_hours",
            label="Business Hours Listed",
            passed=has_hours,
            score=3 if has_hours else 0,
            max_score=3,
            details=hours_details,
        )
    )
    if not has_hours:
        recommendations.append(
            _rec(
                "add_business_hours",
                "Add Your Business Hours",
                '"What time are you open?" is one of the most common questions people ask AI. '
                "If your hours aren't on your website, AI can't answer, and it will recommend "
                "someone who does list them.",
                Impact.HIGH,
                Difficulty.EASY,
                3,
                "Add your hours of operation to your homepage or contact page. Format them "
                'clearly, like "Monday-Friday: 9:00 AM - 5:00 PM".',
            )
        )

    # 2. Pricing (3 pts)
    has_pricing = _any_match(PRICING_PATTERNS, body)
    checks.append(
        CheckResult(
            id="has_pricing_info",
            label="Pricing Information",
            passed=has_pricing,
            score=3 if has_pricing else 0,
            max_score=3,
            details=(
                "Pricing or cost information found on page"
                if has_pricing
                else "No pricing information found"
            ),
        )
    )
    if not has_pricing:
        recommendations.append(
            _rec(
                "add_pricing_info",
                "Add Pricing Information",
                '"How much does it cost?" is one of the first things people ask AI. If your '
                "prices aren't on your site, AI will recommend competitors who do show theirs.",
                Impact.HIGH,
                Difficulty.EASY,
                3,
                'Add a pricing section or page to your website. Even "Starting at $X" or '
                '"Call for a free quote" is better than nothing.',
            )
        )

    # 3. Location or service area (3 pts)
    location_in_schema = bool(local_business and local_business.address is not None)
    has_location = location_in_schema or _any_match(LOCATION_PATTERNS, body)
    checks.append(
        CheckResult(
            id="has_location_info",
            label="Location Information",
            passed=has_location,
            score=3 if has_location else 0,
            max_score=3,
            details=(
                "Location or service area information found"
                if has_location
                else "No location information found"
            ),
        )
    )
    if not has_location:
        recommendations.append(
            _rec(
                "add_location_info",
                "Add Your Location or Service Area",
                'When people ask AI "best [service] near me," your location matters. Without '
                "it, AI has no idea where you are.",
                Impact.HIGH,
                Difficulty.EASY,
                3,
                "Add your physical address or service area to your homepage. Include it in both "
                "your schema markup and visible on the page.",
            )
        )

    # 4. Contact methods (2 pts)
    methods = contact_methods(body)
    has_contact = bool(methods)
    checks.append(
        CheckResult(
            id="has_contact_methods",
            label="Contact Methods Available",
            passed=has_contact,
            score=2 if has_contact else 0,
            max_score=2,
            details=f"Found {len(methods)} contact method(s): {', '.join(methods) or 'none'}",
        )
    )
    if not has_contact:
        recommendations.append(
            _rec(
                "add_contact_info",
                "Add Contact Information",
                "AI systems need to verify your business is reachable. A phone number, email, "
                "or contact form is essential.",
                Impact.HIGH,
                Difficulty.EASY,
                2,
                "Add your phone number and email address to your website, ideally in the header "
                "or footer so it appears on every page.",
            )
        )

    # 5. FAQ content (3 pts)
    questions = question_headings(sub_headings)
    has_faq_schema = schema.has_faq_page
    html = page.html
    has_details_summary = "<details" in html and "<summary" in html
    has_faq = len(questions) >= 2 or has_faq_schema or has_details_summary
    if has_faq:
        faq_score = 3
        faq_details = f"Found {len(questions)} question-style headings" + (
            " (with FAQ schema)" if has_faq_schema else ""
        )
    else:
        faq_score = 1 if len(questions) == 1 else 0
        faq_details = (
            "1 question-style heading found" if faq_score else "No FAQ-style content found"
        )
    checks.append(
        CheckResult(
            id="has_faq_content",
            label="FAQ Content Present",
            passed=has_faq,
            score=faq_score,
            max_score=3,
            details=faq_details,
        )
    )
    if not has_faq:
        recommendations.append(
            _rec(
                "add_faq_content",
                "Add a FAQ Section",
                "AI answers are built from questions and answers. A FAQ section on your site "
                "gives AI ready-made answers to recommend. This is one of the easiest wins for "
                "AI visibility.",
                Impact.HIGH,
                Difficulty.EASY,
                3 - faq_score,
                "Add a FAQ section to your homepage or create a dedicated FAQ page. Include 5-10 "
                "common questions your customers ask, with clear and concise answers.",
            )
        )

    # 6. Service descriptions (3 pts)
    services = service_headings(sub_headings)
    has_services = bool(services)
    checks.append(
        CheckResult(
            id="has_service_descriptions",
            label="Service Descriptions",
            passed=has_services,
            score=3 if has_services else 0,
            max_score=3,
            details=(
                f"Found {len(services)} service-related section(s)"
                if has_services
                else "No clear service or product descriptions found"
            ),
        )
    )
    if not has_services:
        recommendations.append(
            _rec(
                "add_service_descriptions",
                "Describe Your Services Clearly",
                "AI needs to understand what you do to recommend you. Without clear "
                "descriptions of your services or products, AI can't match you to what people "
                "are looking for.",
                Impact.HIGH,
                Difficulty.MODERATE,
                3,
                'Add sections with headings like "Our Services" or "What We Offer" followed by a '
                "short description of each service.",
            )
        )

    # 7. Content length (2 pts)
    word_count = content.word_count
    sufficient = word_count >= MIN_WORDS
    length_score = 2 if sufficient else 1 if word_count >= MIN_WORDS_PARTIAL else 0
    checks.append(
        CheckResult(
            id="content_length_sufficient",
            label="Enough Content",
            passed=sufficient,
            score=length_score,
            max_score=2,
            details=f"{word_count} words on page (minimum recommended: {MIN_WORDS})",
        )
    )
    if not sufficient:
        recommendations.append(
            _rec(
                "add_more_content",
                "Add More Content to Your Page",
                f"Your page has {word_count} words. AI needs enough content to understand your "
                f"business. Aim for at least {MIN_WORDS} words on your homepage.",
                Impact.MEDIUM,
                Difficulty.MODERATE,
                2 - length_score,
                "Expand your homepage content with information about your services, your story, "
                "and answers to common questions.",
            )
        )

    # 8. Heading structure (1 pt)
    has_h1 = bool(content.h1s)
    has_subheadings = bool(content.h2s)
    logical = has_h1 and has_subheadings
    if logical:
        heading_details = (
            f"{len(content.h1s)} H1, {len(content.h2s)} H2, {len(content.h3s)} H3"
        )
    else:
        missing = [
            label
            for label, present in (("H1 heading", has_h1), ("subheadings", has_subheadings))
            if not present
        ]
        heading_details = "Missing " + " and ".join(missing)
    checks.append(
        CheckResult(
            id="heading_structure",
            label="Clear Heading Structure",
            passed=logical,
            score=1 if logical else 0,
            max_score=1,
            details=heading_details,
        )
    )

    signals = {
        "has_hours": has_hours,
        "has_pricing": has_pricing,
        "has_location": has_location,
        "contact_methods": len(methods),
        "faq_headings_count": len(questions),
        "has_faq_schema": has_faq_schema,
        "service_headings_count": len(services),
        "word_count": word_count,
        "h1_count": len(content.h1s),
        "h2_count": len(content.h2s),
    }

    return ModuleResult.from_checks(PILLAR, checks, recommendations, signals)
