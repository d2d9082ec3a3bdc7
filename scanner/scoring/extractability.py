"""Extractability & Schema pillar (20 points)."""

import asyncio

from scanner.crawler.sources import DataSources
from scanner.crawler.url import get_origin
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

PILLAR = PillarName.EXTRACTABILITY_SCHEMA
_rec = pillar_recommendation(PILLAR)

META_DESCRIPTION_MIN = 50
META_DESCRIPTION_MAX = 160


def ai_bot_score(blocked_count: int) -> int:
    """2 when no AI bot is blocked, 1 for up to two, else 0."""
    if blocked_count == 0:
        return 2
    return 1 if blocked_count <= 2 else 0


async def score_extractability(
    page: ParsedPage, sources: DataSources, settings: Settings
) -> ModuleResult:
    """Score how easily machines can read and navigate the page."""
    checks: list[CheckResult] = []
    recommendations: list[Recommendation] = []

    schema = page.structured_data
    content = page.content
    origin = get_origin(page.url)

    sitemap, robots = await asyncio.gather(sources.sitemap(origin), sources.robots(origin))

    # 1. Any JSON-LD (3 pts)
    has_jsonld = bool(schema.raw)
    checks.append(
        CheckResult(
            id="has_any_jsonld",
            label="Structured Data Found",
            passed=has_jsonld,
            score=3 if has_jsonld else 0,
            max_score=3,
            details=(
                f"Found {len(schema.raw)} structured data block(s): {', '.join(schema.types)}"
                if has_jsonld
                else "No JSON-LD structured data found on the page"
            ),
        )
    )
    if not has_jsonld:
        recommendations.append(
            _rec(
                "add_structured_data",
                "Add Structured Data to Your Site",
                "Structured data is like a cheat sheet for AI. It tells machines exactly what "
                "your business is, what you offer, and how to find you. Without it, AI has to "
                "guess, and it usually skips you.",
                Impact.HIGH,
                Difficulty.MODERATE,
                3,
                "Add a JSON-LD script tag to your homepage. At minimum, include Organization "
                "or LocalBusiness schema with your business details.",
            )
        )

    # 2. BreadcrumbList (2 pts)
    has_breadcrumb = schema.has_breadcrumb_list
    checks.append(
        CheckResult(
            id="has_breadcrumb_schema",
            label="Breadcrumb Schema",
            passed=has_breadcrumb,
            score=2 if has_breadcrumb else 0,
            max_score=2,
            details=(
                "BreadcrumbList schema found"
                if has_breadcrumb
                else "No BreadcrumbList schema found"
            ),
        )
    )
    if not has_breadcrumb:
        recommendations.append(
            _rec(
                "add_breadcrumb_schema",
                "Add Breadcrumb Schema",
                "Breadcrumb schema helps AI understand how your pages connect to each other. "
                "It makes your site structure clear and easy to navigate.",
                Impact.LOW,
                Difficulty.MODERATE,
                2,
                "Add BreadcrumbList JSON-LD schema that shows the hierarchy of your pages "
                "(Home > Services > Specific Service).",
            )
        )

    # 3. FAQPage (3 pts)
    has_faq = schema.has_faq_page
    checks.append(
        CheckResult(
            id="has_faq_schema",
            label="FAQ Schema",
            passed=has_faq,
            score=3 if has_faq else 0,
            max_score=3,
            details="FAQPage schema found" if has_faq else "No FAQPage schema found",
        )
    )
    if not has_faq:
        recommendations.append(
            _rec(
                "add_faq_schema",
                "Add FAQ Schema Markup",
                "FAQ schema is one of the most powerful ways to show up in AI answers. When "
                'someone asks "How much does X cost?" or "What are your hours?", FAQ schema '
                "makes your answers easy for AI to find and cite.",
                Impact.HIGH,
                Difficulty.EASY,
                3,
                "Create a FAQ section on your page with common questions and answers, then "
                "wrap it in FAQPage JSON-LD schema markup.",
            )
        )

    # 4. Structured data parses into typed nodes (2 pts)
    schema_valid = not schema.raw or bool(schema.types)
    if not schema_valid:
        schema_details = "Some structured data blocks have errors"
    elif schema.invalid_blocks:
        schema_details = f"{schema.invalid_blocks} JSON-LD block(s) could not be parsed and were skipped"
    else:
        schema_details = "All structured data parsed successfully"
    checks.append(
        CheckResult(
            id="schema_validates",
            label="Schema Is Valid",
            passed=schema_valid,
            score=2 if schema_valid else 0,
            max_score=2,
            details=schema_details,
        )
    )

    # 5. Sitemap reachable (2 pts)
    checks.append(
        CheckResult(
            id="has_sitemap",
            label="Sitemap Found",
            passed=sitemap.exists,
            score=2 if sitemap.exists else 0,
            max_score=2,
            details=(
                f"Sitemap found with {sitemap.url_count} URLs"
                if sitemap.exists
                else "No sitemap.xml found"
            ),
        )
    )
    if not sitemap.exists:
        recommendations.append(
            _rec(
                "add_sitemap",
                "Create a Sitemap",
                "A sitemap is a roadmap of your website. It tells search engines and AI "
                "systems where all your pages are and when they were last updated.",
                Impact.MEDIUM,
                Difficulty.EASY,
                2,
                "Create a sitemap.xml file and place it at the root of your website. Most "
                "website builders (WordPress, Wix, Squarespace) can generate this "
                "automatically.",
            )
        )

    # 6. robots.txt reachable (2 pts)
    checks.append(
        CheckResult(
            id="has_robots_txt",
            label="Robots.txt Found",
            passed=robots.exists,
            score=2 if robots.exists else 0,
            max_score=2,
            details="robots.txt found" if robots.exists else "No robots.txt found",
        )
    )

    # 7. AI bots allowed (2 pts)
    blocked = robots.blocked_ai_bots
    bots_score = ai_bot_score(len(blocked))
    checks.append(
        CheckResult(
            id="robots_allows_ai_bots",
            label="AI Bots Allowed",
            passed=not blocked,
            score=bots_score,
            max_score=2,
            details=(
                "All major AI bots are allowed to crawl your site"
                if not blocked
                else f"Blocked bots: {', '.join(blocked)}"
            ),
        )
    )
    if blocked:
        recommendations.append(
            _rec(
                "unblock_ai_bots",
                "Allow AI Bots to Read Your Site",
                f"Your robots.txt is blocking AI systems ({', '.join(blocked)}) from reading "
                "your site. If AI can't read your content, it can't recommend you.",
                Impact.HIGH,
                Difficulty.EASY,
                2 - bots_score,
                "Edit your robots.txt file to remove blocks on GPTBot, Google-Extended, CCBot, "
                "anthropic-ai, and PerplexityBot. If you didn't add these blocks "
                "intentionally, your web host or security plugin may have.",
            )
        )

    # 8. Canonical tag (2 pts)
    checks.append(
        CheckResult(
            id="has_canonical",
            label="Canonical Tag Present",
            passed=content.has_canonical,
            score=2 if content.has_canonical else 0,
            max_score=2,
            details=(
                f"Canonical URL: {content.canonical_url}"
                if content.has_canonical
                else "No canonical tag found"
            ),
        )
    )

    # 9. Meta description present (1 pt)
    description = content.meta_description
    has_description = bool(description)
    checks.append(
        CheckResult(
            id="meta_description_exists",
            label="Meta Description Present",
            passed=has_description,
            score=1 if has_description else 0,
            max_score=1,
            details=(
                f'Meta description: "{description[:80]}..."'
                if description
                else "No meta description found"
            ),
        )
    )

    # 10. Meta description length (1 pt)
    description_length = len(description) if description else 0
    good_length = META_DESCRIPTION_MIN <= description_length <= META_DESCRIPTION_MAX
    checks.append(
        CheckResult(
            id="meta_description_quality",
            label="Meta Description Length",
            passed=good_length,
            score=1 if good_length else 0,
            max_score=1,
            details=(
                f"{description_length} characters (ideal: "
                f"{META_DESCRIPTION_MIN}-{META_DESCRIPTION_MAX})"
                if has_description
                else "No meta description to evaluate"
            ),
        )
    )
    if has_description and not good_length:
        recommendations.append(
            _rec(
                "fix_meta_description",
                "Improve Your Meta Description",
                f"Your meta description is {description_length} characters. Aim for 50-160 "
                "characters for the best results in search and AI answers.",
                Impact.LOW,
                Difficulty.EASY,
                1,
                "Write a concise description of your business (50-160 characters) that "
                'answers the question "What does this business do?"',
            )
        )

    signals = {
        "schema_types": list(schema.types),
        "invalid_jsonld_blocks": schema.invalid_blocks,
        "sitemap_exists": sitemap.exists,
        "sitemap_url_count": sitemap.url_count,
        "robots_exists": robots.exists,
        "blocked_bots": blocked,
        "has_canonical": content.has_canonical,
        "meta_desc_length": description_length,
    }

    return ModuleResult.from_checks(PILLAR, checks, recommendations, signals)
