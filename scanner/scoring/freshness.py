"""Freshness & Maintenance pillar (20 points)."""

import asyncio
import re
from datetime import UTC, datetime

from scanner.crawler.sources import DataSources
from scanner.crawler.url import get_domain, get_origin
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

PILLAR = PillarName.FRESHNESS_MAINTENANCE
_rec = pillar_recommendation(PILLAR)

COPYRIGHT_RE = re.compile(
    r"(?:copyright|&copy;|©)\s*(?:\d{4}\s*[-–]\s*)?(\d{4})", re.IGNORECASE
)
DATE_RE = re.compile(
    r"(?:January|February|March|April|May|June|July|August|September|October|November|December)"
    r"\s+\d{1,2},?\s+(\d{4})|(\d{4})-\d{2}-\d{2}",
    re.IGNORECASE,
)


def change_frequency_score(captures: int) -> int:
    if captures >= 12:
        return 5
    if captures >= 6:
        return 3
    if captures >= 2:
        return 1
    return 0


def sitemap_age_score(days: int) -> int:
    if days <= 30:
        return 4
    if days <= 90:
        return 2
    return 0


def link_health_score(working: int, total: int) -> int:
    """4 when every sampled link works; 2 (neutral) when nothing was sampled."""
    if total == 0:
        return 2
    if working == total:
        return 4
    if working >= total * 0.8:
        return 3
    if working >= total * 0.5:
        return 1
    return 0


def find_copyright_year(html: str) -> int | None:
    match = COPYRIGHT_RE.search(html)
    return int(match.group(1)) if match else None


def find_recent_dates(html: str, current_year: int) -> list[str]:
    """Month-name or ISO dates in the markup from last year onward."""
    recent = []
    for match in DATE_RE.finditer(html):
        year = int(match.group(1) or match.group(2))
        if year >= current_year - 1:
            recent.append(match.group(0))
    return recent


async def _check_links(sources: DataSources, links: list[str], timeout: float) -> list[bool]:
    if not links:
        return []
    return await sources.check_links(links, timeout)


async def score_freshness(
    page: ParsedPage,
    sources: DataSources,
    settings: Settings,
    now: datetime | None = None,
) -> ModuleResult:
    """
    Score how actively maintained the site looks.

    Args:
        page: Parsed page
        sources: Wayback, sitemap and link checker
        settings: Link sample size and timeout
        now: Reference time (defaults to current UTC time)

    Returns:
        ModuleResult for the freshness pillar
    """
    now = now or datetime.now(UTC)
    current_year = now.year
    checks: list[CheckResult] = []
    recommendations: list[Recommendation] = []

    sample = list(page.content.internal_links[: settings.link_sample_size])
    wayback, sitemap, link_results = await asyncio.gather(
        sources.wayback(get_domain(page.url)),
        sources.sitemap(get_origin(page.url)),
        _check_links(sources, sample, settings.link_check_timeout_seconds),
    )

    # 1. Archived captures exist (2 pts)
    checks.append(
        CheckResult(
            id="wayback_has_captures",
            label="Site Has History",
            passed=wayback.has_captures,
            score=2 if wayback.has_captures else 0,
            max_score=2,
            details=(
                f"Found {wayback.total_captures} archived version(s) in the last year"
                if wayback.has_captures
                else "No archived versions found in the last year"
            ),
        )
    )

    # 2. Change frequency (5 pts)
    captures = wayback.captures_last_12_months
    frequency_score = change_frequency_score(captures)
    checks.append(
        CheckResult(
            id="wayback_change_frequency",
            label="Update Frequency",
            passed=frequency_score >= 3,
            score=frequency_score,
            max_score=5,
            details=f"{captures} unique content changes detected in the last 12 months",
        )
    )
    if frequency_score < 3:
        recommendations.append(
            _rec(
                "improve_update_frequency",
                "Update Your Website More Often",
                "AI systems prefer websites that are actively maintained. Your site appears to "
                "rarely change, which signals to AI that the information might be outdated.",
                Impact.HIGH,
                Difficulty.MODERATE,
                5 - frequency_score,
                "Aim to update your website content at least once per month. Add blog posts, "
                "update your FAQ, refresh service descriptions, or post news about your "
                "business.",
            )
        )

    # 3. Sitemap lastmod recency (4 pts)
    days_since_mod: int | None = None
    sitemap_score = 0
    if sitemap.most_recent_mod is not None:
        days_since_mod = (now - sitemap.most_recent_mod).days
        sitemap_score = sitemap_age_score(days_since_mod)
        sitemap_details = f"Most recent sitemap update: {days_since_mod} day(s) ago"
    elif sitemap.exists:
        sitemap_details = "Sitemap exists but has no lastmod dates"
    else:
        sitemap_details = "No sitemap found to check freshness"
    checks.append(
        CheckResult(
            id="sitemap_recent_lastmod",
            label="Sitemap Shows Recent Updates",
            passed=sitemap_score >= 2,
            score=sitemap_score,
            max_score=4,
            details=sitemap_details,
        )
    )
    if sitemap_score < 2:
        recommendations.append(
            _rec(
                "update_sitemap_lastmod",
                "Keep Your Sitemap Up to Date",
                "Your sitemap doesn't show recent updates. This tells AI systems your site "
                "hasn't changed lately, making them less likely to use your content.",
                Impact.MEDIUM,
                Difficulty.EASY,
                4 - sitemap_score,
                "Make sure your sitemap.xml includes <lastmod> dates and that they update when "
                "you change pages. Most CMS platforms handle this automatically.",
            )
        )

    # 4. Internal links working (4 pts)
    working = sum(link_results)
    links_score = link_health_score(working, len(sample))
    checks.append(
        CheckResult(
            id="no_broken_links",
            label="Internal Links Working",
            passed=links_score >= 3,
            score=links_score,
            max_score=4,
            details=(
                f"{working}/{len(sample)} sampled internal links are working"
                if sample
                else "No internal links found to check"
            ),
        )
    )
    if links_score < 3 and sample:
        recommendations.append(
            _rec(
                "fix_broken_links",
                "Fix Broken Links on Your Site",
                "Some links on your website lead to pages that don't exist. Broken links make "
                "your site look abandoned and untrustworthy to AI.",
                Impact.MEDIUM,
                Difficulty.MODERATE,
                4 - links_score,
                'Check all the links on your website and fix or remove any that lead to error '
                'pages. Tools like "Broken Link Checker" can help you find them.',
            )
        )

    # 5. Copyright year (2 pts)
    copyright_year = find_copyright_year(page.html)
    copyright_current = copyright_year in (current_year, current_year - 1)
    checks.append(
        CheckResult(
            id="copyright_year_current",
            label="Copyright Year Current",
            passed=copyright_current,
            score=2 if copyright_current else 0,
            max_score=2,
            details=(
                f"Copyright year: {copyright_year}" if copyright_year else "No copyright year found"
            ),
        )
    )
    if not copyright_current:
        recommendations.append(
            _rec(
                "update_copyright_year",
                "Update Your Copyright Year",
                f"Your footer shows {copyright_year}. An outdated copyright year is the first "
                "thing that tells AI (and visitors) your site might be abandoned."
                if copyright_year
                else "No copyright year was found in your footer. Adding one shows your site "
                "is actively maintained.",
                Impact.LOW,
                Difficulty.EASY,
                2,
                f"Update the copyright year in your website footer to {current_year}. Better "
                "yet, set it to update automatically each year.",
            )
        )

    # 6. Recent dates in content (3 pts)
    recent_dates = find_recent_dates(page.html, current_year)
    has_recent_dates = bool(recent_dates)
    checks.append(
        CheckResult(
            id="page_has_dates",
            label="Content Has Recent Dates",
            passed=has_recent_dates,
            score=3 if has_recent_dates else 0,
            max_score=3,
            details=(
                f"Found {len(recent_dates)} date(s) from {current_year - 1}-{current_year}"
                if has_recent_dates
                else "No recent dates found in content"
            ),
        )
    )
    if not has_recent_dates:
        recommendations.append(
            _rec(
                "add_recent_dates",
                "Add Dates to Your Content",
                "Your website doesn't show any recent dates. Adding \"last updated\" dates or "
                "blog post dates shows AI that your information is current.",
                Impact.MEDIUM,
                Difficulty.EASY,
                3,
                'Add a "Last updated" date to your important pages (services, pricing, FAQ). '
                "Consider adding a blog or news section with dated posts.",
            )
        )

    signals = {
        "wayback_captures": captures,
        "sitemap_most_recent_mod": (
            sitemap.most_recent_mod.isoformat() if sitemap.most_recent_mod else None
        ),
        "sitemap_days_since_mod": days_since_mod,
        "broken_links_found": len(sample) - working,
        "links_checked": len(sample),
        "copyright_year": copyright_year,
        "recent_dates_found": len(recent_dates),
    }

    return ModuleResult.from_checks(PILLAR, checks, recommendations, signals)
