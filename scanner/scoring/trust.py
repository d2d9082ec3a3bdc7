"""Trust & Risk pillar (15 points).

TLS, security headers, Chrome UX Report field data, mixed content and a
privacy policy. Pages without CrUX data get neutral credit for the three
performance checks rather than a penalty.
"""

import math

from scanner.crawler.crux import MetricData
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

PILLAR = PillarName.TRUST_RISK
_rec = pillar_recommendation(PILLAR)

SECURITY_HEADERS = (
    "strict-transport-security",
    "x-content-type-options",
    "x-frame-options",
)

NO_FIELD_DATA = "Not enough traffic data to measure (neutral score awarded)"

# (good threshold, needs-improvement threshold, good score, needs-improvement score)
LCP_BANDS = (2500.0, 4000.0, 3, 1)
CLS_BANDS = (0.10, 0.25, 2, 1)
INP_BANDS = (200.0, 500.0, 2, 1)


def _usable(metric: MetricData | None) -> bool:
    return metric is not None and math.isfinite(metric.p75)


def band_score(value: float, bands: tuple[float, float, int, int]) -> int:
    good, needs_improvement, good_score, ni_score = bands
    if value <= good:
        return good_score
    if value <= needs_improvement:
        return ni_score
    return 0


def _rating(score: int, good_score: int) -> str:
    if score == good_score:
        return "Good"
    return "Needs Improvement" if score > 0 else "Poor"


def has_privacy_policy(page: ParsedPage) -> bool:
    """Internal link mentioning privacy/policy, or the phrase on the page."""
    for link in page.content.internal_links:
        lower = link.lower()
        if "privacy" in lower or "policy" in lower:
            return True
    return "privacy policy" in page.html.lower()


async def score_trust(page: ParsedPage, sources: DataSources, settings: Settings) -> ModuleResult:
    """Score security and real-user performance signals."""
    checks: list[CheckResult] = []
    recommendations: list[Recommendation] = []

    crawl = page.crawl
    tls = crawl.tls_info
    crux = await sources.crux(get_origin(page.url))

    # 1. HTTPS with verified certificate (3 pts)
    is_https = crawl.is_https
    https_valid = is_https and bool(tls and tls.valid)
    if https_valid:
        https_details = f"Valid HTTPS with {tls.protocol or 'TLS'} from {tls.issuer or 'unknown issuer'}"
    elif is_https:
        https_details = "HTTPS is enabled but certificate may have issues"
    else:
        https_details = "Site does not use HTTPS"
    checks.append(
        CheckResult(
            id="https_valid",
            label="Secure Connection (HTTPS)",
            passed=https_valid,
            score=3 if https_valid else 2 if is_https else 0,
            max_score=3,
            details=https_details,
        )
    )
    if not https_valid:
        recommendations.append(
            _rec(
                "enable_https",
                "Fix Your SSL Certificate" if is_https else "Enable HTTPS",
                "A secure connection (HTTPS) is a basic trust signal. AI systems strongly "
                "prefer secure websites. Without it, your site looks risky.",
                Impact.HIGH,
                Difficulty.MODERATE if is_https else Difficulty.EASY,
                1 if is_https else 3,
                "Your SSL certificate may be expired or misconfigured. Contact your web host "
                "to renew or fix it."
                if is_https
                else "Enable HTTPS on your website. Most web hosts offer free SSL certificates "
                "through Let's Encrypt.",
            )
        )

    # 2. Security headers (3 pts, 1 each)
    header_presence = {name: bool(crawl.header(name)) for name in SECURITY_HEADERS}
    present = [name for name, found in header_presence.items() if found]
    missing = [name for name, found in header_presence.items() if not found]
    checks.append(
        CheckResult(
            id="security_headers",
            label="Security Headers Present",
            passed=len(present) >= 2,
            score=len(present),
            max_score=3,
            details=f"{len(present)}/3 security headers found: {', '.join(present) or 'none'}",
        )
    )
    if missing:
        recommendations.append(
            _rec(
                "add_security_headers",
                "Add Security Headers",
                "Security headers protect your visitors and signal to AI that your site is "
                f"safe. You're missing: {', '.join(missing)}",
                Impact.MEDIUM,
                Difficulty.MODERATE,
                len(missing),
                "Add security headers to your web server configuration. Your hosting provider "
                "may have a setting for this, or you can add them through a CDN like "
                "Cloudflare.",
            )
        )

    # 3. LCP (3 pts)
    if crux.has_data and _usable(crux.lcp):
        lcp_ms = crux.lcp.p75
        lcp_seconds = f"{lcp_ms / 1000:.1f}"
        lcp_score = band_score(lcp_ms, LCP_BANDS)
        checks.append(
            CheckResult(
                id="crux_lcp",
                label="Page Load Speed (LCP)",
                passed=lcp_score >= 2,
                score=lcp_score,
                max_score=3,
                details=(
                    f"Largest Contentful Paint: {lcp_seconds}s "
                    f"({_rating(lcp_score, LCP_BANDS[2])})"
                ),
            )
        )
        if lcp_score < 3:
            recommendations.append(
                _rec(
                    "improve_lcp",
                    "Speed Up Your Page Load Time",
                    f"Your page takes {lcp_seconds} seconds to show its main content. "
                    "Fast-loading sites are trusted more by AI and preferred in search results.",
                    Impact.HIGH,
                    Difficulty.HARD,
                    3 - lcp_score,
                    "Optimize images (compress them, use modern formats like WebP), reduce the "
                    "number of scripts loading on your page, and consider using a CDN.",
                )
            )
    else:
        checks.append(
            CheckResult(
                id="crux_lcp",
                label="Page Load Speed (LCP)",
                passed=True,
                score=2,
                max_score=3,
                details=NO_FIELD_DATA,
            )
        )

    # 4. CLS (2 pts)
    if crux.has_data and _usable(crux.cls):
        cls_value = crux.cls.p75
        cls_score = band_score(cls_value, CLS_BANDS)
        checks.append(
            CheckResult(
                id="crux_cls",
                label="Visual Stability (CLS)",
                passed=cls_score >= 1,
                score=cls_score,
                max_score=2,
                details=(
                    f"Cumulative Layout Shift: {cls_value:.2f} "
                    f"({_rating(cls_score, CLS_BANDS[2])})"
                ),
            )
        )
        if cls_score < 2:
            recommendations.append(
                _rec(
                    "improve_cls",
                    "Reduce Layout Shifting",
                    "Your page content moves around as it loads, which makes it harder for "
                    "both visitors and AI to read your content reliably.",
                    Impact.MEDIUM,
                    Difficulty.HARD,
                    2 - cls_score,
                    "Set explicit width and height on images and ads. Avoid inserting content "
                    "above existing content after the page loads.",
                )
            )
    else:
        checks.append(
            CheckResult(
                id="crux_cls",
                label="Visual Stability (CLS)",
                passed=True,
                score=1,
                max_score=2,
                details=NO_FIELD_DATA,
            )
        )

    # 5. INP (2 pts)
    if crux.has_data and _usable(crux.inp):
        inp_ms = crux.inp.p75
        inp_score = band_score(inp_ms, INP_BANDS)
        checks.append(
            CheckResult(
                id="crux_inp",
                label="Responsiveness (INP)",
                passed=inp_score >= 1,
                score=inp_score,
                max_score=2,
                details=(
                    f"Interaction to Next Paint: {inp_ms:g}ms "
                    f"({_rating(inp_score, INP_BANDS[2])})"
                ),
            )
        )
    else:
        checks.append(
            CheckResult(
                id="crux_inp",
                label="Responsiveness (INP)",
                passed=True,
                score=1,
                max_score=2,
                details=NO_FIELD_DATA,
            )
        )

    # 6. No mixed content (1 pt)
    mixed = page.content.has_mixed_content
    checks.append(
        CheckResult(
            id="no_mixed_content",
            label="No Mixed Content",
            passed=not mixed,
            score=0 if mixed else 1,
            max_score=1,
            details=(
                "Page loads insecure (HTTP) resources on a secure (HTTPS) page"
                if mixed
                else "No mixed content detected"
            ),
        )
    )

    # 7. Privacy policy (1 pt)
    has_privacy = has_privacy_policy(page)
    checks.append(
        CheckResult(
            id="has_privacy_policy",
            label="Privacy Policy Present",
            passed=has_privacy,
            score=1 if has_privacy else 0,
            max_score=1,
            details="Privacy policy link found" if has_privacy else "No privacy policy link found",
        )
    )
    if not has_privacy:
        recommendations.append(
            _rec(
                "add_privacy_policy",
                "Add a Privacy Policy",
                "A privacy policy is expected by both visitors and AI. Not having one can make "
                "your site look less professional and trustworthy.",
                Impact.LOW,
                Difficulty.EASY,
                1,
                "Create a privacy policy page and link to it from your footer. Free privacy "
                "policy generators are available online.",
            )
        )

    signals = {
        "https_valid": https_valid,
        "tls_info": tls.to_dict() if tls else None,
        "security_headers": header_presence,
        "crux_has_data": crux.has_data,
        "crux_lcp": crux.lcp.p75 if crux.lcp else None,
        "crux_cls": crux.cls.p75 if crux.cls else None,
        "crux_inp": crux.inp.p75 if crux.inp else None,
        "has_mixed_content": mixed,
        "has_privacy_policy": has_privacy,
    }

    return ModuleResult.from_checks(PILLAR, checks, recommendations, signals)
