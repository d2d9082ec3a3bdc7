"""Tests for the Extractability & Schema pillar."""

from datetime import UTC, datetime

import pytest

from scanner.crawler.robots import RobotsResult
from scanner.crawler.sitemap import SitemapResult
from scanner.extraction.page import parse_page
from scanner.scoring.extractability import ai_bot_score, score_extractability
from tests.fixtures import BARE_HTML, LOCAL_BUSINESS_HTML, FakeDataSources, make_crawl

SITEMAP = SitemapResult(
    exists=True,
    url_count=12,
    last_mod_dates=("2024-06-01",),
    most_recent_mod=datetime(2024, 6, 1, tzinfo=UTC),
)


def _checks(result) -> dict[str, int]:
    return {check.id: check.score for check in result.checks}


class TestAiBotScore:
    """Tests for ai_bot_score function."""

    @pytest.mark.parametrize(("blocked", "expected"), [(0, 2), (1, 1), (2, 1), (3, 0), (6, 0)])
    def test_bands(self, blocked: int, expected: int) -> None:
        """Score falls with the number of blocked bots."""
        assert ai_bot_score(blocked) == expected


class TestScoreExtractability:
    """Tests for score_extractability function."""

    @pytest.mark.asyncio
    async def test_local_business_without_sitemap_or_robots(self, settings) -> None:
        """Schema, canonical and meta earn points; missing files do not."""
        sources = FakeDataSources(settings=settings)
        page = parse_page(make_crawl(LOCAL_BUSINESS_HTML))

        result = await score_extractability(page, sources, settings)

        assert result.score == 14
        assert _checks(result) == {
            "has_any_jsonld": 3,
            "has_breadcrumb_schema": 0,
            "has_faq_schema": 3,
            "schema_validates": 2,
            "has_sitemap": 0,
            "has_robots_txt": 0,
            "robots_allows_ai_bots": 2,
            "has_canonical": 2,
            "meta_description_exists": 1,
            "meta_description_quality": 1,
        }
        assert [rec.id for rec in result.recommendations] == [
            "add_breadcrumb_schema",
            "add_sitemap",
        ]
        assert sources.calls_to("sitemap") == ["https://sunrisedental.com"]
        assert sources.calls_to("robots") == ["https://sunrisedental.com"]

    @pytest.mark.asyncio
    async def test_bare_page(self, settings) -> None:
        """A bare page only gets the vacuous schema and open-robots credit."""
        sources = FakeDataSources(settings=settings)
        page = parse_page(make_crawl(BARE_HTML, "http://bare-example.com/"))

        result = await score_extractability(page, sources, settings)

        assert result.score == 4
        assert _checks(result)["schema_validates"] == 2
        assert _checks(result)["robots_allows_ai_bots"] == 2
        rec_ids = [rec.id for rec in result.recommendations]
        assert "add_structured_data" in rec_ids
        assert "add_faq_schema" in rec_ids
        assert "fix_meta_description" not in rec_ids

    @pytest.mark.asyncio
    async def test_sitemap_and_robots_present(self, settings) -> None:
        """Reachable sitemap and robots.txt earn their points."""
        robots = RobotsResult.from_content("User-agent: *\nAllow: /\n", "https://sunrisedental.com")
        sources = FakeDataSources(settings=settings, sitemap=SITEMAP, robots=robots)
        page = parse_page(make_crawl(LOCAL_BUSINESS_HTML))

        result = await score_extractability(page, sources, settings)

        assert result.score == 18
        assert result.signals["sitemap_url_count"] == 12

    @pytest.mark.asyncio
    async def test_blocked_ai_bots(self, settings) -> None:
        """Blocking AI bots costs points and names the bots."""
        content = "User-agent: GPTBot\nDisallow: /\n\nUser-agent: CCBot\nDisallow: /\n"
        robots = RobotsResult.from_content(content, "https://sunrisedental.com")
        sources = FakeDataSources(settings=settings, robots=robots)
        page = parse_page(make_crawl(LOCAL_BUSINESS_HTML))

        result = await score_extractability(page, sources, settings)

        assert _checks(result)["robots_allows_ai_bots"] == 1
        rec = next(r for r in result.recommendations if r.id == "unblock_ai_bots")
        assert rec.points_recoverable == 1
        assert "GPTBot, CCBot" in rec.description
        assert result.signals["blocked_bots"] == ["GPTBot", "CCBot"]

    @pytest.mark.asyncio
    async def test_short_meta_description(self, settings) -> None:
        """A too-short description gets presence credit only."""
        html = (
            '<html><head><meta name="description" content="Plumbers."></head>'
            "<body></body></html>"
        )
        sources = FakeDataSources(settings=settings)
        page = parse_page(make_crawl(html, "https://acme.example/"))

        result = await score_extractability(page, sources, settings)

        assert _checks(result)["meta_description_exists"] == 1
        assert _checks(result)["meta_description_quality"] == 0
        assert "fix_meta_description" in [rec.id for rec in result.recommendations]

    @pytest.mark.asyncio
    async def test_untyped_jsonld_fails_validation(self, settings) -> None:
        """JSON-LD without any @type is not valid schema."""
        html = '<script type="application/ld+json">{"name": "Acme"}</script>'
        sources = FakeDataSources(settings=settings)
        page = parse_page(make_crawl(html, "https://acme.example/"))

        result = await score_extractability(page, sources, settings)

        assert _checks(result)["has_any_jsonld"] == 3
        assert _checks(result)["schema_validates"] == 0

    @pytest.mark.asyncio
    async def test_invalid_block_noted(self, settings) -> None:
        """Unparseable blocks are skipped and reported in the details."""
        html = (
            '<script type="application/ld+json">{broken</script>'
            '<script type="application/ld+json">{"@type": "Organization"}</script>'
        )
        sources = FakeDataSources(settings=settings)
        page = parse_page(make_crawl(html, "https://acme.example/"))

        result = await score_extractability(page, sources, settings)

        check = next(c for c in result.checks if c.id == "schema_validates")
        assert check.score == 2
        assert "could not be parsed" in check.details
        assert result.signals["invalid_jsonld_blocks"] == 1
