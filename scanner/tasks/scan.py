"""Scan background task.

Drives one scan through its lifecycle: pending -> processing -> completed
or failed. The crawl, the five pillar scorers and the result write all run
under a single wall-clock budget.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from scanner.crawler.sources import DataSources
from scanner.crawler.url import normalize_url
from scanner.extraction.page import ParsedPage, parse_page
from scanner.fixes.ranker import Tier, rank_recommendations
from scanner.scoring.answerability import score_answerability
from scanner.scoring.calculator import ScoreBreakdown, calculate_total_score
from scanner.scoring.entity import score_entity_verifiability
from scanner.scoring.extractability import score_extractability
from scanner.scoring.freshness import score_freshness
from scanner.scoring.models import ModuleResult, PillarName, Recommendation
from scanner.scoring.trust import score_trust
from service.config import Settings, get_settings
from service.exceptions import PageStatusError, ScanTimeoutError, categorize_error
from service.store import ScanStore

logger = structlog.get_logger(__name__)

Scorer = Callable[[ParsedPage, DataSources, Settings], Awaitable[ModuleResult]]

SCORERS: dict[PillarName, Scorer] = {
    PillarName.ENTITY_VERIFIABILITY: score_entity_verifiability,
    PillarName.EXTRACTABILITY_SCHEMA: score_extractability,
    PillarName.FRESHNESS_MAINTENANCE: score_freshness,
    PillarName.TRUST_RISK: score_trust,
    PillarName.ANSWERABILITY_COVERAGE: score_answerability,
}

# scan_results column holding each pillar's signal bag
SIGNAL_COLUMNS: dict[PillarName, str] = {
    PillarName.ENTITY_VERIFIABILITY: "entity_signals",
    PillarName.EXTRACTABILITY_SCHEMA: "schema_signals",
    PillarName.FRESHNESS_MAINTENANCE: "freshness_signals",
    PillarName.TRUST_RISK: "trust_signals",
    PillarName.ANSWERABILITY_COVERAGE: "answerability_signals",
}


@dataclass
class ScanReport:
    """Everything a completed scan produced."""

    scan_id: str
    url: str
    final_url: str
    breakdown: ScoreBreakdown
    results: dict[PillarName, ModuleResult]
    recommendations: list[Recommendation]
    nap_data: dict = field(default_factory=dict)
    detected_schemas: list[str] = field(default_factory=list)
    meta_title: str | None = None
    meta_description: str | None = None
    duration_ms: int = 0

    def to_record(self) -> dict[str, Any]:
        """Column values for the scan_results row."""
        record: dict[str, Any] = {}
        for pillar, result in self.results.items():
            record[f"{pillar.value}_score"] = result.score
            record[SIGNAL_COLUMNS[pillar]] = result.signals
        record.update(
            detected_schemas=self.detected_schemas,
            nap_data=self.nap_data,
            meta_title=self.meta_title,
            meta_description=self.meta_description,
            recommendations=[rec.to_dict() for rec in self.recommendations],
        )
        return record

    def to_dict(self) -> dict:
        return {
            "scan_id": self.scan_id,
            "url": self.url,
            "final_url": self.final_url,
            "score": self.breakdown.to_dict(),
            "pillars": {pillar.value: result.to_dict() for pillar, result in self.results.items()},
            "recommendations": [rec.to_dict() for rec in self.recommendations],
            "nap_data": self.nap_data,
            "detected_schemas": self.detected_schemas,
            "meta_title": self.meta_title,
            "meta_description": self.meta_description,
            "duration_ms": self.duration_ms,
        }


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _root_cause(error: BaseException) -> BaseException:
    """First leaf of an exception group raised by the scorer task group."""
    while isinstance(error, BaseExceptionGroup) and error.exceptions:
        error = error.exceptions[0]
    return error


async def score_page(
    page: ParsedPage, sources: DataSources, settings: Settings
) -> dict[PillarName, ModuleResult]:
    """Run every pillar scorer concurrently over one parsed page."""
    async with asyncio.TaskGroup() as tg:
        tasks = {
            pillar: tg.create_task(scorer(page, sources, settings))
            for pillar, scorer in SCORERS.items()
        }
    return {pillar: task.result() for pillar, task in tasks.items()}


async def _execute(
    scan_id: str,
    url: str,
    store: ScanStore,
    sources: DataSources,
    settings: Settings,
    started: float,
) -> ScanReport:
    crawl = await sources.fetch_page(url)
    if crawl.status_code >= 400:
        raise PageStatusError(crawl.final_url, crawl.status_code)

    page = parse_page(crawl)
    logger.info(
        "page_parsed",
        scan_id=scan_id,
        final_url=crawl.final_url,
        schema_types=list(page.structured_data.types),
        word_count=page.content.word_count,
    )

    results = await score_page(page, sources, settings)
    breakdown = calculate_total_score(results)
    recommendations = rank_recommendations(results.values(), Tier.FREE)

    report = ScanReport(
        scan_id=scan_id,
        url=url,
        final_url=crawl.final_url,
        breakdown=breakdown,
        results=results,
        recommendations=recommendations,
        nap_data=page.nap_summary(),
        detected_schemas=list(page.structured_data.types),
        meta_title=page.content.title,
        meta_description=page.content.meta_description,
    )
    report.duration_ms = _elapsed_ms(started)
    # Results row and completed status land together or not at all
    await store.complete_scan(
        scan_id,
        report.to_record(),
        total_score=breakdown.total_score,
        grade=breakdown.grade,
        duration_ms=report.duration_ms,
        completed_at=datetime.now(UTC),
    )
    return report


async def run_scan(
    scan_id: str,
    url: str,
    *,
    store: ScanStore,
    sources: DataSources | None = None,
    settings: Settings | None = None,
) -> ScanReport:
    """
    Run a scan end to end and persist its outcome.

    Args:
        scan_id: Existing scan record to drive
        url: Validated URL to audit
        store: Scan persistence
        sources: Page and auxiliary data sources (live clients by default)
        settings: Timeouts and limits

    Returns:
        ScanReport for the completed scan

    Raises:
        ScanTimeoutError: The scan exceeded its budget (after marking it failed)
        Exception: Any other fatal error, re-raised after marking the scan failed
    """
    settings = settings or get_settings()
    sources = sources or DataSources.default(settings)

    # Every event logged during the scan, in any module, carries the scan id
    with structlog.contextvars.bound_contextvars(scan_id=scan_id):
        return await _run_scan(scan_id, url, store, sources, settings)


async def _run_scan(
    scan_id: str,
    url: str,
    store: ScanStore,
    sources: DataSources,
    settings: Settings,
) -> ScanReport:
    started = time.monotonic()

    logger.info("scan_starting", scan_id=scan_id, url=url)
    await store.mark_processing(scan_id)

    try:
        async with asyncio.timeout(settings.scan_timeout_seconds):
            report = await _execute(scan_id, url, store, sources, settings, started)
    except TimeoutError as e:
        error = ScanTimeoutError(settings.scan_timeout_seconds)
        await _fail(store, scan_id, error, started)
        raise error from e
    except Exception as e:
        await _fail(store, scan_id, _root_cause(e), started)
        raise

    scan = await store.get_scan(scan_id)
    normalized = scan.normalized_url if scan else normalize_url(url)
    await store.upsert_cache(
        normalized, scan_id, timedelta(seconds=settings.scan_cache_ttl_seconds)
    )

    logger.info(
        "scan_completed",
        scan_id=scan_id,
        total_score=report.breakdown.total_score,
        grade=report.breakdown.grade,
        duration_ms=report.duration_ms,
    )
    return report


async def _fail(store: ScanStore, scan_id: str, error: BaseException, started: float) -> None:
    message = categorize_error(error)
    duration_ms = _elapsed_ms(started)
    logger.error(
        "scan_failed",
        scan_id=scan_id,
        error=str(error),
        error_type=type(error).__name__,
        duration_ms=duration_ms,
    )
    await store.mark_failed(scan_id, error_message=message, duration_ms=duration_ms)
