"""Chrome UX Report client for real-user performance percentiles."""

import math
from dataclasses import dataclass

import httpx
import structlog

logger = structlog.get_logger(__name__)

CRUX_METRICS = (
    "largest_contentful_paint",
    "cumulative_layout_shift",
    "interaction_to_next_paint",
)


@dataclass(frozen=True)
class MetricData:
    """p75 value plus good/needs-improvement/poor shares in percent."""

    p75: float
    good: int = 0
    needs_improvement: int = 0
    poor: int = 0

    def to_dict(self) -> dict:
        return {
            "p75": self.p75,
            "good": self.good,
            "needs_improvement": self.needs_improvement,
            "poor": self.poor,
        }


@dataclass(frozen=True)
class CruxResult:
    """Phone form-factor field data for an origin."""

    has_data: bool = False
    lcp: MetricData | None = None
    cls: MetricData | None = None
    inp: MetricData | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "has_data": self.has_data,
            "lcp": self.lcp.to_dict() if self.lcp else None,
            "cls": self.cls.to_dict() if self.cls else None,
            "inp": self.inp.to_dict() if self.inp else None,
            "error": self.error,
        }


def _density(histogram: list, index: int) -> int:
    try:
        return round(float(histogram[index].get("density", 0)) * 100)
    except (IndexError, AttributeError, TypeError, ValueError, OverflowError):
        return 0


def parse_metric(metric: dict | None) -> MetricData | None:
    """Parse one CrUX metric record; None when it carries no p75."""
    if not isinstance(metric, dict):
        return None
    percentiles = metric.get("percentiles")
    p75 = percentiles.get("p75") if isinstance(percentiles, dict) else None
    if p75 is None:
        return None
    try:
        # CLS p75 arrives as a string such as "0.05"
        p75_value = float(p75)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(p75_value):
        return None

    histogram = metric.get("histogram")
    if not isinstance(histogram, list):
        histogram = []
    return MetricData(
        p75=p75_value,
        good=_density(histogram, 0),
        needs_improvement=_density(histogram, 1),
        poor=_density(histogram, 2),
    )


def parse_crux_record(payload: dict) -> CruxResult:
    """Turn a queryRecord response body into a CruxResult."""
    record = payload.get("record") if isinstance(payload, dict) else None
    metrics = record.get("metrics") if isinstance(record, dict) else None
    if not isinstance(metrics, dict) or not metrics:
        return CruxResult()
    return CruxResult(
        has_data=True,
        lcp=parse_metric(metrics.get("largest_contentful_paint")),
        cls=parse_metric(metrics.get("cumulative_layout_shift")),
        inp=parse_metric(metrics.get("interaction_to_next_paint")),
    )


async def fetch_crux(
    origin: str,
    *,
    api_url: str,
    api_key: str | None,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CruxResult:
    """
    Query CrUX for an origin's phone field data.

    No API key, a 404 (origin not in the dataset) and any failure all
    produce a result with has_data=False.
    """
    if not api_key:
        return CruxResult(error="CrUX API key not configured")

    body = {"origin": origin, "formFactor": "PHONE", "metrics": list(CRUX_METRICS)}

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(api_url, params={"key": api_key}, json=body)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("crux_fetch_failed", origin=origin, error=str(e) or type(e).__name__)
        return CruxResult(error=str(e) or type(e).__name__)

    if response.status_code == 404:
        return CruxResult()
    if response.status_code != 200:
        logger.warning("crux_fetch_failed", origin=origin, status_code=response.status_code)
        return CruxResult(error=f"CrUX API returned {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        logger.warning("crux_parse_failed", origin=origin, error=str(e))
        return CruxResult(error="Invalid CrUX response")

    return parse_crux_record(payload)
