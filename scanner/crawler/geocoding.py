"""Nominatim geocoding client with a process-wide minimum-interval limiter."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
import structlog

logger = structlog.get_logger(__name__)

MIN_ADDRESS_LENGTH = 5


class MinIntervalRateLimiter:
    """
    Serializes callers so consecutive grants are at least `interval` apart.

    Callers queue on an asyncio.Lock; whoever holds it sleeps off the
    remainder of the interval, records the grant time and releases.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_grant: float | None = None

    async def wait(self) -> float:
        """Wait for this caller's turn; returns the delay applied."""
        async with self._lock:
            delay = 0.0
            if self._last_grant is not None:
                elapsed = self._clock() - self._last_grant
                if elapsed < self.interval:
                    delay = self.interval - elapsed
                    await self._sleep(delay)
            self._last_grant = self._clock()
            return delay


_default_limiter: MinIntervalRateLimiter | None = None


def get_default_limiter(interval: float = 1.1) -> MinIntervalRateLimiter:
    """Shared limiter for all scans in this process."""
    global _default_limiter
    if _default_limiter is None:
        _default_limiter = MinIntervalRateLimiter(interval)
    return _default_limiter


@dataclass(frozen=True)
class GeocodeResult:
    """Top Nominatim match for an address, if any."""

    found: bool = False
    display_name: str | None = None
    lat: float | None = None
    lon: float | None = None
    type: str | None = None
    importance: float | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "found": self.found,
            "display_name": self.display_name,
            "lat": self.lat,
            "lon": self.lon,
            "type": self.type,
            "importance": self.importance,
            "error": self.error,
        }


def _to_float(value) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Geocoder:
    """Looks up postal addresses through Nominatim."""

    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str,
        limiter: MinIntervalRateLimiter,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.user_agent = user_agent
        self.limiter = limiter
        self.timeout = timeout
        self._transport = transport

    async def geocode(self, address: str) -> GeocodeResult:
        """
        Resolve an address to its best match. Never raises.

        Args:
            address: Free-form postal address

        Returns:
            GeocodeResult with found=False when nothing matched or on error
        """
        if not address or len(address.strip()) < MIN_ADDRESS_LENGTH:
            return GeocodeResult(error="Address too short to geocode")

        await self.limiter.wait()

        params = {"q": address, "format": "json", "limit": "1", "addressdetails": "1"}
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.base_url, params=params, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("geocode_failed", address=address, error=str(e) or type(e).__name__)
            return GeocodeResult(error=str(e) or type(e).__name__)

        if response.status_code != 200:
            logger.warning("geocode_failed", address=address, status_code=response.status_code)
            return GeocodeResult(error=f"Nominatim API returned {response.status_code}")

        try:
            results = response.json()
        except ValueError as e:
            logger.warning("geocode_parse_failed", address=address, error=str(e))
            return GeocodeResult(error="Invalid Nominatim response")

        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            return GeocodeResult()

        top = results[0]
        return GeocodeResult(
            found=True,
            display_name=top.get("display_name"),
            lat=_to_float(top.get("lat")),
            lon=_to_float(top.get("lon")),
            type=top.get("type"),
            importance=_to_float(top.get("importance")),
        )
