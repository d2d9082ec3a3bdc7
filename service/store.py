"""Scan persistence.

`ScanStore` is the interface the orchestrator and scan service talk to;
`SqlScanStore` implements it on SQLAlchemy async sessions.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from service.database import get_session_maker
from service.exceptions import ScanNotFoundError
from service.models import Scan, ScanCache, ScanResult, ScanStatus

logger = structlog.get_logger(__name__)


class ScanStore(Protocol):
    """Storage operations used by the scan pipeline."""

    async def create_scan(
        self,
        url: str,
        normalized_url: str,
        *,
        user_id: str | None = None,
        ip_address: str | None = None,
    ) -> Scan: ...

    async def get_scan(self, scan_id: str) -> Scan | None: ...

    async def mark_processing(self, scan_id: str) -> None: ...

    async def complete_scan(
        self,
        scan_id: str,
        results: dict[str, Any],
        *,
        total_score: int,
        grade: str,
        duration_ms: int,
        completed_at: datetime,
    ) -> None: ...

    async def mark_failed(self, scan_id: str, *, error_message: str, duration_ms: int) -> None: ...

    async def get_results(self, scan_id: str) -> ScanResult | None: ...

    async def get_cached_scan_id(self, normalized_url: str, now: datetime) -> str | None: ...

    async def upsert_cache(self, normalized_url: str, scan_id: str, ttl: timedelta) -> None: ...


def _dialect_insert(dialect_name: str) -> Callable[..., Any]:
    """INSERT construct supporting ON CONFLICT for the bound database."""
    if dialect_name == "sqlite":
        return sqlite_insert
    return postgresql_insert


class SqlScanStore:
    """ScanStore backed by the scans, scan_results and scan_cache tables."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] | None = None):
        self._session_maker = session_maker or get_session_maker()

    async def _load(self, db: AsyncSession, scan_id: str) -> Scan:
        result = await db.execute(select(Scan).where(Scan.id == scan_id))
        scan = result.scalar_one_or_none()
        if scan is None:
            raise ScanNotFoundError(scan_id)
        return scan

    async def create_scan(
        self,
        url: str,
        normalized_url: str,
        *,
        user_id: str | None = None,
        ip_address: str | None = None,
    ) -> Scan:
        async with self._session_maker() as db:
            scan = Scan(
                url=url,
                normalized_url=normalized_url,
                status=ScanStatus.PENDING.value,
                user_id=user_id,
                ip_address=ip_address,
            )
            db.add(scan)
            await db.commit()
            await db.refresh(scan)
            logger.info("scan_created", scan_id=scan.id, url=url)
            return scan

    async def get_scan(self, scan_id: str) -> Scan | None:
        async with self._session_maker() as db:
            result = await db.execute(select(Scan).where(Scan.id == scan_id))
            return result.scalar_one_or_none()

    async def mark_processing(self, scan_id: str) -> None:
        async with self._session_maker() as db:
            scan = await self._load(db, scan_id)
            scan.status = ScanStatus.PROCESSING.value
            await db.commit()
        logger.info("scan_status_updated", scan_id=scan_id, status=ScanStatus.PROCESSING.value)

    async def complete_scan(
        self,
        scan_id: str,
        results: dict[str, Any],
        *,
        total_score: int,
        grade: str,
        duration_ms: int,
        completed_at: datetime,
    ) -> None:
        """
        Write the result row and mark the scan completed in one transaction.

        Args:
            scan_id: Owning scan
            results: Column values for ScanResult (scores, signals, metadata)
            total_score: Overall score, 0-100
            grade: Letter grade
            duration_ms: Wall-clock scan duration
            completed_at: Completion time
        """
        async with self._session_maker() as db:
            scan = await self._load(db, scan_id)
            db.add(ScanResult(scan_id=scan_id, **results))
            scan.status = ScanStatus.COMPLETED.value
            scan.total_score = total_score
            scan.grade = grade
            scan.scan_duration_ms = duration_ms
            scan.completed_at = completed_at
            await db.commit()
        logger.info("scan_status_updated", scan_id=scan_id, status=ScanStatus.COMPLETED.value)

    async def mark_failed(self, scan_id: str, *, error_message: str, duration_ms: int) -> None:
        async with self._session_maker() as db:
            scan = await self._load(db, scan_id)
            scan.status = ScanStatus.FAILED.value
            scan.error_message = error_message
            scan.scan_duration_ms = duration_ms
            await db.commit()
        logger.info("scan_status_updated", scan_id=scan_id, status=ScanStatus.FAILED.value)

    async def get_results(self, scan_id: str) -> ScanResult | None:
        async with self._session_maker() as db:
            result = await db.execute(select(ScanResult).where(ScanResult.scan_id == scan_id))
            return result.scalar_one_or_none()

    async def get_cached_scan_id(self, normalized_url: str, now: datetime) -> str | None:
        """Scan id cached for a URL, if the entry has not expired."""
        async with self._session_maker() as db:
            result = await db.execute(
                select(ScanCache.scan_id).where(
                    ScanCache.normalized_url == normalized_url,
                    ScanCache.expires_at > now,
                )
            )
            return result.scalar_one_or_none()

    async def upsert_cache(self, normalized_url: str, scan_id: str, ttl: timedelta) -> None:
        """Point a URL's cache entry at a scan in one INSERT ... ON CONFLICT statement."""
        now = datetime.now(UTC)
        async with self._session_maker() as db:
            insert = _dialect_insert(db.get_bind().dialect.name)
            stmt = insert(ScanCache).values(
                normalized_url=normalized_url,
                scan_id=scan_id,
                cached_at=now,
                expires_at=now + ttl,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[ScanCache.normalized_url],
                set_={
                    "scan_id": stmt.excluded.scan_id,
                    "cached_at": stmt.excluded.cached_at,
                    "expires_at": stmt.excluded.expires_at,
                },
            )
            await db.execute(stmt)
            await db.commit()
        logger.debug("scan_cache_updated", normalized_url=normalized_url, scan_id=scan_id)
