"""Scan, ScanResult and ScanCache models."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from service.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class ScanStatus(StrEnum):
    """Scan lifecycle states."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED)


def new_scan_id() -> str:
    """Generate an opaque scan identifier."""
    return f"sc_{uuid.uuid4().hex[:16]}"


class Scan(Base):
    """Scan model - one on-demand audit of a single URL."""

    __tablename__ = "scans"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_scan_id)

    url: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_url: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=ScanStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    # Attribution (opaque to the scanner)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Outcome
    total_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    grade: Mapped[str | None] = mapped_column(String(4), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    scan_duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    result: Mapped[ScanResult | None] = relationship(
        "ScanResult", back_populates="scan", uselist=False
    )


class ScanResult(Base):
    """Scan result model - written once per completed scan."""

    __tablename__ = "scan_results"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    scan_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("scans.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Pillar scores
    entity_verifiability_score: Mapped[int] = mapped_column(Integer, nullable=False)
    extractability_schema_score: Mapped[int] = mapped_column(Integer, nullable=False)
    freshness_maintenance_score: Mapped[int] = mapped_column(Integer, nullable=False)
    trust_risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    answerability_coverage_score: Mapped[int] = mapped_column(Integer, nullable=False)

    # Pillar signal bags (diagnostic only)
    entity_signals: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    schema_signals: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    freshness_signals: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    trust_signals: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    answerability_signals: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # Page metadata
    detected_schemas: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    nap_data: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    meta_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Ranked recommendations
    recommendations: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    scan: Mapped[Scan] = relationship("Scan", back_populates="result")


class ScanCache(Base):
    """Normalized URL to most recent completed scan, with a TTL."""

    __tablename__ = "scan_cache"

    normalized_url: Mapped[str] = mapped_column(Text, primary_key=True)
    scan_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("scans.id", ondelete="CASCADE"),
        nullable=False,
    )
    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
