"""Shared result types for the five pillar scorers."""

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any


class PillarName(StrEnum):
    """Scoring pillars."""

    ENTITY_VERIFIABILITY = "entity_verifiability"
    EXTRACTABILITY_SCHEMA = "extractability_schema"
    FRESHNESS_MAINTENANCE = "freshness_maintenance"
    TRUST_RISK = "trust_risk"
    ANSWERABILITY_COVERAGE = "answerability_coverage"


class Impact(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Difficulty(StrEnum):
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"


# Point budgets (total = 100)
PILLAR_MAX_POINTS: dict[PillarName, int] = {
    PillarName.ENTITY_VERIFIABILITY: 25,
    PillarName.EXTRACTABILITY_SCHEMA: 20,
    PillarName.FRESHNESS_MAINTENANCE: 20,
    PillarName.TRUST_RISK: 15,
    PillarName.ANSWERABILITY_COVERAGE: 20,
}

PILLAR_LABELS: dict[PillarName, str] = {
    PillarName.ENTITY_VERIFIABILITY: "Entity Verifiability",
    PillarName.EXTRACTABILITY_SCHEMA: "Extractability & Schema",
    PillarName.FRESHNESS_MAINTENANCE: "Freshness & Maintenance",
    PillarName.TRUST_RISK: "Trust & Risk Signals",
    PillarName.ANSWERABILITY_COVERAGE: "Answerability Coverage",
}

PILLAR_DESCRIPTIONS: dict[PillarName, str] = {
    PillarName.ENTITY_VERIFIABILITY: (
        "Can AI systems verify who you are? This checks whether your business name, "
        "address, and phone number are consistent and machine-readable."
    ),
    PillarName.EXTRACTABILITY_SCHEMA: (
        "Can AI systems easily read your website? This checks for structured data "
        "markup that helps machines understand your content."
    ),
    PillarName.FRESHNESS_MAINTENANCE: (
        "Does your website look active and maintained? AI systems prefer sources "
        "that are regularly updated."
    ),
    PillarName.TRUST_RISK: (
        "Is your website secure and fast? This checks for security best practices "
        "and real-world performance."
    ),
    PillarName.ANSWERABILITY_COVERAGE: (
        "Does your website answer the questions people actually ask? This checks "
        "whether your content covers common queries about your business."
    ),
}


@dataclass(frozen=True)
class CheckResult:
    """One atomic scoring unit."""

    id: str
    label: str
    passed: bool
    score: int
    max_score: int
    details: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.score <= self.max_score:
            raise ValueError(
                f"Check {self.id!r} score {self.score} outside 0..{self.max_score}"
            )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "passed": self.passed,
            "score": self.score,
            "max_score": self.max_score,
            "details": self.details,
        }


@dataclass(frozen=True)
class Recommendation:
    """One actionable fix, tied to the pillar whose points it recovers."""

    id: str
    title: str
    description: str
    impact: Impact
    difficulty: Difficulty
    pillar: PillarName
    points_recoverable: int
    how_to_fix: str | None = None

    def without_instructions(self) -> "Recommendation":
        """Copy with how_to_fix removed."""
        return replace(self, how_to_fix=None)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "impact": self.impact.value,
            "difficulty": self.difficulty.value,
            "pillar": self.pillar.value,
            "points_recoverable": self.points_recoverable,
            "how_to_fix": self.how_to_fix,
        }


@dataclass
class ModuleResult:
    """Outcome of one pillar scorer."""

    pillar: PillarName
    score: int
    max_points: int
    signals: dict[str, Any] = field(default_factory=dict)
    checks: list[CheckResult] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)

    @classmethod
    def from_checks(
        cls,
        pillar: PillarName,
        checks: list[CheckResult],
        recommendations: list[Recommendation],
        signals: dict[str, Any],
    ) -> "ModuleResult":
        """Build a result whose score is the sum of its checks."""
        max_points = PILLAR_MAX_POINTS[pillar]
        score = sum(check.score for check in checks)
        if score > max_points:
            raise ValueError(f"{pillar} score {score} exceeds {max_points}")
        return cls(
            pillar=pillar,
            score=score,
            max_points=max_points,
            signals=signals,
            checks=list(checks),
            recommendations=list(recommendations),
        )

    @property
    def percentage(self) -> int:
        # Half rounds up
        return int(self.score * 100 / self.max_points + 0.5) if self.max_points else 0

    def to_dict(self) -> dict:
        return {
            "pillar": self.pillar.value,
            "score": self.score,
            "max_points": self.max_points,
            "signals": self.signals,
            "checks": [c.to_dict() for c in self.checks],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def pillar_recommendation(pillar: PillarName):
    """Recommendation constructor with the pillar bound."""

    def build(
        id: str,
        title: str,
        description: str,
        impact: Impact,
        difficulty: Difficulty,
        points: int,
        how_to_fix: str | None = None,
    ) -> Recommendation:
        return Recommendation(
            id=id,
            title=title,
            description=description,
            impact=impact,
            difficulty=difficulty,
            pillar=pillar,
            points_recoverable=points,
            how_to_fix=how_to_fix,
        )

    return build
