"""Score aggregation with "Show the Math" functionality.

Sums the five pillar results into a 0-100 score, maps it to a letter
grade and exposes a per-pillar breakdown for reports.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from scanner.scoring.models import PILLAR_LABELS, ModuleResult, PillarName


class Urgency(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    OK = "ok"
    GOOD = "good"
    EXCELLENT = "excellent"


# (minimum score, grade, label), highest first
GRADE_THRESHOLDS: list[tuple[int, str, str]] = [
    (90, "A+", "Excellent"),
    (80, "A", "Great"),
    (70, "B+", "Good"),
    (60, "B", "Above Average"),
    (50, "C+", "Average"),
    (40, "C", "Below Average"),
    (30, "D", "Poor"),
    (0, "F", "Needs Attention"),
]


def score_to_grade(score: float) -> str:
    for minimum, grade, _label in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return "F"


def score_to_label(score: float) -> str:
    for minimum, _grade, label in GRADE_THRESHOLDS:
        if score >= minimum:
            return label
    return "Needs Attention"


@dataclass(frozen=True)
class ScoreInterpretation:
    headline: str
    description: str
    urgency: Urgency

    def to_dict(self) -> dict:
        return {
            "headline": self.headline,
            "description": self.description,
            "urgency": self.urgency.value,
        }


def get_score_interpretation(score: float) -> ScoreInterpretation:
    """User-facing headline for a total score."""
    if score >= 90:
        return ScoreInterpretation(
            headline="Your business is highly visible to AI",
            description=(
                "Great job! Your website is well-optimized for AI discovery. Keep maintaining "
                "your content and structured data to stay ahead."
            ),
            urgency=Urgency.EXCELLENT,
        )
    if score >= 70:
        return ScoreInterpretation(
            headline="Your business is mostly visible to AI",
            description=(
                "You're in good shape, but there are a few improvements that could make a real "
                "difference. Focus on the top recommendations below."
            ),
            urgency=Urgency.GOOD,
        )
    if score >= 50:
        return ScoreInterpretation(
            headline="AI might find you, but not reliably",
            description=(
                "Your website has some good elements, but AI systems may struggle to "
                "confidently recommend you. The fixes below can significantly improve your "
                "visibility."
            ),
            urgency=Urgency.OK,
        )
    if score >= 30:
        return ScoreInterpretation(
            headline="Your business is mostly invisible to AI",
            description=(
                "Right now, AI search engines are unlikely to recommend your business. The good "
                "news: the fixes are straightforward and can make a big impact."
            ),
            urgency=Urgency.WARNING,
        )
    return ScoreInterpretation(
        headline="AI can't find your business",
        description=(
            "Your website is currently invisible to AI search engines like ChatGPT and Google "
            "AI. This means when people ask AI about your industry, your competitors are "
            "getting recommended instead. Let's fix that."
        ),
        urgency=Urgency.CRITICAL,
    )


@dataclass(frozen=True)
class PillarScore:
    """Score for a single pillar."""

    pillar: PillarName
    score: int
    max_points: int
    percentage: int

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "max_points": self.max_points,
            "percentage": self.percentage,
        }


@dataclass
class ScoreBreakdown:
    """Total score with its per-pillar components."""

    total_score: int
    grade: str
    pillar_scores: dict[PillarName, PillarScore] = field(default_factory=dict)

    @property
    def grade_label(self) -> str:
        return score_to_label(self.total_score)

    @property
    def interpretation(self) -> ScoreInterpretation:
        return get_score_interpretation(self.total_score)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total_score": self.total_score,
            "grade": self.grade,
            "grade_label": self.grade_label,
            "interpretation": self.interpretation.to_dict(),
            "pillar_scores": {
                pillar.value: score.to_dict() for pillar, score in self.pillar_scores.items()
            },
        }

    def show_the_math(self) -> str:
        """Generate human-readable calculation breakdown."""
        lines = [
            "=" * 60,
            "AI VISIBILITY SCORE BREAKDOWN",
            "=" * 60,
            "",
            f"Final Score: {self.total_score}/100 (Grade: {self.grade}, {self.grade_label})",
            self.interpretation.headline,
            "",
            "-" * 60,
            "PILLARS",
            "-" * 60,
        ]

        for pillar, pillar_score in self.pillar_scores.items():
            lines.append(
                f"  {PILLAR_LABELS[pillar]}: {pillar_score.score}/{pillar_score.max_points} "
                f"({pillar_score.percentage}%)"
            )

        points = " + ".join(str(s.score) for s in self.pillar_scores.values())
        lines.extend(["", f"  Total = {points} = {self.total_score}", "=" * 60])
        return "\n".join(lines)


def calculate_total_score(results: dict[PillarName, ModuleResult]) -> ScoreBreakdown:
    """
    Combine pillar results into a total score and grade.

    Args:
        results: Module result per pillar

    Returns:
        ScoreBreakdown with the clamped total, grade and per-pillar scores
    """
    pillar_scores: dict[PillarName, PillarScore] = {}
    total = 0
    for pillar, result in results.items():
        pillar_scores[pillar] = PillarScore(
            pillar=pillar,
            score=result.score,
            max_points=result.max_points,
            percentage=result.percentage,
        )
        total += result.score

    total = max(0, min(100, total))
    return ScoreBreakdown(total_score=total, grade=score_to_grade(total), pillar_scores=pillar_scores)
