"""Tests for score aggregation and grading."""

import pytest

from scanner.scoring.calculator import (
    GRADE_THRESHOLDS,
    ScoreBreakdown,
    Urgency,
    calculate_total_score,
    get_score_interpretation,
    score_to_grade,
    score_to_label,
)
from scanner.scoring.models import PILLAR_MAX_POINTS, ModuleResult, PillarName


def _results(scores: dict[PillarName, int]) -> dict[PillarName, ModuleResult]:
    return {
        pillar: ModuleResult(pillar=pillar, score=score, max_points=PILLAR_MAX_POINTS[pillar])
        for pillar, score in scores.items()
    }


FULL_SCORES = {
    PillarName.ENTITY_VERIFIABILITY: 25,
    PillarName.EXTRACTABILITY_SCHEMA: 14,
    PillarName.FRESHNESS_MAINTENANCE: 9,
    PillarName.TRUST_RISK: 12,
    PillarName.ANSWERABILITY_COVERAGE: 20,
}


class TestGrades:
    """Tests for grade mapping."""

    @pytest.mark.parametrize(
        ("score", "grade", "label"),
        [
            (100, "A+", "Excellent"),
            (95, "A+", "Excellent"),
            (90, "A+", "Excellent"),
            (89, "A", "Great"),
            (85, "A", "Great"),
            (80, "A", "Great"),
            (79, "B+", "Good"),
            (70, "B+", "Good"),
            (65, "B", "Above Average"),
            (55, "C+", "Average"),
            (45, "C", "Below Average"),
            (35, "D", "Poor"),
            (29, "F", "Needs Attention"),
            (0, "F", "Needs Attention"),
        ],
    )
    def test_score_to_grade(self, score: int, grade: str, label: str) -> None:
        """Grade and label follow the threshold table."""
        assert score_to_grade(score) == grade
        assert score_to_label(score) == label

    def test_thresholds_descending(self) -> None:
        """Thresholds are ordered highest first and end at zero."""
        minimums = [minimum for minimum, _, _ in GRADE_THRESHOLDS]
        assert minimums == sorted(minimums, reverse=True)
        assert minimums[-1] == 0


class TestInterpretation:
    """Tests for get_score_interpretation function."""

    @pytest.mark.parametrize(
        ("score", "urgency"),
        [
            (95, Urgency.EXCELLENT),
            (75, Urgency.GOOD),
            (55, Urgency.OK),
            (35, Urgency.WARNING),
            (10, Urgency.CRITICAL),
        ],
    )
    def test_urgency_bands(self, score: int, urgency: Urgency) -> None:
        """Each band has its own urgency."""
        assert get_score_interpretation(score).urgency == urgency

    def test_critical_headline(self) -> None:
        """Low scores get the invisible headline."""
        assert get_score_interpretation(0).headline == "AI can't find your business"


class TestCalculateTotalScore:
    """Tests for calculate_total_score function."""

    def test_sum_of_pillars(self) -> None:
        """Total is the sum of pillar scores."""
        breakdown = calculate_total_score(_results(FULL_SCORES))
        assert breakdown.total_score == 80
        assert breakdown.grade == "A"
        assert breakdown.grade_label == "Great"
        assert breakdown.pillar_scores[PillarName.FRESHNESS_MAINTENANCE].percentage == 45

    def test_percentage_rounds_half_up(self) -> None:
        """Pillar percentages round half up."""
        breakdown = calculate_total_score(_results({PillarName.TRUST_RISK: 5}))
        # 5/15 = 33.3%
        assert breakdown.pillar_scores[PillarName.TRUST_RISK].percentage == 33
        breakdown = calculate_total_score(_results({PillarName.EXTRACTABILITY_SCHEMA: 1}))
        # 1/20 = 5%
        assert breakdown.pillar_scores[PillarName.EXTRACTABILITY_SCHEMA].percentage == 5
        breakdown = calculate_total_score(_results({PillarName.ENTITY_VERIFIABILITY: 1}))
        # 1/25 = 4%
        assert breakdown.pillar_scores[PillarName.ENTITY_VERIFIABILITY].percentage == 4

    def test_clamped(self) -> None:
        """Totals stay within 0..100."""
        oversized = {pillar: 40 for pillar in PillarName}
        breakdown = calculate_total_score(_results(oversized))
        assert breakdown.total_score == 100
        assert breakdown.grade == "A+"

    def test_empty(self) -> None:
        """No pillars is a zero score."""
        breakdown = calculate_total_score({})
        assert breakdown.total_score == 0
        assert breakdown.grade == "F"


class TestScoreBreakdown:
    """Tests for ScoreBreakdown output."""

    def test_to_dict(self) -> None:
        """Dictionary form carries grade, interpretation and pillars."""
        data = calculate_total_score(_results(FULL_SCORES)).to_dict()
        assert data["total_score"] == 80
        assert data["grade_label"] == "Great"
        assert data["interpretation"]["urgency"] == "good"
        assert data["pillar_scores"]["entity_verifiability"] == {
            "score": 25,
            "max_points": 25,
            "percentage": 100,
        }

    def test_show_the_math(self) -> None:
        """Human-readable breakdown lists every pillar and the sum."""
        text = calculate_total_score(_results(FULL_SCORES)).show_the_math()
        assert "AI VISIBILITY SCORE BREAKDOWN" in text
        assert "Final Score: 80/100 (Grade: A, Great)" in text
        assert "Entity Verifiability: 25/25 (100%)" in text
        assert "Trust & Risk Signals: 12/15 (80%)" in text
        assert "Total = 25 + 14 + 9 + 12 + 20 = 80" in text

    def test_default_breakdown(self) -> None:
        """A bare breakdown renders without pillars."""
        text = ScoreBreakdown(total_score=0, grade="F").show_the_math()
        assert "Final Score: 0/100" in text
