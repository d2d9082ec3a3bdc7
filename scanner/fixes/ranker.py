"""Recommendation ranking and tier policy.

Merges the recommendations of every pillar, orders them by expected
payoff and applies the disclosure rules of the requested plan tier.
"""

from collections.abc import Iterable
from enum import StrEnum

from scanner.scoring.models import Difficulty, Impact, ModuleResult, Recommendation

IMPACT_WEIGHT: dict[Impact, int] = {
    Impact.HIGH: 3,
    Impact.MEDIUM: 2,
    Impact.LOW: 1,
}

DIFFICULTY_ORDER: dict[Difficulty, int] = {
    Difficulty.EASY: 0,
    Difficulty.MODERATE: 1,
    Difficulty.HARD: 2,
}

FREE_TIER_LIMIT = 5


class Tier(StrEnum):
    FREE = "free"
    MONITORING = "monitoring"
    DIY = "diy"
    PRO = "pro"


def priority(rec: Recommendation) -> int:
    """Expected payoff: recoverable points weighted by impact."""
    return rec.points_recoverable * IMPACT_WEIGHT[rec.impact]


def _sort_key(rec: Recommendation) -> tuple[int, int]:
    return (-priority(rec), DIFFICULTY_ORDER[rec.difficulty])


def rank_recommendations(
    results: Iterable[ModuleResult], tier: Tier | str = Tier.FREE
) -> list[Recommendation]:
    """
    Merge and rank recommendations from all pillars.

    Args:
        results: Pillar results, in pillar order
        tier: Plan tier; the free tier gets the top five without instructions

    Returns:
        New list of recommendations, highest priority first
    """
    tier = Tier(tier)
    merged = [rec for result in results for rec in result.recommendations]
    ranked = sorted(merged, key=_sort_key)

    if tier == Tier.FREE:
        return [rec.without_instructions() for rec in ranked[:FREE_TIER_LIMIT]]
    return ranked


def quick_wins(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """Easy fixes with at least medium impact."""
    return [
        rec
        for rec in recommendations
        if rec.difficulty == Difficulty.EASY and rec.impact != Impact.LOW
    ]


def total_recoverable_points(recommendations: Iterable[Recommendation]) -> int:
    return sum(rec.points_recoverable for rec in recommendations)
