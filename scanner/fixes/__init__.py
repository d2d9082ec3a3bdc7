"""Recommendation ranking package."""

# Use explicit imports when needed:
# from scanner.fixes.ranker import rank_recommendations, quick_wins, Tier
