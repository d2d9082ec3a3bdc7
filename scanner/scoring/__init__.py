"""Scoring package: the five visibility pillars and the total score."""

# Lazy imports to avoid requiring all dependencies at import time
# Use explicit imports when needed:
# from scanner.scoring.models import ModuleResult, CheckResult, Recommendation
# from scanner.scoring.entity import score_entity_verifiability
# from scanner.scoring.extractability import score_extractability
# from scanner.scoring.freshness import score_freshness
# from scanner.scoring.trust import score_trust
# from scanner.scoring.answerability import score_answerability
# from scanner.scoring.calculator import calculate_total_score, ScoreBreakdown
