from casefit.matching.engine import CatalogMatcher, MatchingOptions, MatchingResult, ScoredContainer
from casefit.matching.recommendations import (
    Recommendation,
    RecommendationEngine,
    RecommendationOptions,
    RecommendationType,
    calculate_confidence_score,
)
from casefit.matching.scoring import ScoreResult, calculate_compatibility_score, score_pair

__all__ = [
    "CatalogMatcher",
    "MatchingOptions",
    "MatchingResult",
    "ScoredContainer",
    "Recommendation",
    "RecommendationEngine",
    "RecommendationOptions",
    "RecommendationType",
    "calculate_confidence_score",
    "ScoreResult",
    "calculate_compatibility_score",
    "score_pair",
]
