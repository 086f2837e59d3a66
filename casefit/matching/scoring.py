"""
Scoring combiner: runs all compatibility rules and produces a total score.

Takes a payload and container pair, executes the four rules with their
configured weights (dimension 40, protection 25, feature overlap 20, rating 15)
and returns a combined 0-100 score with a per-rule breakdown for auditability.

Also provides the two auxiliary values persisted with every match: the
dimension-fit breakdown and the price category.
"""

import math
from dataclasses import dataclass, field

from casefit.config import get_settings
from casefit.matching.dimension_fit import DimensionFit, calculate_dimension_fit as _fit
from casefit.matching.rules import dimension_match, protection_match, feature_match, rating_match
from casefit.models.container_item import ContainerItem
from casefit.models.match import PriceCategory
from casefit.models.payload_item import PayloadItem


def round_score(value: float) -> int:
    """Round half up (0.5 -> 1), the way scores are reported to users."""
    return int(math.floor(value + 0.5))


@dataclass
class ScoreResult:
    """Result of scoring a payload/container pair."""

    total_score: float
    max_possible: float
    rule_scores: dict = field(default_factory=dict)
    dimension_fit: DimensionFit | None = None

    @property
    def degenerate(self) -> bool:
        return self.dimension_fit is not None and self.dimension_fit.degenerate

    @property
    def compatibility_score(self) -> int:
        if self.max_possible == 0 or self.degenerate:
            return 0
        # Rounded once, on the exact weighted sum
        percentage = self.total_score * (100 / self.max_possible)
        return min(100, max(0, round_score(percentage)))

    def breakdown(self) -> dict:
        return {
            "total_score": round(self.total_score, 4),
            "max_possible": self.max_possible,
            "rules": {
                name: {
                    "score": round(rule["score"], 4),
                    "max_score": rule["max_score"],
                    "sub_score": rule["sub_score"],
                    "details": rule["details"],
                }
                for name, rule in self.rule_scores.items()
            },
        }


def score_pair(
    payload: PayloadItem,
    container: ContainerItem,
    preferred_features: list[str] | None = None,
) -> ScoreResult:
    """
    Score a payload/container pair using all compatibility rules.

    Weights are loaded from application settings (config.py).

    Returns:
        ScoreResult with total score, max possible, and per-rule breakdown.
    """
    settings = get_settings()

    rules = [
        ("dimension", dimension_match.score, settings.dimension_weight),
        ("protection", protection_match.score, settings.protection_weight),
        ("feature", feature_match.score, settings.feature_weight),
        ("rating", rating_match.score, settings.rating_weight),
    ]

    rule_scores = {}
    total_score = 0.0
    max_possible = 0.0
    fit = None

    for rule_name, rule_fn, weight in rules:
        if rule_name == "feature":
            result = rule_fn(payload, container, weight=weight, preferred_features=preferred_features)
        else:
            result = rule_fn(payload, container, weight=weight)

        if rule_name == "dimension":
            fit = result.pop("fit")

        rule_scores[rule_name] = result
        total_score += result["score"]
        max_possible += result["max_score"]

    return ScoreResult(
        total_score=total_score,
        max_possible=max_possible,
        rule_scores=rule_scores,
        dimension_fit=fit,
    )


def calculate_compatibility_score(
    payload: PayloadItem,
    container: ContainerItem,
    preferred_features: list[str] | None = None,
) -> int:
    """Weighted compatibility score, an integer in [0, 100]."""
    return score_pair(payload, container, preferred_features).compatibility_score


def calculate_dimension_fit(payload: PayloadItem, container: ContainerItem) -> dict:
    """Per-axis and overall fit percentages, as stored on a Match."""
    return _fit(payload.dimensions, container.internal_dimensions).to_dict()


def determine_price_category(container: ContainerItem) -> PriceCategory:
    """Classify a container price; numeric comparison only, currency is ignored."""
    settings = get_settings()
    if container.price is None:
        return PriceCategory.MID_RANGE
    if container.price < settings.budget_price_threshold:
        return PriceCategory.BUDGET
    if container.price > settings.premium_price_threshold:
        return PriceCategory.PREMIUM
    return PriceCategory.MID_RANGE
