"""
Recommendation engine.

Given a payload and the container the user settled on (the primary), derives
three kinds of alternatives by re-running the catalog matcher:

  - budget: same protection level, priced in [60%, 90%] of the primary and
    strictly below it, cheapest first, top 3
  - premium: protection stepped up one tier, priced in
    [110%, 100% + max_price_difference_percent] of the primary, top 3
  - alternative_size: top 5 by compatibility, excluding the primary, where at
    least one internal axis differs from the primary by more than 20%

The union is deduplicated by container (first occurrence wins in the order
budget, premium, alternative_size), brand-filtered, sorted by compatibility
and capped. Every recommendation carries a confidence score, which is a
separate estimate from the compatibility score.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from rapidfuzz import fuzz

from casefit.config import get_settings
from casefit.errors import InvalidInputError, NotFoundError
from casefit.matching.engine import CatalogMatcher, MatchingOptions, ScoredContainer
from casefit.matching.feature_heuristics import category_feature_score
from casefit.models.container_item import ContainerItem, ProtectionLevel
from casefit.models.payload_item import PayloadItem

logger = logging.getLogger(__name__)

BUDGET_CANDIDATES = 3
PREMIUM_CANDIDATES = 3
SIZE_CANDIDATES = 5

# Brand names at or above this similarity are treated as the same brand
BRAND_SIMILARITY_THRESHOLD = 90.0

EXPLICIT_DESIGN_BONUS = 20

_STEP_UP = {
    ProtectionLevel.LOW: ProtectionLevel.MEDIUM,
    ProtectionLevel.MEDIUM: ProtectionLevel.HIGH,
    ProtectionLevel.HIGH: ProtectionLevel.HIGH,
}


class RecommendationType(str, Enum):
    BUDGET = "budget"
    PREMIUM = "premium"
    ALTERNATIVE_SIZE = "alternative_size"


@dataclass
class RecommendationOptions:
    """Options for generate_alternatives. ``None`` numeric fields use the configured defaults."""

    max_alternatives: int | None = None
    include_budget: bool = True
    include_premium: bool = True
    include_alternative_sizes: bool = True
    max_price_difference_percent: float | None = None
    min_compatibility_score: float | None = None
    preferred_brands: list[str] = field(default_factory=list)
    excluded_brands: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.max_alternatives is not None:
            if not isinstance(self.max_alternatives, int) or isinstance(self.max_alternatives, bool) or self.max_alternatives < 1:
                raise InvalidInputError(f"max_alternatives must be a positive integer, got {self.max_alternatives!r}")
        if self.max_price_difference_percent is not None:
            value = self.max_price_difference_percent
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise InvalidInputError(f"max_price_difference_percent must be a non-negative number, got {value!r}")


@dataclass
class Recommendation:
    container: ContainerItem
    recommendation_type: RecommendationType
    compatibility_score: int
    confidence_score: int

    def to_dict(self) -> dict:
        return {
            "container_id": str(self.container.id),
            "name": self.container.name,
            "brand": self.container.brand,
            "price": self.container.price,
            "recommendation_type": self.recommendation_type.value,
            "compatibility_score": self.compatibility_score,
            "confidence_score": self.confidence_score,
        }


def same_brand(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return fuzz.token_sort_ratio(a.strip().lower(), b.strip().lower()) >= BRAND_SIMILARITY_THRESHOLD


def _brand_in(brand: str | None, brands: list[str]) -> bool:
    return any(same_brand(brand, candidate) for candidate in brands)


def axis_closeness_score(fit_percentage: float) -> int:
    """Per-axis closeness table used by the confidence estimate."""
    if 75 <= fit_percentage <= 90:
        return 100
    if 90 < fit_percentage <= 95 or 70 <= fit_percentage < 75:
        return 80
    if 95 < fit_percentage <= 100 or 60 <= fit_percentage < 70:
        return 60
    return 30


def _payload_keywords(payload: PayloadItem) -> list[str]:
    keywords = [payload.type, payload.category]
    keywords.extend((payload.name or "").split(" "))
    return [k.strip().lower() for k in keywords if k and k.strip()]


def is_explicitly_designed(payload: PayloadItem, container: ContainerItem) -> bool:
    """A payload keyword appears in the container's name or description, alongside the word "case"."""
    description = (container.description or "").lower()
    name = (container.name or "").lower()
    if "case" not in description and "case" not in name:
        return False
    return any(k in description or k in name for k in _payload_keywords(payload))


def calculate_confidence_score(payload: PayloadItem, candidate: ScoredContainer) -> int:
    """
    Confidence (0-100) that a candidate really suits the payload.

    50% compatibility score, a flat bonus when the container is explicitly
    designed for this kind of payload, 15% per-axis fit closeness and 15%
    category feature appropriateness.
    """
    container = candidate.container
    confidence = candidate.compatibility_score * 0.5

    if is_explicitly_designed(payload, container):
        confidence += EXPLICIT_DESIGN_BONUS

    closeness = 0.0
    for payload_axis, container_axis in zip(payload.dimensions, container.internal_dimensions):
        fit = payload_axis / container_axis * 100 if container_axis and container_axis > 0 else float("inf")
        closeness += axis_closeness_score(fit)
    confidence += closeness / 3 * 0.15

    confidence += category_feature_score(payload, container) * 0.15

    return min(100, max(0, int(confidence + 0.5)))


class RecommendationEngine:
    """Budget, premium and alternative-size suggestions around a primary container."""

    def __init__(self, matcher: CatalogMatcher, settings=None):
        self.matcher = matcher
        self.settings = settings or get_settings()

    def _resolve_primary(self, primary) -> ContainerItem:
        if isinstance(primary, ContainerItem):
            container = primary
        else:
            container = self.matcher.containers.find_by_id(primary)
            if container is None:
                raise NotFoundError("Container", primary)

        if container.price is None or container.price <= 0:
            raise InvalidInputError(f"Primary container {container.id} has no usable price")
        if min(container.internal_dimensions) <= 0:
            raise InvalidInputError(f"Primary container {container.id} has a zero internal dimension")
        return container

    def find_budget_alternatives(
        self,
        payload: PayloadItem,
        primary: ContainerItem,
        min_score: float | None,
    ) -> list[ScoredContainer]:
        floor = primary.price * self.settings.budget_min_price_ratio
        options = MatchingOptions(
            min_compatibility_score=min_score,
            preferred_protection_level=primary.protection_level,
            max_price=primary.price * self.settings.budget_max_price_ratio,
            max_results=BUDGET_CANDIDATES,
            sort_by="price",
            sort_direction="asc",
        )
        candidates = self.matcher.find_compatible_containers(payload, options).candidates
        return [c for c in candidates if c.price is not None and floor <= c.price < primary.price]

    def find_premium_upgrades(
        self,
        payload: PayloadItem,
        primary: ContainerItem,
        min_score: float | None,
        max_difference_percent: float,
    ) -> list[ScoredContainer]:
        low = primary.price * self.settings.premium_min_price_ratio
        high = primary.price * (1 + max_difference_percent / 100)
        protection = primary.protection_level
        options = MatchingOptions(
            min_compatibility_score=min_score,
            preferred_protection_level=_STEP_UP[ProtectionLevel(protection)] if protection else None,
            max_results=PREMIUM_CANDIDATES,
            sort_by="compatibility_score",
            sort_direction="desc",
        )
        candidates = self.matcher.find_compatible_containers(payload, options).candidates
        return [
            c for c in candidates
            if c.price is not None and low <= c.price <= high and c.price > primary.price
        ]

    def find_size_alternatives(
        self,
        payload: PayloadItem,
        primary: ContainerItem,
        min_score: float | None,
    ) -> list[ScoredContainer]:
        threshold = self.settings.size_difference_percent
        options = MatchingOptions(
            min_compatibility_score=min_score,
            max_results=SIZE_CANDIDATES,
            sort_by="compatibility_score",
            sort_direction="desc",
        )
        candidates = self.matcher.find_compatible_containers(payload, options).candidates

        def differs(candidate: ScoredContainer) -> bool:
            return any(
                abs(axis - primary_axis) / primary_axis * 100 > threshold
                for axis, primary_axis in zip(
                    candidate.container.internal_dimensions, primary.internal_dimensions
                )
            )

        return [c for c in candidates if c.id != primary.id and differs(c)]

    def generate_alternatives(
        self,
        payload,
        primary,
        options: RecommendationOptions | None = None,
    ) -> list[Recommendation]:
        """
        Generate typed alternatives to the primary container.

        Args:
            payload: PayloadItem or payload id
            primary: ContainerItem or container id of the accepted match
            options: RecommendationOptions

        Raises:
            NotFoundError: unknown payload or primary container
            InvalidInputError: primary without a price or with a zero internal axis
        """
        options = options or RecommendationOptions()
        payload = self.matcher.resolve_payload(payload)
        primary = self._resolve_primary(primary)

        max_alternatives = options.max_alternatives or self.settings.max_alternatives
        max_difference = options.max_price_difference_percent
        if max_difference is None:
            max_difference = self.settings.max_price_difference_percent
        min_score = options.min_compatibility_score

        pools: list[tuple[RecommendationType, list[ScoredContainer]]] = []
        if options.include_budget:
            pools.append((RecommendationType.BUDGET, self.find_budget_alternatives(payload, primary, min_score)))
        if options.include_premium:
            pools.append((
                RecommendationType.PREMIUM,
                self.find_premium_upgrades(payload, primary, min_score, max_difference),
            ))
        if options.include_alternative_sizes:
            pools.append((
                RecommendationType.ALTERNATIVE_SIZE,
                self.find_size_alternatives(payload, primary, min_score),
            ))

        seen = set()
        merged: list[tuple[RecommendationType, ScoredContainer]] = []
        for recommendation_type, candidates in pools:
            for candidate in candidates:
                if candidate.id in seen:
                    continue
                seen.add(candidate.id)
                merged.append((recommendation_type, candidate))

        if options.preferred_brands:
            merged = [m for m in merged if _brand_in(m[1].container.brand, options.preferred_brands)]
        if options.excluded_brands:
            merged = [m for m in merged if not _brand_in(m[1].container.brand, options.excluded_brands)]

        merged.sort(key=lambda m: m[1].compatibility_score, reverse=True)

        recommendations = [
            Recommendation(
                container=candidate.container,
                recommendation_type=recommendation_type,
                compatibility_score=candidate.compatibility_score,
                confidence_score=calculate_confidence_score(payload, candidate),
            )
            for recommendation_type, candidate in merged[:max_alternatives]
        ]

        logger.info(
            "Generated %d alternatives for payload %s around container %s",
            len(recommendations),
            payload.id,
            primary.id,
        )
        return recommendations

    def calculate_confidence_score(self, payload: PayloadItem, candidate: ScoredContainer) -> int:
        return calculate_confidence_score(payload, candidate)
