"""
Catalog matcher.

Given a payload, finds the containers it can go into, scores and ranks them,
and records the result as Match rows.

Flow:
  1. Resolve the payload (unknown id aborts before anything is written)
  2. Query eligible containers: every internal axis >= payload axis + clearance,
     plus the optional soft filters (price, protection, flags, brands)
  3. Score every eligible container (one bad candidate is skipped, not fatal)
  4. Drop candidates below min_compatibility_score
  5. Sort by compatibility score, price or rating
  6. Truncate to max_results
  7. Upsert one Match per (payload, container) for the final list
"""

import logging
from dataclasses import dataclass, field

from casefit.config import get_settings
from casefit.errors import InvalidInputError, NotFoundError
from casefit.matching.dimension_fit import is_eligible
from casefit.matching.feature_heuristics import calculate_feature_score
from casefit.matching.scoring import ScoreResult, determine_price_category, score_pair
from casefit.models.container_item import ContainerItem, ProtectionLevel
from casefit.models.payload_item import PayloadItem
from casefit.repositories.ports import (
    ContainerQuery,
    ContainerRepository,
    MatchRepository,
    PayloadRepository,
    coerce_uuid,
)

logger = logging.getLogger(__name__)

SORT_FIELDS = ("compatibility_score", "price", "rating")
SORT_DIRECTIONS = ("asc", "desc")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_protection_level(value) -> ProtectionLevel | None:
    if value is None or isinstance(value, ProtectionLevel):
        return value
    try:
        return ProtectionLevel(str(value).lower())
    except ValueError:
        raise InvalidInputError(
            f"Invalid protection level '{value}'. Use: low, medium, high"
        )


@dataclass
class MatchingOptions:
    """Options for find_compatible_containers.

    ``None`` for min_compatibility_score / max_results means the configured
    default (70 / 20). ``waterproof`` and ``shockproof`` filter on equality when
    set; ``require_handle`` / ``require_wheels`` only filter when True.
    ``currency`` applies together with ``max_price``.
    """

    min_compatibility_score: float | None = None
    preferred_protection_level: ProtectionLevel | None = None
    max_price: float | None = None
    currency: str | None = "USD"
    preferred_features: list[str] = field(default_factory=list)
    preferred_brands: list[str] = field(default_factory=list)
    waterproof: bool | None = None
    shockproof: bool | None = None
    require_handle: bool = False
    require_wheels: bool = False
    container_ids: list | None = None
    max_results: int | None = None
    sort_by: str = "compatibility_score"
    sort_direction: str = "desc"

    def __post_init__(self):
        if self.min_compatibility_score is not None:
            if not _is_number(self.min_compatibility_score) or not 0 <= self.min_compatibility_score <= 100:
                raise InvalidInputError(
                    f"min_compatibility_score must be a number between 0 and 100, got {self.min_compatibility_score!r}"
                )
        if self.max_price is not None:
            if not _is_number(self.max_price) or self.max_price < 0:
                raise InvalidInputError(f"max_price must be a non-negative number, got {self.max_price!r}")
        if self.max_results is not None:
            if not isinstance(self.max_results, int) or isinstance(self.max_results, bool) or self.max_results < 1:
                raise InvalidInputError(f"max_results must be a positive integer, got {self.max_results!r}")
        if self.sort_by not in SORT_FIELDS:
            raise InvalidInputError(f"Invalid sort_by '{self.sort_by}'. Use: {', '.join(SORT_FIELDS)}")
        if self.sort_direction not in SORT_DIRECTIONS:
            raise InvalidInputError(f"Invalid sort_direction '{self.sort_direction}'. Use: asc, desc")
        self.preferred_protection_level = parse_protection_level(self.preferred_protection_level)


@dataclass
class ScoredContainer:
    """A container annotated with its compatibility score."""

    container: ContainerItem
    compatibility_score: int
    score_result: ScoreResult
    feature_score: int | None = None

    @property
    def id(self):
        return self.container.id

    @property
    def price(self) -> float | None:
        return self.container.price


@dataclass
class MatchingResult:
    """Ranked candidates plus a summary of what was filtered or skipped."""

    payload: PayloadItem
    candidates: list[ScoredContainer] = field(default_factory=list)
    total_eligible: int = 0
    below_threshold: int = 0
    skipped: int = 0
    matches_upserted: int = 0
    errors: list = field(default_factory=list)

    def __iter__(self):
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def to_dict(self) -> dict:
        return {
            "payload_id": str(self.payload.id),
            "candidates": len(self.candidates),
            "total_eligible": self.total_eligible,
            "below_threshold": self.below_threshold,
            "skipped": self.skipped,
            "matches_upserted": self.matches_upserted,
            "errors": self.errors,
        }


def _validate_payload_dimensions(payload: PayloadItem) -> None:
    for axis, value in zip(("length", "width", "height"), payload.dimensions):
        if not _is_number(value) or value <= 0:
            raise InvalidInputError(f"Payload {payload.id} has invalid {axis} {value!r}")


def _sort_key(sort_by: str):
    if sort_by == "price":
        return lambda c: c.container.price or 0
    if sort_by == "rating":
        return lambda c: c.container.rating or 0
    return lambda c: c.compatibility_score


class CatalogMatcher:
    """Finds, ranks and records compatible containers for payloads."""

    def __init__(
        self,
        payloads: PayloadRepository,
        containers: ContainerRepository,
        matches: MatchRepository,
        settings=None,
    ):
        self.payloads = payloads
        self.containers = containers
        self.matches = matches
        self.settings = settings or get_settings()

    def resolve_payload(self, payload) -> PayloadItem:
        if isinstance(payload, PayloadItem):
            return payload
        found = self.payloads.find_by_id(payload)
        if found is None:
            raise NotFoundError("Payload", payload)
        return found

    def build_query(self, payload: PayloadItem, options: MatchingOptions) -> ContainerQuery:
        buffer = self.settings.clearance_buffer
        return ContainerQuery(
            min_internal_length=payload.length + buffer,
            min_internal_width=payload.width + buffer,
            min_internal_height=payload.height + buffer,
            max_price=options.max_price,
            currency=options.currency if options.max_price is not None else None,
            protection_level=options.preferred_protection_level,
            waterproof=options.waterproof,
            shockproof=options.shockproof,
            has_handle=True if options.require_handle else None,
            has_wheels=True if options.require_wheels else None,
            brands=tuple(options.preferred_brands) if options.preferred_brands else None,
            container_ids=(
                tuple(coerce_uuid(i, "container id") for i in options.container_ids)
                if options.container_ids else None
            ),
        )

    def score_container(
        self,
        payload: PayloadItem,
        container: ContainerItem,
        options: MatchingOptions | None = None,
    ) -> ScoredContainer:
        options = options or MatchingOptions()
        result = score_pair(payload, container, options.preferred_features)
        return ScoredContainer(
            container=container,
            compatibility_score=result.compatibility_score,
            score_result=result,
            feature_score=calculate_feature_score(payload, container),
        )

    def calculate_compatibility_score(
        self,
        payload: PayloadItem,
        container: ContainerItem,
        options: MatchingOptions | None = None,
    ) -> int:
        options = options or MatchingOptions()
        return score_pair(payload, container, options.preferred_features).compatibility_score

    def find_compatible_containers(
        self,
        payload,
        options: MatchingOptions | None = None,
    ) -> MatchingResult:
        """
        Find, rank and persist compatible containers for a payload.

        Args:
            payload: PayloadItem or payload id
            options: MatchingOptions (defaults from settings)

        Returns:
            MatchingResult with ranked ScoredContainer candidates.

        Raises:
            NotFoundError: unknown payload id (nothing is written)
            InvalidInputError: malformed payload dimensions
        """
        options = options or MatchingOptions()
        payload = self.resolve_payload(payload)
        _validate_payload_dimensions(payload)

        min_score = options.min_compatibility_score
        if min_score is None:
            min_score = self.settings.min_compatibility_score
        max_results = options.max_results or self.settings.max_results

        result = MatchingResult(payload=payload)

        # Steps 1-2: hard eligibility + soft filters
        eligible = [
            c for c in self.containers.find_by_query(self.build_query(payload, options))
            if is_eligible(payload.dimensions, c.internal_dimensions, self.settings.clearance_buffer)
        ]
        result.total_eligible = len(eligible)

        logger.info(
            "Matching payload %s: %d eligible containers",
            payload.id,
            len(eligible),
        )

        if not eligible:
            return result

        # Step 3: score every candidate
        scored: list[ScoredContainer] = []
        for container in eligible:
            try:
                scored.append(self.score_container(payload, container, options))
            except Exception as e:
                logger.exception(
                    "Error scoring pair payload=%s / container=%s: %s",
                    payload.id,
                    container.id,
                    str(e),
                )
                result.skipped += 1
                result.errors.append(
                    f"Scoring error for payload {payload.id} / container {container.id}: {str(e)}"
                )

        # Step 4: threshold
        passing = [c for c in scored if c.compatibility_score >= min_score]
        result.below_threshold = len(scored) - len(passing)

        # Steps 5-6: sort and truncate
        passing.sort(key=_sort_key(options.sort_by), reverse=options.sort_direction == "desc")
        result.candidates = passing[:max_results]

        # Step 7: persist
        for candidate in result.candidates:
            self._upsert_match(payload, candidate)
            result.matches_upserted += 1

        logger.info(
            "Matching payload %s complete: %d candidates, %d below threshold, %d skipped",
            payload.id,
            len(result.candidates),
            result.below_threshold,
            result.skipped,
        )

        return result

    def _upsert_match(self, payload: PayloadItem, candidate: ScoredContainer):
        container = candidate.container
        fit = candidate.score_result.dimension_fit
        return self.matches.upsert(
            payload.id,
            container.id,
            {
                "compatibility_score": candidate.compatibility_score,
                "dimension_fit": fit.to_dict() if fit else None,
                "feature_score": candidate.feature_score,
                "price_category": determine_price_category(container),
                "protection_level": container.protection_level,
                "features": list(container.features or []),
            },
        )

    def search_payloads(
        self,
        term: str | None = None,
        category: str | None = None,
        brand: str | None = None,
        limit: int = 20,
    ) -> list[PayloadItem]:
        return self.payloads.search(term, category=category, brand=brand, limit=limit)
