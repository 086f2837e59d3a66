"""Matching endpoints: find compatible containers, score a pair, run batches."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casefit.api.deps import (
    get_catalog_matcher,
    get_container_cache,
    get_session_factory,
    http_error,
)
from casefit.api.v1.schemas.matching import (
    BatchMatchingRequest,
    BatchMatchingResponse,
    ContainerSummary,
    DimensionFitResponse,
    MatchingRequest,
    MatchingResponse,
    MatchStatisticsResponse,
    RuleScoreResponse,
    ScoredContainerResponse,
    ScoreRequest,
    ScoreResponse,
)
from casefit.db.session import get_db
from casefit.errors import CaseFitError, NotFoundError
from casefit.matching.engine import CatalogMatcher, MatchingOptions, ScoredContainer
from casefit.matching.scoring import ScoreResult, determine_price_category
from casefit.models.container_item import ContainerItem
from casefit.repositories.cache import ContainerQueryCache
from casefit.repositories.sql_repositories import SqlMatchRepository
from casefit.services.matching_service import get_match_statistics, run_batch_matching


router = APIRouter(prefix="/matching", tags=["Matching"])


def container_summary(container: ContainerItem) -> ContainerSummary:
    return ContainerSummary(
        id=str(container.id),
        name=container.name,
        brand=container.brand,
        price=container.price,
        currency=container.currency,
        rating=container.rating,
        protection_level=container.protection_level.value if container.protection_level else None,
        internal_length=container.internal_length,
        internal_width=container.internal_width,
        internal_height=container.internal_height,
    )


def _fit_response(result: ScoreResult) -> DimensionFitResponse | None:
    if result.dimension_fit is None:
        return None
    return DimensionFitResponse(**result.dimension_fit.to_dict())


def _rules_response(result: ScoreResult) -> dict[str, RuleScoreResponse]:
    return {
        name: RuleScoreResponse(**rule)
        for name, rule in result.breakdown()["rules"].items()
    }


def _candidate_response(candidate: ScoredContainer) -> ScoredContainerResponse:
    return ScoredContainerResponse(
        container=container_summary(candidate.container),
        compatibility_score=candidate.compatibility_score,
        feature_score=candidate.feature_score,
        price_category=determine_price_category(candidate.container).value,
        dimension_fit=_fit_response(candidate.score_result),
        rules=_rules_response(candidate.score_result),
    )


def matching_options(request: MatchingRequest) -> MatchingOptions:
    return MatchingOptions(**request.model_dump())


@router.post("/payloads/{payload_id}/containers", response_model=MatchingResponse)
def find_compatible_containers(
    payload_id: str,
    request: MatchingRequest = MatchingRequest(),
    matcher: CatalogMatcher = Depends(get_catalog_matcher),
    db: Session = Depends(get_db),
):
    """
    Find, rank and record compatible containers for a payload.

    Every returned candidate is upserted as a Match for the pair.
    """
    try:
        result = matcher.find_compatible_containers(payload_id, matching_options(request))
    except CaseFitError as e:
        db.rollback()
        raise http_error(e)

    db.commit()

    return MatchingResponse(
        payload_id=str(result.payload.id),
        total_eligible=result.total_eligible,
        below_threshold=result.below_threshold,
        skipped=result.skipped,
        candidates=[_candidate_response(c) for c in result.candidates],
        errors=result.errors,
    )


@router.post("/score", response_model=ScoreResponse)
def score_pair(
    request: ScoreRequest,
    matcher: CatalogMatcher = Depends(get_catalog_matcher),
):
    """Score a single payload/container pair. Nothing is persisted."""
    try:
        payload = matcher.resolve_payload(request.payload_id)
        container = matcher.containers.find_by_id(request.container_id)
        if container is None:
            raise NotFoundError("Container", request.container_id)
        candidate = matcher.score_container(
            payload,
            container,
            MatchingOptions(preferred_features=request.preferred_features),
        )
    except CaseFitError as e:
        raise http_error(e)

    return ScoreResponse(
        payload_id=str(payload.id),
        container_id=str(container.id),
        compatibility_score=candidate.compatibility_score,
        feature_score=candidate.feature_score,
        price_category=determine_price_category(container).value,
        dimension_fit=_fit_response(candidate.score_result),
        rules=_rules_response(candidate.score_result),
    )


@router.post("/run", response_model=BatchMatchingResponse)
def run_matching(
    request: BatchMatchingRequest = BatchMatchingRequest(),
    session_factory=Depends(get_session_factory),
    cache: ContainerQueryCache = Depends(get_container_cache),
):
    """
    Match the selected payloads (or all payloads) against the catalog.

    Payloads are processed in parallel; failures are counted, not fatal.
    """
    try:
        options = matching_options(request.options)
    except CaseFitError as e:
        raise http_error(e)

    result = run_batch_matching(
        session_factory,
        payload_ids=request.payload_ids,
        options=options,
        max_workers=request.max_workers,
        timeout_seconds=request.timeout_seconds,
        cache=cache,
    )

    return BatchMatchingResponse(
        message=f"Matching complete: {result.processed} of {result.total_payloads} payloads processed, {result.matches_upserted} matches upserted",
        total_payloads=result.total_payloads,
        processed=result.processed,
        failed=result.failed,
        not_started=result.not_started,
        candidates=result.candidates,
        matches_upserted=result.matches_upserted,
        skipped_candidates=result.skipped_candidates,
        cancelled=result.cancelled,
        timed_out=result.timed_out,
        started_at=result.started_at,
        completed_at=result.completed_at,
        errors=result.errors,
    )


@router.get("/statistics", response_model=MatchStatisticsResponse)
def matching_statistics(db: Session = Depends(get_db)):
    """Match count, average score and score distribution."""
    return MatchStatisticsResponse(**get_match_statistics(SqlMatchRepository(db)))
