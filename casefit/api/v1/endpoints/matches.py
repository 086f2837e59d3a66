"""Match endpoints: list and read recorded matches."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from casefit.api.deps import http_error
from casefit.api.v1.endpoints.matching import container_summary
from casefit.api.v1.schemas.matching import DimensionFitResponse
from casefit.api.v1.schemas.matches import (
    MatchListResponse,
    MatchPayloadSummary,
    MatchResponse,
)
from casefit.db.session import get_db
from casefit.errors import CaseFitError
from casefit.models.match import Match
from casefit.repositories.ports import coerce_uuid

router = APIRouter(prefix="/matches", tags=["Matches"])


def _match_to_response(match: Match) -> MatchResponse:
    """Convert a Match ORM object to a MatchResponse schema."""
    payload = match.payload

    return MatchResponse(
        id=str(match.id),
        compatibility_score=match.compatibility_score,
        dimension_fit=DimensionFitResponse(**match.dimension_fit) if match.dimension_fit else None,
        feature_score=match.feature_score,
        price_category=match.price_category.value,
        protection_level=match.protection_level.value if match.protection_level else None,
        features=match.features or [],
        feedback_count=match.feedback_count or 0,
        positive_feedback_count=match.positive_feedback_count or 0,
        negative_feedback_count=match.negative_feedback_count or 0,
        user_feedback_score=match.user_feedback_score,
        created_at=match.created_at,
        updated_at=match.updated_at,
        payload=MatchPayloadSummary(
            id=str(payload.id),
            name=payload.name,
            brand=payload.brand,
            category=payload.category,
            length=payload.length,
            width=payload.width,
            height=payload.height,
        ),
        container=container_summary(match.container),
    )


@router.get("", response_model=MatchListResponse)
def list_matches(
    payload_id: str | None = Query(None, description="Only matches for this payload"),
    min_score: int | None = Query(None, ge=0, le=100, description="Minimum compatibility score"),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """List matches, best compatibility score first."""
    query = db.query(Match).options(joinedload(Match.payload), joinedload(Match.container))

    if payload_id:
        try:
            query = query.filter(Match.payload_id == coerce_uuid(payload_id, "payload id"))
        except CaseFitError as e:
            raise http_error(e)

    if min_score is not None:
        query = query.filter(Match.compatibility_score >= min_score)

    matches = (
        query.order_by(Match.compatibility_score.desc(), Match.created_at.desc())
        .limit(limit)
        .all()
    )

    return MatchListResponse(
        total=len(matches),
        matches=[_match_to_response(m) for m in matches],
    )


@router.get("/{match_id}", response_model=MatchResponse)
def get_match(
    match_id: str,
    db: Session = Depends(get_db),
):
    """Get a single match by ID."""
    try:
        match_uuid = coerce_uuid(match_id, "match id")
    except CaseFitError as e:
        raise http_error(e)

    match = (
        db.query(Match)
        .options(joinedload(Match.payload), joinedload(Match.container))
        .filter(Match.id == match_uuid)
        .first()
    )

    if not match:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")

    return _match_to_response(match)
