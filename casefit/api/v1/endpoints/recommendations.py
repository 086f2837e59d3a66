"""Recommendation endpoints: budget, premium and alternative-size suggestions."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casefit.api.deps import get_recommendation_engine, http_error
from casefit.api.v1.endpoints.matching import container_summary
from casefit.api.v1.schemas.recommendations import (
    RecommendationListResponse,
    RecommendationRequest,
    RecommendationResponse,
)
from casefit.db.session import get_db
from casefit.errors import CaseFitError
from casefit.matching.recommendations import RecommendationEngine, RecommendationOptions

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


@router.post("", response_model=RecommendationListResponse)
def generate_recommendations(
    request: RecommendationRequest,
    engine: RecommendationEngine = Depends(get_recommendation_engine),
    db: Session = Depends(get_db),
):
    """
    Suggest alternatives to the container a user picked for a payload.

    Candidate searches go through the catalog matcher, so the matches they
    find are recorded as well.
    """
    try:
        options = RecommendationOptions(
            max_alternatives=request.max_alternatives,
            include_budget=request.include_budget,
            include_premium=request.include_premium,
            include_alternative_sizes=request.include_alternative_sizes,
            max_price_difference_percent=request.max_price_difference_percent,
            min_compatibility_score=request.min_compatibility_score,
            preferred_brands=request.preferred_brands,
            excluded_brands=request.excluded_brands,
        )
        recommendations = engine.generate_alternatives(
            request.payload_id, request.primary_container_id, options
        )
    except CaseFitError as e:
        db.rollback()
        raise http_error(e)

    db.commit()

    return RecommendationListResponse(
        payload_id=request.payload_id,
        primary_container_id=request.primary_container_id,
        total=len(recommendations),
        recommendations=[
            RecommendationResponse(
                container=container_summary(r.container),
                recommendation_type=r.recommendation_type.value,
                compatibility_score=r.compatibility_score,
                confidence_score=r.confidence_score,
            )
            for r in recommendations
        ],
    )
