"""Feedback endpoints: submit ratings and read them back."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from casefit.api.deps import get_feedback_aggregator, http_error
from casefit.api.v1.endpoints.matching import container_summary
from casefit.api.v1.schemas.feedback import (
    FeedbackListResponse,
    FeedbackRequest,
    FeedbackResponse,
    FeedbackStatisticsResponse,
    FeedbackSubmitResponse,
    TopRatedResponse,
)
from casefit.db.session import get_db
from casefit.errors import CaseFitError
from casefit.models.feedback import Feedback
from casefit.services.feedback_service import FeedbackAggregator, FeedbackSubmission

router = APIRouter(prefix="/feedback", tags=["Feedback"])


def _feedback_to_response(record: Feedback) -> FeedbackResponse:
    return FeedbackResponse(
        id=str(record.id),
        payload_id=str(record.payload_id),
        container_id=str(record.container_id),
        match_id=str(record.match_id) if record.match_id else None,
        user_id=record.user_id,
        rating=record.rating,
        fit_accuracy=record.fit_accuracy,
        protection_quality=record.protection_quality,
        value_for_money=record.value_for_money,
        actually_purchased=bool(record.actually_purchased),
        comments=record.comments,
        created_at=record.created_at,
    )


@router.post("", response_model=FeedbackSubmitResponse, status_code=201)
def submit_feedback(
    request: FeedbackRequest,
    aggregator: FeedbackAggregator = Depends(get_feedback_aggregator),
    db: Session = Depends(get_db),
):
    """
    Record a rating for a payload/container pairing.

    The pair's Match score is blended with the average rating, or a Match
    is created from the rating when none exists yet.
    """
    try:
        outcome = aggregator.submit_feedback(FeedbackSubmission(**request.model_dump()))
    except CaseFitError as e:
        db.rollback()
        raise http_error(e)

    db.commit()

    return FeedbackSubmitResponse(
        feedback=_feedback_to_response(outcome.feedback),
        match_id=str(outcome.match.id),
        compatibility_score=outcome.match.compatibility_score,
        previous_score=outcome.previous_score,
        average_rating=outcome.average_rating,
        match_created=outcome.match_created,
    )


@router.get("", response_model=FeedbackListResponse)
def list_feedback(
    payload_id: str = Query(..., description="Payload of the pairing"),
    container_id: str = Query(..., description="Container of the pairing"),
    aggregator: FeedbackAggregator = Depends(get_feedback_aggregator),
):
    """All feedback for a pairing, newest first."""
    try:
        records = aggregator.get_feedback_for_match(payload_id, container_id)
        average = aggregator.get_average_rating(payload_id, container_id)
    except CaseFitError as e:
        raise http_error(e)

    return FeedbackListResponse(
        total=len(records),
        average_rating=average,
        feedback=[_feedback_to_response(r) for r in records],
    )


@router.get("/statistics", response_model=FeedbackStatisticsResponse)
def feedback_statistics(
    aggregator: FeedbackAggregator = Depends(get_feedback_aggregator),
):
    """Feedback totals, average rating, rating distribution and purchase rate."""
    return FeedbackStatisticsResponse(**aggregator.get_feedback_statistics().to_dict())


@router.get("/top-rated", response_model=list[TopRatedResponse])
def top_rated_containers(
    payload_id: str = Query(..., description="Payload to rank containers for"),
    limit: int = Query(5, ge=1, le=50),
    aggregator: FeedbackAggregator = Depends(get_feedback_aggregator),
):
    """Containers with the best average user rating for a payload."""
    try:
        rows = aggregator.get_top_rated_for_payload(payload_id, limit)
    except CaseFitError as e:
        raise http_error(e)

    return [
        TopRatedResponse(
            container=container_summary(row["container"]),
            average_rating=row["average_rating"],
            feedback_count=row["feedback_count"],
        )
        for row in rows
    ]
