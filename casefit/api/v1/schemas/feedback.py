"""Pydantic schemas for feedback endpoints."""

from datetime import datetime
from pydantic import BaseModel, Field

from casefit.api.v1.schemas.matching import ContainerSummary


class FeedbackRequest(BaseModel):
    """Request body for submitting feedback on a payload/container pairing."""
    payload_id: str
    container_id: str
    rating: int = Field(..., ge=1, le=5)
    user_id: str | None = None
    fit_accuracy: int | None = Field(None, ge=1, le=5)
    protection_quality: int | None = Field(None, ge=1, le=5)
    value_for_money: int | None = Field(None, ge=1, le=5)
    actually_purchased: bool = False
    comments: str | None = None


class FeedbackResponse(BaseModel):
    id: str
    payload_id: str
    container_id: str
    match_id: str | None = None
    user_id: str | None = None
    rating: int
    fit_accuracy: int | None = None
    protection_quality: int | None = None
    value_for_money: int | None = None
    actually_purchased: bool
    comments: str | None = None
    created_at: datetime


class FeedbackSubmitResponse(BaseModel):
    feedback: FeedbackResponse
    match_id: str
    compatibility_score: int
    previous_score: int | None = None
    average_rating: float
    match_created: bool


class FeedbackListResponse(BaseModel):
    total: int
    average_rating: float | None = None
    feedback: list[FeedbackResponse]


class RatingCount(BaseModel):
    rating: int
    count: int


class FeedbackStatisticsResponse(BaseModel):
    total_feedback: int
    average_rating: float
    rating_distribution: list[RatingCount]
    purchase_rate: float


class TopRatedResponse(BaseModel):
    container: ContainerSummary
    average_rating: float
    feedback_count: int
