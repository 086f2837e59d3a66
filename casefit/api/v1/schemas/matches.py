"""Pydantic schemas for match endpoints."""

from datetime import datetime
from pydantic import BaseModel

from casefit.api.v1.schemas.matching import ContainerSummary, DimensionFitResponse


class MatchPayloadSummary(BaseModel):
    """Embedded payload info inside a match response."""
    id: str
    name: str
    brand: str | None = None
    category: str | None = None
    length: float
    width: float
    height: float


class MatchResponse(BaseModel):
    """Single match record."""
    id: str
    compatibility_score: int
    dimension_fit: DimensionFitResponse | None = None
    feature_score: int | None = None
    price_category: str
    protection_level: str | None = None
    features: list[str]
    feedback_count: int
    positive_feedback_count: int
    negative_feedback_count: int
    user_feedback_score: float | None = None
    created_at: datetime
    updated_at: datetime | None = None
    payload: MatchPayloadSummary
    container: ContainerSummary


class MatchListResponse(BaseModel):
    """List of matches with count."""
    total: int
    matches: list[MatchResponse]
