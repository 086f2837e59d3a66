"""Pydantic schemas for matching endpoints."""

from datetime import datetime
from pydantic import BaseModel, Field


class MatchingRequest(BaseModel):
    """Options for finding compatible containers. Omitted values use the configured defaults."""
    min_compatibility_score: float | None = Field(None, ge=0, le=100)
    preferred_protection_level: str | None = None
    max_price: float | None = Field(None, ge=0)
    currency: str | None = "USD"
    preferred_features: list[str] = []
    preferred_brands: list[str] = []
    waterproof: bool | None = None
    shockproof: bool | None = None
    require_handle: bool = False
    require_wheels: bool = False
    container_ids: list[str] | None = None
    max_results: int | None = Field(None, ge=1)
    sort_by: str = "compatibility_score"
    sort_direction: str = "desc"


class DimensionFitResponse(BaseModel):
    length: float
    width: float
    height: float
    overall: float


class RuleScoreResponse(BaseModel):
    score: float
    max_score: float
    sub_score: float
    details: str


class ContainerSummary(BaseModel):
    """Embedded container info inside matching responses."""
    id: str
    name: str
    brand: str | None = None
    price: float | None = None
    currency: str | None = None
    rating: float | None = None
    protection_level: str | None = None
    internal_length: float
    internal_width: float
    internal_height: float


class ScoredContainerResponse(BaseModel):
    container: ContainerSummary
    compatibility_score: int
    feature_score: int | None = None
    price_category: str
    dimension_fit: DimensionFitResponse | None = None
    rules: dict[str, RuleScoreResponse]


class MatchingResponse(BaseModel):
    payload_id: str
    total_eligible: int
    below_threshold: int
    skipped: int
    candidates: list[ScoredContainerResponse]
    errors: list[str]


class ScoreRequest(BaseModel):
    """Score one payload/container pair without persisting anything."""
    payload_id: str
    container_id: str
    preferred_features: list[str] = []


class ScoreResponse(BaseModel):
    payload_id: str
    container_id: str
    compatibility_score: int
    feature_score: int
    price_category: str
    dimension_fit: DimensionFitResponse | None = None
    rules: dict[str, RuleScoreResponse]


class BatchMatchingRequest(BaseModel):
    """Run matching for the selected payloads, or every payload when none are given."""
    payload_ids: list[str] | None = None
    options: MatchingRequest = MatchingRequest()
    max_workers: int | None = Field(None, ge=1)
    timeout_seconds: float | None = Field(None, gt=0)


class BatchMatchingResponse(BaseModel):
    message: str
    total_payloads: int
    processed: int
    failed: int
    not_started: int
    candidates: int
    matches_upserted: int
    skipped_candidates: int
    cancelled: bool
    timed_out: bool
    started_at: datetime
    completed_at: datetime | None = None
    errors: list[str]


class ScoreBucket(BaseModel):
    range: str
    count: int
    percentage: float


class MatchStatisticsResponse(BaseModel):
    total_matches: int
    average_score: float
    score_distribution: list[ScoreBucket]
