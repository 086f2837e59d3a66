"""Pydantic schemas for recommendation endpoints."""

from pydantic import BaseModel, Field

from casefit.api.v1.schemas.matching import ContainerSummary


class RecommendationRequest(BaseModel):
    payload_id: str
    primary_container_id: str
    max_alternatives: int | None = Field(None, ge=1)
    include_budget: bool = True
    include_premium: bool = True
    include_alternative_sizes: bool = True
    max_price_difference_percent: float | None = Field(None, ge=0)
    min_compatibility_score: float | None = Field(None, ge=0, le=100)
    preferred_brands: list[str] = []
    excluded_brands: list[str] = []


class RecommendationResponse(BaseModel):
    container: ContainerSummary
    recommendation_type: str
    compatibility_score: int
    confidence_score: int


class RecommendationListResponse(BaseModel):
    payload_id: str
    primary_container_id: str
    total: int
    recommendations: list[RecommendationResponse]
