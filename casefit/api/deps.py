"""FastAPI dependencies wiring repositories into the engine components.

The container query cache is created once per process and shared by every
request; everything else is built per request around that request's session.
"""

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from casefit.config import get_settings
from casefit.db.session import SessionLocal, get_db
from casefit.errors import CaseFitError, NotFoundError
from casefit.matching.engine import CatalogMatcher
from casefit.matching.recommendations import RecommendationEngine
from casefit.repositories.cache import ContainerQueryCache
from casefit.repositories.sql_repositories import (
    SqlContainerRepository,
    SqlFeedbackRepository,
    SqlMatchRepository,
    SqlPayloadRepository,
)
from casefit.services.feedback_service import FeedbackAggregator
from casefit.services.matching_service import build_catalog_matcher

container_cache = ContainerQueryCache(
    get_settings().container_cache_ttl_seconds,
    max_entries=get_settings().container_cache_max_entries,
)


def http_error(error: CaseFitError) -> HTTPException:
    """Map an engine error onto an HTTP status."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def get_session_factory():
    return SessionLocal


def get_container_cache() -> ContainerQueryCache:
    return container_cache


def get_catalog_matcher(
    db: Session = Depends(get_db),
    cache: ContainerQueryCache = Depends(get_container_cache),
) -> CatalogMatcher:
    return build_catalog_matcher(db, cache=cache)


def get_recommendation_engine(
    matcher: CatalogMatcher = Depends(get_catalog_matcher),
) -> RecommendationEngine:
    return RecommendationEngine(matcher)


def get_feedback_aggregator(db: Session = Depends(get_db)) -> FeedbackAggregator:
    return FeedbackAggregator(
        payloads=SqlPayloadRepository(db),
        containers=SqlContainerRepository(db),
        matches=SqlMatchRepository(db),
        feedback=SqlFeedbackRepository(db),
    )
