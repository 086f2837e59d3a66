import logging

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from casefit.api.deps import get_container_cache
from casefit.api.v1.endpoints import feedback, matches, matching, recommendations
from casefit.config import get_settings, Settings
from casefit.db.session import get_db
from casefit.repositories.cache import ContainerQueryCache

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Compatibility matching and recommendations for equipment and protective cases",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(matching.router, prefix="/api/v1")
app.include_router(matches.router, prefix="/api/v1")
app.include_router(recommendations.router, prefix="/api/v1")
app.include_router(feedback.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    cache: ContainerQueryCache = Depends(get_container_cache),
):
    """Health check endpoint with database connectivity test."""
    try:
        # Test database connection
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "components": {
            "api": "healthy",
            "database": db_status,
            "container_cache": cache.stats(),
        },
        "version": settings.app_version,
    }


@app.get("/config")
async def get_config(settings: Settings = Depends(get_settings)):
    """Get application configuration (non-sensitive values)."""
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "app_env": settings.app_env,
        "matching": {
            "clearance_buffer": settings.clearance_buffer,
            "min_compatibility_score": settings.min_compatibility_score,
            "max_results": settings.max_results,
            "weights": {
                "dimension": settings.dimension_weight,
                "protection": settings.protection_weight,
                "feature": settings.feature_weight,
                "rating": settings.rating_weight,
            },
            "price_categories": {
                "budget_below": settings.budget_price_threshold,
                "premium_above": settings.premium_price_threshold,
            },
        },
        "recommendations": {
            "max_alternatives": settings.max_alternatives,
            "max_price_difference_percent": settings.max_price_difference_percent,
        },
        "feedback": {
            "algorithm_weight": settings.algorithm_score_weight,
            "feedback_weight": settings.feedback_score_weight,
        },
        "batch": {
            "max_workers": settings.batch_max_workers,
            "timeout_seconds": settings.batch_timeout_seconds,
        },
    }
