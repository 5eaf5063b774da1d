"""
API routes for running the scorer and classifying notes.
"""

from datetime import datetime
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header

from bridging_scorer.config import get_settings
from bridging_scorer.exceptions import NonFiniteScoreError, ScoringError
from bridging_scorer.models import (
    HealthResponse, ScoreRequest, ScoringResultResponse, StatusRequest, StatusResponse
)
from bridging_scorer.scoring.status import derive_status
from bridging_scorer.scoring_service import ScoringService


router = APIRouter(prefix="/scoring", tags=["Scoring"])

settings = get_settings()


@lru_cache()
def get_scoring_service() -> ScoringService:
    """Dependency to get the shared scoring service."""
    return ScoringService(get_settings())


def _check_api_key(x_api_key: Optional[str]):
    if settings.api_key and x_api_key != settings.api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")


# =============================================================================
# Run Scoring
# =============================================================================


@router.post("/run", response_model=ScoringResultResponse)
def run_scoring(
    request: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service),
    x_api_key: Optional[str] = Header(default=None)
):
    """
    Score a complete set of ratings.

    The caller sends every rating it holds; the response has one score per
    distinct note, plus the status transitions against `previousStatuses`
    and the label operations to apply. Any `pendingDisputes` whose dispute
    note reached CRH or CRNH come back as `disputeResolutions`. Nothing is
    stored server side.

    Requires API key if configured.
    """
    _check_api_key(x_api_key)

    try:
        result = service.run_scoring(
            request.ratings,
            previous_statuses=request.previous_statuses,
            seed=request.seed,
            pending_disputes=request.pending_disputes,
        )
    except NonFiniteScoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ScoringError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ScoringResultResponse(
        success=result["success"],
        scores=result["scores"],
        notes_scored=result["notes_scored"],
        notes_fitted=result["notes_fitted"],
        ratings_received=result["ratings_received"],
        ratings_used=result["ratings_used"],
        status_counts=result["status_counts"],
        transitions=result["transitions"],
        label_operations=result["label_operations"],
        dispute_resolutions=result["dispute_resolutions"],
        duration_seconds=result["duration_seconds"],
        errors=result.get("errors", []),
        scored_at=datetime.fromisoformat(result["scored_at"])
    )


@router.post("/status", response_model=StatusResponse)
def classify(request: StatusRequest):
    """Derive the status for a fitted (intercept, factor) pair."""
    params = settings.scoring_parameters()
    status = derive_status(
        request.intercept,
        request.factor,
        crh_intercept=params.crh_intercept,
        crh_max_factor=params.crh_max_factor,
        crnh_base=params.crnh_base,
        crnh_factor_weight=params.crnh_factor_weight,
    )
    return StatusResponse(intercept=request.intercept, factor=request.factor, status=status)


# =============================================================================
# Scoring Status
# =============================================================================


@router.get("/last-run")
def get_last_scoring_run(service: ScoringService = Depends(get_scoring_service)):
    """Get details of the last scoring run."""
    last_run = service.last_run

    if not last_run:
        return {"message": "No scoring runs yet"}

    return {
        "started_at": last_run.started_at.isoformat() if last_run.started_at else None,
        "completed_at": last_run.completed_at.isoformat() if last_run.completed_at else None,
        "success": last_run.success,
        "notes_scored": last_run.notes_scored,
        "notes_fitted": last_run.notes_fitted,
        "ratings_received": last_run.ratings_received,
        "ratings_used": last_run.ratings_used,
        "status_changes": last_run.status_changes,
        "disputes_resolved": last_run.disputes_resolved,
        "duration_seconds": last_run.duration_seconds,
        "error": last_run.error_message,
        "algorithm_version": last_run.algorithm_version,
        "config": last_run.config_snapshot,
    }


# =============================================================================
# Health Check
# =============================================================================


@router.get("/health", response_model=HealthResponse)
def health_check(service: ScoringService = Depends(get_scoring_service)):
    """
    Health check endpoint.

    Reports the service version and the outcome of the last run.
    """
    last_run = service.last_run
    degraded = last_run is not None and not last_run.success

    return HealthResponse(
        status="degraded" if degraded else "healthy",
        version=settings.app_version,
        last_scoring_run=last_run.completed_at if last_run else None,
        last_run_success=last_run.success if last_run else None,
    )
