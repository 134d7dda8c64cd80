"""
Tracking API Routes
Run prompts against AI engines and read back brand visibility
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.llm import get_engine_adapters
from app.config import get_settings
from app.models import TrackingStatus
from app.schemas import (
    ScoreBreakdownResponse,
    ScoreInterpretationResponse,
    StatsResponse,
    TrackingBatchSummary,
    TrackRequest,
    TrackResponse,
    TrendResponse,
    VisibilityScoreResponse,
)
from app.services import (
    BrandNotFoundError,
    SQLAlchemyTrackingStore,
    TrackingService,
    TrackingValidationError,
)
from app.services.scoring_engine import round_half_up
from app.utils import get_db

router = APIRouter()


def get_tracking_service(db: AsyncSession = Depends(get_db)) -> TrackingService:
    return TrackingService(SQLAlchemyTrackingStore(db), get_engine_adapters())


def _resolve_days(days: Optional[int]) -> int:
    return get_settings().TRACKING_DEFAULT_WINDOW_DAYS if days is None else days


# ============================================================================
# TRACKING ENDPOINTS
# ============================================================================

@router.post("/track", response_model=TrackResponse)
async def track_prompts(
    request: TrackRequest,
    service: TrackingService = Depends(get_tracking_service),
):
    """
    Track a brand's prompts across AI engines.

    Every (prompt, engine) pair runs sequentially. A failed pair is reported
    in its result and does not stop the rest of the batch.
    """
    try:
        results = await service.track_brand_prompts(
            brand_id=request.brand_id,
            prompt_ids=request.prompt_ids,
            engines=request.ai_engines,
        )
    except BrandNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TrackingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    completed = [r for r in results if r.status == TrackingStatus.COMPLETED.value]
    mentioned = sum(1 for r in completed if r.brand_mentioned)

    return TrackResponse(
        results=results,
        summary=TrackingBatchSummary(
            total=len(results),
            completed=len(completed),
            failed=len(results) - len(completed),
            mentioned=mentioned,
            visibility_rate=round_half_up(mentioned / len(completed) * 100, 2) if completed else 0.0,
        ),
    )


@router.get("/stats/{brand_id}", response_model=StatsResponse)
async def get_tracking_stats(
    brand_id: UUID,
    days: Optional[int] = Query(None, ge=1, le=365),
    service: TrackingService = Depends(get_tracking_service),
):
    """Mention-rate statistics for completed runs in the last `days` days"""
    days = _resolve_days(days)
    try:
        await service.require_brand(brand_id)
    except BrandNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    stats = await service.get_brand_tracking_stats(brand_id, window_days=days)
    return StatsResponse(brand_id=brand_id, days=days, stats=stats)


@router.get("/score/{brand_id}", response_model=VisibilityScoreResponse)
async def get_visibility_score(
    brand_id: UUID,
    days: Optional[int] = Query(None, ge=1, le=365),
    service: TrackingService = Depends(get_tracking_service),
):
    """
    Weighted visibility score (0-100) for the last `days` days.

    Combines mention frequency, position, sentiment and citation quality, and
    compares against the window of the same length just before.
    """
    days = _resolve_days(days)
    try:
        visibility = await service.get_brand_visibility_score(brand_id, window_days=days)
    except BrandNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    metrics = visibility.metrics
    breakdown = visibility.breakdown
    return VisibilityScoreResponse(
        brand_id=brand_id,
        days=days,
        total_queries=metrics.total_queries,
        total_mentions=metrics.total_mentions,
        average_position=(
            round_half_up(metrics.average_position, 2)
            if metrics.average_position is not None else None
        ),
        breakdown=ScoreBreakdownResponse(
            overall=breakdown.overall,
            mention_frequency=breakdown.mention_frequency,
            position=breakdown.position,
            sentiment=breakdown.sentiment,
            citation_quality=breakdown.citation_quality,
        ),
        previous_overall=visibility.previous.overall,
        trend=TrendResponse(
            value=visibility.trend.value,
            is_positive=visibility.trend.is_positive,
            label=visibility.trend.label,
        ),
        interpretation=ScoreInterpretationResponse(
            label=visibility.interpretation.label,
            description=visibility.interpretation.description,
            color=visibility.interpretation.color,
            recommendation=visibility.interpretation.recommendation,
        ),
    )
