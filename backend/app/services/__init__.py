"""
Business Logic Services
"""

from .scoring_engine import (
    SCORE_WEIGHTS,
    ScoreBreakdown,
    ScoreInterpretation,
    SentimentDistribution,
    TargetEstimate,
    Trend,
    VisibilityMetrics,
    calculate_citation_quality_score,
    calculate_mention_frequency_score,
    calculate_position_score,
    calculate_sentiment_score,
    calculate_trend,
    calculate_visibility_score,
    estimate_time_to_target,
    get_score_interpretation,
)
from .tracking_store import SQLAlchemyTrackingStore, TrackingStore
from .tracking_service import (
    BrandNotFoundError,
    BrandVisibility,
    EngineNotImplementedError,
    TrackingError,
    TrackingService,
    TrackingValidationError,
    UnsupportedEngineError,
)

__all__ = [
    # Scoring
    "SCORE_WEIGHTS",
    "ScoreBreakdown",
    "ScoreInterpretation",
    "SentimentDistribution",
    "TargetEstimate",
    "Trend",
    "VisibilityMetrics",
    "calculate_citation_quality_score",
    "calculate_mention_frequency_score",
    "calculate_position_score",
    "calculate_sentiment_score",
    "calculate_trend",
    "calculate_visibility_score",
    "estimate_time_to_target",
    "get_score_interpretation",
    # Persistence
    "SQLAlchemyTrackingStore",
    "TrackingStore",
    # Tracking
    "BrandNotFoundError",
    "BrandVisibility",
    "EngineNotImplementedError",
    "TrackingError",
    "TrackingService",
    "TrackingValidationError",
    "UnsupportedEngineError",
]
