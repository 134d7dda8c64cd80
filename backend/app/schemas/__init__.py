"""
Pydantic Schemas for request/response validation
"""

from .tracking import (
    # Store records
    BrandRecord,
    PromptRecord,
    TrackingSessionRecord,
    TrackingSessionUpdate,
    CitationCreate,
    CitationRecord,
    DiscoveredBrandCreate,
    # Service results
    TrackingResult,
    EngineStats,
    TrackingStats,
    # API
    TrackRequest,
    TrackingBatchSummary,
    TrackResponse,
    StatsResponse,
    ScoreBreakdownResponse,
    ScoreInterpretationResponse,
    TrendResponse,
    VisibilityScoreResponse,
)

__all__ = [
    "BrandRecord",
    "PromptRecord",
    "TrackingSessionRecord",
    "TrackingSessionUpdate",
    "CitationCreate",
    "CitationRecord",
    "DiscoveredBrandCreate",
    "TrackingResult",
    "EngineStats",
    "TrackingStats",
    "TrackRequest",
    "TrackingBatchSummary",
    "TrackResponse",
    "StatsResponse",
    "ScoreBreakdownResponse",
    "ScoreInterpretationResponse",
    "TrendResponse",
    "VisibilityScoreResponse",
]
