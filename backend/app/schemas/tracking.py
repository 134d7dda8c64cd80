"""
Tracking Schemas
Typed records at the persistence boundary and API request/response models
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.config import AI_ENGINES, DEFAULT_ENGINES

# Lengths of the bounded String columns extracted text is written to
NAME_MAX_LENGTH = 255
TITLE_MAX_LENGTH = 500


def _clip(value, limit: int):
    if isinstance(value, str) and len(value) > limit:
        return value[:limit]
    return value


# ============================================================================
# STORE RECORDS
# ============================================================================

class BrandRecord(BaseModel):
    """Brand row as the tracker sees it"""
    id: UUID
    name: str
    website_url: Optional[str] = None
    variations: List[str] = []
    last_tracked_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("variations", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []

    @property
    def name_variants(self) -> List[str]:
        """Primary name followed by stored variations"""
        return [self.name] + [v for v in self.variations if v]


class PromptRecord(BaseModel):
    id: UUID
    brand_id: UUID
    prompt_text: str
    category: Optional[str] = None
    is_active: bool = True
    last_tracked_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TrackingSessionRecord(BaseModel):
    """Tracking run row"""
    id: UUID
    brand_id: UUID
    prompt_id: Optional[UUID]
    ai_engine: str
    status: str
    response_text: Optional[str] = None
    mentioned: bool = False
    position: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True

    @field_validator("metadata", mode="before")
    @classmethod
    def none_to_dict(cls, v):
        return v or {}


class TrackingSessionUpdate(BaseModel):
    """Terminal write-back for a tracking run; unset fields are left alone"""
    status: str
    response_text: Optional[str] = None
    citations: Optional[Dict[str, Any]] = None
    mentioned: Optional[bool] = None
    position: Optional[int] = None
    metadata: Dict[str, Any] = {}


class CitationCreate(BaseModel):
    brand_id: UUID
    source_url: Optional[str] = None
    source_title: Optional[str] = None
    source_domain: Optional[str] = None
    citation_text: str
    position: int
    context: Optional[str] = None
    is_brand_mentioned: bool = False
    brand_name: Optional[str] = None
    sentiment: Optional[str] = None
    relevance_score: Optional[float] = None

    @field_validator("source_domain", "brand_name", mode="before")
    @classmethod
    def fit_name_column(cls, v):
        return _clip(v, NAME_MAX_LENGTH)

    @field_validator("source_title", mode="before")
    @classmethod
    def fit_title_column(cls, v):
        return _clip(v, TITLE_MAX_LENGTH)


class CitationRecord(CitationCreate):
    id: UUID
    tracking_session_id: UUID

    class Config:
        from_attributes = True


class DiscoveredBrandCreate(BaseModel):
    brand_name: str
    brand_domain: Optional[str] = None
    mention_count: int = 1
    first_position: int

    @field_validator("brand_name", "brand_domain", mode="before")
    @classmethod
    def fit_name_column(cls, v):
        return _clip(v, NAME_MAX_LENGTH)


# ============================================================================
# SERVICE RESULTS
# ============================================================================

class TrackingResult(BaseModel):
    """Outcome of one (prompt, engine) tracking unit"""
    session_id: str
    status: str  # completed, failed
    brand_mentioned: bool = False
    position: Optional[int] = None
    citations_count: int = 0
    discovered_brands_count: int = 0
    error: Optional[str] = None


class EngineStats(BaseModel):
    tracked: int = 0
    mentions: int = 0
    score: float = 0.0


class TrackingStats(BaseModel):
    """Mention-rate summary over a window"""
    total_tracked: int = 0
    total_mentions: int = 0
    visibility_score: float = 0.0
    avg_position: float = 0.0
    by_engine: Dict[str, EngineStats] = {}


# ============================================================================
# API
# ============================================================================

class TrackRequest(BaseModel):
    """Run tracking for a brand's prompts"""
    brand_id: UUID
    prompt_ids: Optional[List[UUID]] = None  # If None, track all active prompts
    ai_engines: List[str] = Field(default_factory=lambda: list(DEFAULT_ENGINES), min_length=1)

    @field_validator("ai_engines")
    @classmethod
    def known_engines(cls, v: List[str]) -> List[str]:
        unknown = [engine for engine in v if engine not in AI_ENGINES]
        if unknown:
            raise ValueError(f"Unknown AI engine(s): {unknown}. Must be one of {list(AI_ENGINES)}")
        return v


class TrackingBatchSummary(BaseModel):
    total: int
    completed: int
    failed: int
    mentioned: int
    visibility_rate: float


class TrackResponse(BaseModel):
    success: bool = True
    results: List[TrackingResult]
    summary: TrackingBatchSummary


class StatsResponse(BaseModel):
    success: bool = True
    brand_id: UUID
    days: int
    stats: TrackingStats


class ScoreBreakdownResponse(BaseModel):
    overall: float
    mention_frequency: float
    position: float
    sentiment: float
    citation_quality: float


class ScoreInterpretationResponse(BaseModel):
    label: str
    description: str
    color: str
    recommendation: str


class TrendResponse(BaseModel):
    value: float
    is_positive: bool
    label: str


class VisibilityScoreResponse(BaseModel):
    """Canonical weighted score for a brand over a window"""
    success: bool = True
    brand_id: UUID
    days: int
    total_queries: int
    total_mentions: int
    average_position: Optional[float]
    breakdown: ScoreBreakdownResponse
    previous_overall: float
    trend: TrendResponse
    interpretation: ScoreInterpretationResponse
