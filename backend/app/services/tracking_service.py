"""
Prompt Tracking Service
Runs prompts against AI engines, analyzes the answers and stores the results
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from statistics import mean
from typing import List, Mapping, Optional, Sequence
from uuid import UUID

from app.adapters.llm import BaseLLMAdapter, LLMConfig, LLMResponse
from app.adapters.parsing import (
    CitationAnalysis, CitationExtractor, ExtractedCitation, calculate_relevance_score
)
from app.config import (
    AI_ENGINES, CITATION_REQUEST_SUFFIX, DEFAULT_ENGINES, IMPLEMENTED_ENGINES, Settings, get_settings
)
from app.models import SentimentPolarity, TrackingStatus
from app.schemas import (
    BrandRecord,
    CitationCreate,
    CitationRecord,
    DiscoveredBrandCreate,
    EngineStats,
    TrackingResult,
    TrackingSessionRecord,
    TrackingSessionUpdate,
    TrackingStats,
)
from app.services.scoring_engine import (
    ScoreBreakdown,
    ScoreInterpretation,
    SentimentDistribution,
    Trend,
    VisibilityMetrics,
    calculate_trend,
    calculate_visibility_score,
    get_score_interpretation,
    round_half_up,
)
from app.services.tracking_store import TrackingStore

logger = logging.getLogger(__name__)


class TrackingError(Exception):
    """Base exception for tracking failures"""
    pass


class TrackingValidationError(TrackingError):
    """Bad input, reported before anything is written"""
    pass


class BrandNotFoundError(TrackingValidationError):
    pass


class UnsupportedEngineError(TrackingValidationError):
    pass


class EngineNotImplementedError(TrackingError):
    """Engine is known but has no integration yet"""
    pass


@dataclass(frozen=True)
class BrandVisibility:
    """Canonical weighted score for a window plus its trend vs the window before"""
    metrics: VisibilityMetrics
    breakdown: ScoreBreakdown
    previous: ScoreBreakdown
    trend: Trend
    interpretation: ScoreInterpretation


def build_tracking_prompt(prompt_text: str) -> str:
    """User prompt plus the instruction asking for sources and URLs"""
    return f"{prompt_text}\n\n{CITATION_REQUEST_SUFFIX}"


def summarize_sessions(sessions: Sequence[TrackingSessionRecord]) -> TrackingStats:
    """Mention-rate statistics over completed tracking runs"""
    if not sessions:
        return TrackingStats()

    total_tracked = len(sessions)
    total_mentions = sum(1 for s in sessions if s.mentioned)

    positions = [s.position for s in sessions if s.mentioned and s.position]
    avg_position = mean(positions) if positions else 0.0

    by_engine = {}
    for session in sessions:
        stats = by_engine.setdefault(session.ai_engine, EngineStats())
        stats.tracked += 1
        if session.mentioned:
            stats.mentions += 1
    for stats in by_engine.values():
        stats.score = round_half_up(stats.mentions / stats.tracked * 100, 2)

    return TrackingStats(
        total_tracked=total_tracked,
        total_mentions=total_mentions,
        visibility_score=round_half_up(total_mentions / total_tracked * 100, 2),
        avg_position=round_half_up(avg_position, 2),
        by_engine=by_engine,
    )


def _as_extracted(record: CitationRecord) -> ExtractedCitation:
    return ExtractedCitation(
        citation_text=record.citation_text,
        position=record.position,
        context=record.context or "",
        is_brand_mentioned=record.is_brand_mentioned,
        source_url=record.source_url,
        source_domain=record.source_domain,
        source_title=record.source_title,
        brand_name=record.brand_name,
        sentiment=SentimentPolarity(record.sentiment) if record.sentiment else None,
        relevance_score=record.relevance_score,
    )


def build_visibility_metrics(
    sessions: Sequence[TrackingSessionRecord],
    citations: Sequence[CitationRecord],
    brand_name: str,
) -> VisibilityMetrics:
    """
    Aggregate stored runs and their citations into scorer input.

    Queries are completed runs and mentions are runs that mentioned the brand.
    Sentiment and citation quality come from brand citations only, with
    quality re-scored through calculate_relevance_score.
    """
    positions = [s.position for s in sessions if s.mentioned and s.position]

    brand_citations = [_as_extracted(c) for c in citations if c.is_brand_mentioned]
    counts = {polarity: 0 for polarity in SentimentPolarity}
    for citation in brand_citations:
        if citation.sentiment is not None:
            counts[citation.sentiment] += 1

    quality = (
        mean(calculate_relevance_score(c, brand_name) for c in brand_citations)
        if brand_citations else 0.0
    )

    return VisibilityMetrics(
        total_queries=len(sessions),
        total_mentions=sum(1 for s in sessions if s.mentioned),
        average_position=mean(positions) if positions else None,
        sentiment_distribution=SentimentDistribution(
            positive=counts[SentimentPolarity.POSITIVE],
            neutral=counts[SentimentPolarity.NEUTRAL],
            negative=counts[SentimentPolarity.NEGATIVE],
        ),
        citation_quality=quality,
    )


class TrackingService:
    """
    Coordinates tracking runs for a brand.

    Each (prompt, engine) unit is recorded as a tracking session that starts
    out running and ends either completed or failed. Failures stay inside
    their unit: the batch keeps going and the failure is reported in the
    unit's TrackingResult. Nothing is retried.
    """

    def __init__(
        self,
        store: TrackingStore,
        llm_adapters: Mapping[str, BaseLLMAdapter],
        settings: Optional[Settings] = None,
        extractor: Optional[CitationExtractor] = None,
    ):
        self.store = store
        self.llm_adapters = dict(llm_adapters)
        self.settings = settings or get_settings()
        self.extractor = extractor or CitationExtractor()

    async def _throttle(self) -> None:
        """Pause between sequential LLM calls to stay under provider rate limits"""
        if self.settings.TRACKING_REQUEST_DELAY > 0:
            await asyncio.sleep(self.settings.TRACKING_REQUEST_DELAY)

    async def _query_engine(self, engine: str, prompt_text: str) -> LLMResponse:
        if engine not in AI_ENGINES:
            raise UnsupportedEngineError(f"Unknown AI engine: {engine}")
        if engine not in IMPLEMENTED_ENGINES:
            raise EngineNotImplementedError(f"{engine} integration not yet implemented")

        adapter = self.llm_adapters.get(engine)
        if adapter is None:
            raise TrackingError(f"No LLM adapter configured for {engine}")

        config = LLMConfig.for_tracking(adapter.default_model, self.settings)
        return await adapter.execute(build_tracking_prompt(prompt_text), config)

    async def _store_analysis(
        self, brand_id: UUID, session_id: UUID, analysis: CitationAnalysis
    ) -> None:
        await self.store.add_citations(session_id, [
            CitationCreate(
                brand_id=brand_id,
                source_url=c.source_url,
                source_title=c.source_title,
                source_domain=c.source_domain,
                citation_text=c.citation_text,
                position=c.position,
                context=c.context,
                is_brand_mentioned=c.is_brand_mentioned,
                brand_name=c.brand_name,
                sentiment=c.sentiment.value if c.sentiment else None,
                relevance_score=c.relevance_score,
            )
            for c in analysis.citations
        ])
        await self.store.add_discovered_brands(session_id, [
            DiscoveredBrandCreate(
                brand_name=b.brand_name,
                brand_domain=b.brand_domain,
                mention_count=b.mention_count,
                first_position=b.position,
            )
            for b in analysis.discovered_brands.values()
        ])

    async def _discard_failed_write(self):
        """Roll back whatever write failed so the next store call starts clean"""
        try:
            await self.store.rollback()
        except Exception:
            logger.exception("Rollback after failed tracking write did not succeed")

    async def track_prompt(
        self,
        brand_id: UUID,
        prompt_id: UUID,
        prompt_text: str,
        brand_names: Sequence[str],
        engine: str = "chatgpt",
    ) -> TrackingResult:
        """
        Track a single prompt on one AI engine.

        Returns:
            TrackingResult; failures are reported in it, never raised
        """
        try:
            session = await self.store.create_session(
                brand_id, prompt_id, engine, TrackingStatus.RUNNING.value
            )
        except Exception as e:
            logger.error(f"Could not create tracking session for prompt {prompt_id}: {e}")
            await self._discard_failed_write()
            return TrackingResult(session_id="", status=TrackingStatus.FAILED.value, error=str(e))

        try:
            response = await self._query_engine(engine, prompt_text)
            analysis = self.extractor.extract(response.content, brand_names)

            await self._store_analysis(brand_id, session.id, analysis)

            tracked_at = datetime.utcnow()
            await self.store.touch_prompt(prompt_id, tracked_at)
            await self.store.touch_brand(brand_id, tracked_at)

            await self.store.update_session(session.id, TrackingSessionUpdate(
                status=TrackingStatus.COMPLETED.value,
                response_text=response.content,
                citations=analysis.to_dict(),
                mentioned=analysis.target_brand_mentioned,
                position=analysis.target_brand_position,
                metadata={
                    "total_citations": len(analysis.citations),
                    "total_brands_discovered": analysis.total_brands_found,
                    "summary": analysis.summary,
                    **response.run_metadata(),
                },
            ))
        except Exception as e:
            message = str(e) or type(e).__name__
            if isinstance(e, EngineNotImplementedError):
                logger.warning(f"Tracking run {session.id}: {message}")
            else:
                logger.error(f"Tracking run {session.id} failed: {message}")
            await self._discard_failed_write()
            try:
                await self.store.update_session(session.id, TrackingSessionUpdate(
                    status=TrackingStatus.FAILED.value,
                    metadata={"error": message},
                ))
            except Exception:
                logger.exception(f"Could not mark tracking run {session.id} as failed")
            return TrackingResult(
                session_id=str(session.id),
                status=TrackingStatus.FAILED.value,
                error=message,
            )

        logger.info(
            f"Tracking run {session.id} completed on {engine}: "
            f"mentioned={analysis.target_brand_mentioned}, citations={len(analysis.citations)}"
        )
        return TrackingResult(
            session_id=str(session.id),
            status=TrackingStatus.COMPLETED.value,
            brand_mentioned=analysis.target_brand_mentioned,
            position=analysis.target_brand_position,
            citations_count=len(analysis.citations),
            discovered_brands_count=analysis.total_brands_found,
        )

    async def require_brand(self, brand_id: UUID) -> BrandRecord:
        brand = await self.store.get_brand(brand_id)
        if brand is None:
            raise BrandNotFoundError(f"Brand not found: {brand_id}")
        return brand

    async def track_brand_prompts(
        self,
        brand_id: UUID,
        prompt_ids: Optional[Sequence[UUID]] = None,
        engines: Optional[Sequence[str]] = None,
    ) -> List[TrackingResult]:
        """
        Track every selected prompt on every engine, one call at a time.

        Args:
            brand_id: Brand to track
            prompt_ids: Prompts to track; all active prompts when omitted
            engines: AI engines to query; defaults to ChatGPT

        Raises:
            UnsupportedEngineError: an engine identifier is not recognized
            BrandNotFoundError: the brand does not exist
        """
        engines = list(engines or DEFAULT_ENGINES)
        unknown = [engine for engine in engines if engine not in AI_ENGINES]
        if unknown:
            raise UnsupportedEngineError(f"Unknown AI engine(s): {', '.join(unknown)}")

        brand = await self.require_brand(brand_id)

        prompts = await self.store.list_active_prompts(brand_id, prompt_ids)
        if not prompts:
            return []

        logger.info(f"Tracking {len(prompts)} prompt(s) on {len(engines)} engine(s) for brand {brand_id}")

        results = []
        units = [(prompt, engine) for prompt in prompts for engine in engines]
        for index, (prompt, engine) in enumerate(units):
            if index:
                await self._throttle()
            results.append(await self.track_prompt(
                brand_id=brand_id,
                prompt_id=prompt.id,
                prompt_text=prompt.prompt_text,
                brand_names=brand.name_variants,
                engine=engine,
            ))

        return results

    def _window(self, window_days: Optional[int]) -> timedelta:
        days = self.settings.TRACKING_DEFAULT_WINDOW_DAYS if window_days is None else window_days
        return timedelta(days=days)

    async def get_brand_tracking_stats(
        self, brand_id: UUID, window_days: Optional[int] = None
    ) -> TrackingStats:
        """Mention-rate summary of completed runs in the trailing window"""
        sessions = await self.store.list_completed_sessions(brand_id, datetime.utcnow() - self._window(window_days))
        return summarize_sessions(sessions)

    async def _window_metrics(
        self, brand_id: UUID, brand_name: str, since: datetime, until: Optional[datetime] = None
    ) -> VisibilityMetrics:
        sessions = await self.store.list_completed_sessions(brand_id, since, until)
        citations = await self.store.list_session_citations([s.id for s in sessions])
        return build_visibility_metrics(sessions, citations, brand_name)

    async def get_brand_visibility_score(
        self, brand_id: UUID, window_days: Optional[int] = None
    ) -> BrandVisibility:
        """
        Weighted visibility score for the trailing window.

        The trend compares against the window of the same length immediately
        before it.

        Raises:
            BrandNotFoundError: the brand does not exist
        """
        brand = await self.require_brand(brand_id)

        window = self._window(window_days)
        since = datetime.utcnow() - window
        previous_since = since - window

        metrics = await self._window_metrics(brand_id, brand.name, since)
        previous_metrics = await self._window_metrics(brand_id, brand.name, previous_since, since)

        breakdown = calculate_visibility_score(metrics)
        previous = calculate_visibility_score(previous_metrics)

        return BrandVisibility(
            metrics=metrics,
            breakdown=breakdown,
            previous=previous,
            trend=calculate_trend(breakdown.overall, previous.overall),
            interpretation=get_score_interpretation(breakdown.overall),
        )
