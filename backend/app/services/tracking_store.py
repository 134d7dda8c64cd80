"""
Tracking Store
Typed persistence boundary used by the tracking service
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    Brand, Prompt, TrackingSession, Citation, DiscoveredBrand, TrackingStatus, SentimentPolarity
)
from app.schemas import (
    BrandRecord,
    PromptRecord,
    TrackingSessionRecord,
    TrackingSessionUpdate,
    CitationCreate,
    CitationRecord,
    DiscoveredBrandCreate,
)


class TrackingStore(ABC):
    """Row-level operations the tracker needs; each call is atomic on its own"""

    @abstractmethod
    async def get_brand(self, brand_id: UUID) -> Optional[BrandRecord]:
        pass

    @abstractmethod
    async def list_active_prompts(
        self, brand_id: UUID, prompt_ids: Optional[Sequence[UUID]] = None
    ) -> List[PromptRecord]:
        """Active prompts for a brand, oldest first, optionally limited to prompt_ids"""
        pass

    @abstractmethod
    async def create_session(
        self, brand_id: UUID, prompt_id: UUID, ai_engine: str, status: str
    ) -> TrackingSessionRecord:
        pass

    @abstractmethod
    async def update_session(self, session_id: UUID, changes: TrackingSessionUpdate) -> None:
        pass

    @abstractmethod
    async def add_citations(self, session_id: UUID, citations: Sequence[CitationCreate]) -> None:
        pass

    @abstractmethod
    async def add_discovered_brands(
        self, session_id: UUID, brands: Sequence[DiscoveredBrandCreate]
    ) -> None:
        pass

    @abstractmethod
    async def touch_prompt(self, prompt_id: UUID, tracked_at: datetime) -> None:
        pass

    @abstractmethod
    async def touch_brand(self, brand_id: UUID, tracked_at: datetime) -> None:
        pass

    @abstractmethod
    async def list_completed_sessions(
        self, brand_id: UUID, since: datetime, until: Optional[datetime] = None
    ) -> List[TrackingSessionRecord]:
        """Completed runs created in [since, until), newest first"""
        pass

    @abstractmethod
    async def list_session_citations(self, session_ids: Sequence[UUID]) -> List[CitationRecord]:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Discard a failed write so later operations can proceed"""
        pass


class SQLAlchemyTrackingStore(TrackingStore):
    """TrackingStore over an async SQLAlchemy session; commits per operation"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_brand(self, brand_id: UUID) -> Optional[BrandRecord]:
        result = await self.db.execute(select(Brand).where(Brand.id == brand_id))
        brand = result.scalar_one_or_none()
        return BrandRecord.model_validate(brand) if brand else None

    async def list_active_prompts(
        self, brand_id: UUID, prompt_ids: Optional[Sequence[UUID]] = None
    ) -> List[PromptRecord]:
        query = select(Prompt).where(Prompt.brand_id == brand_id, Prompt.is_active.is_(True))
        if prompt_ids:
            query = query.where(Prompt.id.in_(list(prompt_ids)))

        result = await self.db.execute(query.order_by(Prompt.created_at))
        return [PromptRecord.model_validate(p) for p in result.scalars().all()]

    async def create_session(
        self, brand_id: UUID, prompt_id: UUID, ai_engine: str, status: str
    ) -> TrackingSessionRecord:
        session = TrackingSession(
            brand_id=brand_id,
            prompt_id=prompt_id,
            ai_engine=ai_engine,
            status=TrackingStatus(status),
            meta={},
        )
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)
        return TrackingSessionRecord.model_validate(session)

    async def update_session(self, session_id: UUID, changes: TrackingSessionUpdate) -> None:
        values = {
            "status": TrackingStatus(changes.status),
            "meta": changes.metadata,
        }
        if changes.response_text is not None:
            values["response_text"] = changes.response_text
        if changes.citations is not None:
            values["citations"] = changes.citations
        if changes.mentioned is not None:
            values["mentioned"] = changes.mentioned
        if changes.position is not None:
            values["position"] = changes.position
        if values["status"] in (TrackingStatus.COMPLETED, TrackingStatus.FAILED):
            values["completed_at"] = datetime.utcnow()

        await self.db.execute(
            update(TrackingSession)
            .where(TrackingSession.id == session_id)
            .values({getattr(TrackingSession, key): value for key, value in values.items()})
        )
        await self.db.commit()

    async def add_citations(self, session_id: UUID, citations: Sequence[CitationCreate]) -> None:
        if not citations:
            return
        for citation in citations:
            data = citation.model_dump()
            if data["sentiment"] is not None:
                data["sentiment"] = SentimentPolarity(data["sentiment"])
            self.db.add(Citation(tracking_session_id=session_id, **data))
        await self.db.commit()

    async def add_discovered_brands(
        self, session_id: UUID, brands: Sequence[DiscoveredBrandCreate]
    ) -> None:
        if not brands:
            return
        for brand in brands:
            self.db.add(DiscoveredBrand(tracking_session_id=session_id, **brand.model_dump()))
        await self.db.commit()

    async def touch_prompt(self, prompt_id: UUID, tracked_at: datetime) -> None:
        await self.db.execute(
            update(Prompt).where(Prompt.id == prompt_id).values(last_tracked_at=tracked_at)
        )
        await self.db.commit()

    async def touch_brand(self, brand_id: UUID, tracked_at: datetime) -> None:
        await self.db.execute(
            update(Brand).where(Brand.id == brand_id).values(last_tracked_at=tracked_at)
        )
        await self.db.commit()

    async def list_completed_sessions(
        self, brand_id: UUID, since: datetime, until: Optional[datetime] = None
    ) -> List[TrackingSessionRecord]:
        query = select(TrackingSession).where(
            TrackingSession.brand_id == brand_id,
            TrackingSession.status == TrackingStatus.COMPLETED,
            TrackingSession.created_at >= since,
        )
        if until is not None:
            query = query.where(TrackingSession.created_at < until)

        result = await self.db.execute(query.order_by(TrackingSession.created_at.desc()))
        return [TrackingSessionRecord.model_validate(s) for s in result.scalars().all()]

    async def list_session_citations(self, session_ids: Sequence[UUID]) -> List[CitationRecord]:
        if not session_ids:
            return []
        result = await self.db.execute(
            select(Citation)
            .where(Citation.tracking_session_id.in_(list(session_ids)))
            .order_by(Citation.tracking_session_id, Citation.position)
        )
        return [CitationRecord.model_validate(c) for c in result.scalars().all()]

    async def rollback(self) -> None:
        await self.db.rollback()
