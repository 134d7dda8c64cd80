"""Tests for the SQLAlchemy tracking store."""
from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.models import (
    Brand, Citation, DiscoveredBrand, Prompt, SentimentPolarity, TrackingSession, TrackingStatus,
)
from app.schemas import CitationCreate, DiscoveredBrandCreate, TrackingSessionUpdate
from app.services import SQLAlchemyTrackingStore


async def _session_row(db, session_id) -> TrackingSession:
    result = await db.execute(select(TrackingSession).where(TrackingSession.id == session_id))
    return result.scalar_one()


class TestBrandsAndPrompts:
    @pytest.mark.asyncio
    async def test_get_brand(self, db_session, brand):
        store = SQLAlchemyTrackingStore(db_session)

        record = await store.get_brand(brand.id)

        assert record.id == brand.id
        assert record.name_variants == ["Hope Hospital", "Hope Multispeciality"]

    @pytest.mark.asyncio
    async def test_get_brand_missing(self, db_session):
        store = SQLAlchemyTrackingStore(db_session)
        assert await store.get_brand(uuid4()) is None

    @pytest.mark.asyncio
    async def test_brand_without_variations(self, db_session):
        row = Brand(name="Solo", variations=None)
        db_session.add(row)
        await db_session.commit()

        record = await SQLAlchemyTrackingStore(db_session).get_brand(row.id)
        assert record.name_variants == ["Solo"]

    @pytest.mark.asyncio
    async def test_active_prompts_oldest_first(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)

        records = await store.list_active_prompts(brand.id)

        assert [r.id for r in records] == [p.id for p in prompts]
        assert all(r.is_active for r in records)

    @pytest.mark.asyncio
    async def test_active_prompts_filtered(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)

        records = await store.list_active_prompts(brand.id, [prompts[2].id, prompts[0].id])

        assert [r.id for r in records] == [prompts[0].id, prompts[2].id]

    @pytest.mark.asyncio
    async def test_touch(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)
        tracked_at = datetime(2026, 1, 15, 12, 0)

        await store.touch_prompt(prompts[0].id, tracked_at)
        await store.touch_brand(brand.id, tracked_at)

        prompt = (await db_session.execute(select(Prompt).where(Prompt.id == prompts[0].id))).scalar_one()
        assert prompt.last_tracked_at == tracked_at
        assert (await store.get_brand(brand.id)).last_tracked_at == tracked_at


class TestSessions:
    @pytest.mark.asyncio
    async def test_create_session(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)

        record = await store.create_session(brand.id, prompts[0].id, "chatgpt", "running")

        assert record.status == TrackingStatus.RUNNING
        assert record.ai_engine == "chatgpt"
        assert record.metadata == {}
        assert record.completed_at is None

    @pytest.mark.asyncio
    async def test_complete_session(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)
        record = await store.create_session(brand.id, prompts[0].id, "chatgpt", "running")

        await store.update_session(record.id, TrackingSessionUpdate(
            status="completed",
            response_text="Hope Hospital is great.",
            citations={"summary": "Found 1 citations"},
            mentioned=True,
            position=1,
            metadata={"total_citations": 1},
        ))

        row = await _session_row(db_session, record.id)
        assert row.status == TrackingStatus.COMPLETED
        assert row.response_text == "Hope Hospital is great."
        assert row.citations == {"summary": "Found 1 citations"}
        assert row.mentioned is True
        assert row.position == 1
        assert row.meta == {"total_citations": 1}
        assert row.completed_at is not None

    @pytest.mark.asyncio
    async def test_fail_session_keeps_other_fields(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)
        record = await store.create_session(brand.id, prompts[0].id, "chatgpt", "running")

        await store.update_session(record.id, TrackingSessionUpdate(
            status="failed", metadata={"error": "boom"},
        ))

        row = await _session_row(db_session, record.id)
        assert row.status == TrackingStatus.FAILED
        assert row.meta == {"error": "boom"}
        assert row.response_text is None
        assert row.mentioned is False
        assert row.completed_at is not None

    @pytest.mark.asyncio
    async def test_list_completed_sessions_window(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)
        now = datetime.utcnow()
        rows = [
            TrackingSession(brand_id=brand.id, ai_engine="chatgpt", status=TrackingStatus.COMPLETED,
                            created_at=now - timedelta(days=1), mentioned=True, position=1),
            TrackingSession(brand_id=brand.id, ai_engine="chatgpt", status=TrackingStatus.COMPLETED,
                            created_at=now - timedelta(hours=1)),
            TrackingSession(brand_id=brand.id, ai_engine="chatgpt", status=TrackingStatus.FAILED,
                            created_at=now - timedelta(hours=2)),
            TrackingSession(brand_id=brand.id, ai_engine="chatgpt", status=TrackingStatus.COMPLETED,
                            created_at=now - timedelta(days=10)),
        ]
        db_session.add_all(rows)
        await db_session.commit()

        recent = await store.list_completed_sessions(brand.id, now - timedelta(days=7))
        assert [r.id for r in recent] == [rows[1].id, rows[0].id]

        older = await store.list_completed_sessions(
            brand.id, now - timedelta(days=14), now - timedelta(days=7)
        )
        assert [r.id for r in older] == [rows[3].id]


class TestCitationsAndDiscoveries:
    @pytest.mark.asyncio
    async def test_citations_round_trip(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)
        record = await store.create_session(brand.id, prompts[0].id, "chatgpt", "running")

        await store.add_citations(record.id, [
            CitationCreate(
                brand_id=brand.id, citation_text="Hope Hospital is great.", position=1,
                context="Hope Hospital is great.", is_brand_mentioned=True,
                brand_name="Hope Hospital", sentiment="positive", relevance_score=0.9,
            ),
            CitationCreate(
                brand_id=brand.id, citation_text="see https://example.org", position=2,
                source_url="https://example.org", source_domain="example.org", relevance_score=0.5,
            ),
        ])

        citations = await store.list_session_citations([record.id])

        assert [c.position for c in citations] == [1, 2]
        assert citations[0].tracking_session_id == record.id
        assert SentimentPolarity(citations[0].sentiment) == SentimentPolarity.POSITIVE
        assert citations[1].sentiment is None
        assert citations[1].source_domain == "example.org"

    @pytest.mark.asyncio
    async def test_no_citations(self, db_session):
        store = SQLAlchemyTrackingStore(db_session)
        await store.add_citations(uuid4(), [])
        assert await store.list_session_citations([]) == []

    @pytest.mark.asyncio
    async def test_discovered_brands(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)
        record = await store.create_session(brand.id, prompts[0].id, "chatgpt", "running")

        await store.add_discovered_brands(record.id, [
            DiscoveredBrandCreate(brand_name="Ruby Hall Clinic", mention_count=2, first_position=1),
        ])

        rows = (await db_session.execute(select(DiscoveredBrand))).scalars().all()
        assert len(rows) == 1
        assert rows[0].tracking_session_id == record.id
        assert rows[0].mention_count == 2

    @pytest.mark.asyncio
    async def test_long_names_fit_columns(self, db_session, brand, prompts):
        store = SQLAlchemyTrackingStore(db_session)
        record = await store.create_session(brand.id, prompts[0].id, "chatgpt", "running")
        heading = "Alpha Bravo Charlie Delta Echo Foxtrot " * 12

        await store.add_discovered_brands(record.id, [
            DiscoveredBrandCreate(brand_name=heading, brand_domain="x" * 300, first_position=1),
        ])
        await store.add_citations(record.id, [
            CitationCreate(
                brand_id=brand.id,
                citation_text=heading,
                position=1,
                source_title="t" * 600,
                source_domain="d" * 300,
                brand_name=heading,
            ),
        ])

        discovered = (await db_session.execute(select(DiscoveredBrand))).scalar_one()
        assert len(discovered.brand_name) == 255
        assert discovered.brand_name == heading[:255]
        assert len(discovered.brand_domain) == 255

        citation = (await db_session.execute(select(Citation))).scalar_one()
        assert len(citation.source_title) == 500
        assert len(citation.source_domain) == 255
        assert len(citation.brand_name) == 255
        assert citation.citation_text == heading


class TestRollback:
    @pytest.mark.asyncio
    async def test_store_usable_after_failed_insert(self, db_session, brand, prompts):
        brand_id, prompt_id = brand.id, prompts[0].id
        store = SQLAlchemyTrackingStore(db_session)
        record = await store.create_session(brand_id, prompt_id, "chatgpt", "running")

        db_session.add(DiscoveredBrand(tracking_session_id=record.id, brand_name=None, first_position=1))
        with pytest.raises(IntegrityError):
            await db_session.commit()

        await store.rollback()
        await store.update_session(record.id, TrackingSessionUpdate(status="failed", metadata={"error": "x"}))
        second = await store.create_session(brand_id, prompt_id, "chatgpt", "running")

        assert (await _session_row(db_session, record.id)).status == TrackingStatus.FAILED
        assert (await _session_row(db_session, second.id)).status == TrackingStatus.RUNNING
