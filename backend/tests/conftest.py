"""Shared fixtures: in-memory async database, seeded brand, scripted LLM adapter."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Union

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.llm import BaseLLMAdapter, LLMConfig, LLMProviderType, LLMResponse, LLMUsage
from app.config import Settings
from app.models import Base, Brand, Prompt

PROMPT_TEXTS = [
    "What are the best hospitals in Pune?",
    "Which hospital in Pune has the best cardiac care?",
    "Where can I get a health checkup in Pune?",
]


class ScriptedLLMAdapter(BaseLLMAdapter):
    """Returns queued answers in order; queued exceptions are raised instead."""

    def __init__(self, outcomes: Sequence[Union[str, Exception]]):
        super().__init__(api_key="test-key")
        self.outcomes = list(outcomes)
        self.prompts: List[str] = []
        self.configs: List[Optional[LLMConfig]] = []

    @property
    def provider(self) -> LLMProviderType:
        return LLMProviderType.OPENAI

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    async def execute(self, prompt, config=None, system_prompt=None) -> LLMResponse:
        self.prompts.append(prompt)
        self.configs.append(config)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return LLMResponse(
            content=outcome,
            raw_response={},
            provider=self.provider,
            model=self.default_model,
            finish_reason="stop",
            usage=LLMUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
            estimated_cost_usd=0.0001,
        )

    def estimate_tokens(self, text: str) -> int:
        return len(text.split())

    def estimate_cost(self, input_tokens: int, output_tokens: int, model=None) -> float:
        return 0.0


@pytest.fixture()
def settings() -> Settings:
    return Settings(TRACKING_REQUEST_DELAY=0, OPENAI_API_KEY="test-key")


@pytest.fixture()
def scripted_llm():
    """Factory for ScriptedLLMAdapter instances."""
    return ScriptedLLMAdapter


@pytest_asyncio.fixture()
async def db_session():
    """Async session over a fresh in-memory SQLite database.

    StaticPool keeps every checkout on the same connection, so the schema
    created here is the one the session sees.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture()
async def brand(db_session) -> Brand:
    brand = Brand(
        name="Hope Hospital",
        website_url="https://hopehospital.com",
        industry="Healthcare",
        variations=["Hope Multispeciality"],
    )
    db_session.add(brand)
    await db_session.commit()
    await db_session.refresh(brand)
    return brand


@pytest_asyncio.fixture()
async def prompts(db_session, brand) -> List[Prompt]:
    """Three active prompts with increasing creation times, plus one inactive."""
    base = datetime.utcnow() - timedelta(minutes=10)
    rows = [
        Prompt(brand_id=brand.id, prompt_text=text, created_at=base + timedelta(seconds=i))
        for i, text in enumerate(PROMPT_TEXTS)
    ]
    rows.append(Prompt(
        brand_id=brand.id,
        prompt_text="Retired question",
        is_active=False,
        created_at=base + timedelta(seconds=10),
    ))
    db_session.add_all(rows)
    await db_session.commit()
    return rows[:3]
