"""
GEO Tracker Database Models
SQLAlchemy ORM, portable across PostgreSQL and SQLite
"""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import uuid4

from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime,
    ForeignKey, Enum, JSON, Uuid, Index,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class TrackingStatus(str, PyEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SentimentPolarity(str, PyEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# ============================================================================
# BRANDS & PROMPTS
# ============================================================================

class Brand(Base):
    """A brand whose AI visibility is tracked"""
    __tablename__ = "brands"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid)

    name = Column(String(255), nullable=False)
    website_url = Column(String(500))
    industry = Column(String(100))
    description = Column(Text)

    # Alternative spellings, abbreviations, product names
    variations = Column(JSON, default=list)

    last_tracked_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    prompts = relationship("Prompt", back_populates="brand", cascade="all, delete-orphan")
    tracking_sessions = relationship("TrackingSession", back_populates="brand", cascade="all, delete-orphan")


class Prompt(Base):
    """A question asked to AI engines on the brand's behalf"""
    __tablename__ = "prompts"

    id = Column(Uuid, primary_key=True, default=uuid4)
    brand_id = Column(Uuid, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)

    prompt_text = Column(Text, nullable=False)
    category = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)

    last_tracked_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    brand = relationship("Brand", back_populates="prompts")

    __table_args__ = (
        Index('idx_prompt_brand_active', 'brand_id', 'is_active'),
    )


# ============================================================================
# TRACKING RUNS
# ============================================================================

class TrackingSession(Base):
    """One (brand, prompt, engine) tracking run"""
    __tablename__ = "tracking_sessions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    brand_id = Column(Uuid, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    prompt_id = Column(Uuid, ForeignKey("prompts.id", ondelete="SET NULL"))

    ai_engine = Column(String(50), nullable=False)
    status = Column(Enum(TrackingStatus), default=TrackingStatus.PENDING, nullable=False)

    # Raw model output, kept verbatim
    response_text = Column(Text)

    # Serialized CitationAnalysis
    citations = Column(JSON)

    mentioned = Column(Boolean, default=False, nullable=False)
    position = Column(Integer)

    # Counts only, or {"error": ...} on failure
    meta = Column("metadata", JSON, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime)

    brand = relationship("Brand", back_populates="tracking_sessions")
    citation_rows = relationship("Citation", back_populates="tracking_session", cascade="all, delete-orphan")
    discovered_brands = relationship("DiscoveredBrand", back_populates="tracking_session", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_session_brand_status', 'brand_id', 'status', 'created_at'),
    )


class Citation(Base):
    """One evidential unit extracted from a tracked response"""
    __tablename__ = "citations"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tracking_session_id = Column(Uuid, ForeignKey("tracking_sessions.id", ondelete="CASCADE"), nullable=False)
    brand_id = Column(Uuid, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)

    source_url = Column(Text)
    source_title = Column(String(500))
    source_domain = Column(String(255), index=True)

    citation_text = Column(Text, nullable=False)
    position = Column(Integer, nullable=False)
    context = Column(Text)

    is_brand_mentioned = Column(Boolean, default=False, nullable=False)
    brand_name = Column(String(255))
    sentiment = Column(Enum(SentimentPolarity))
    relevance_score = Column(Float)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tracking_session = relationship("TrackingSession", back_populates="citation_rows")


class DiscoveredBrand(Base):
    """Candidate competitor surfaced while scanning a response"""
    __tablename__ = "discovered_brands"

    id = Column(Uuid, primary_key=True, default=uuid4)
    tracking_session_id = Column(Uuid, ForeignKey("tracking_sessions.id", ondelete="CASCADE"), nullable=False)

    brand_name = Column(String(255), nullable=False)
    brand_domain = Column(String(255))
    mention_count = Column(Integer, default=1, nullable=False)
    first_position = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tracking_session = relationship("TrackingSession", back_populates="discovered_brands")
