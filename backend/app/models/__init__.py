"""
Database Models for the GEO tracker
"""

from .database import (
    Base,
    # Enums
    TrackingStatus,
    SentimentPolarity,
    # Models
    Brand,
    Prompt,
    TrackingSession,
    Citation,
    DiscoveredBrand,
)

__all__ = [
    "Base",
    # Enums
    "TrackingStatus",
    "SentimentPolarity",
    # Models
    "Brand",
    "Prompt",
    "TrackingSession",
    "Citation",
    "DiscoveredBrand",
]
