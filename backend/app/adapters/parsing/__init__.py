"""
Response Parsing Adapters
"""

from .brand_matcher import (
    BrandMatch,
    BrandMatcher,
    BrandNameCandidateDetector,
    CapitalizedPhraseDetector,
)
from .citation_extractor import (
    CitationAnalysis,
    CitationExtractor,
    DiscoveredBrand,
    ExtractedCitation,
    calculate_relevance_score,
    extract_citations,
)
from .sentiment_analyzer import KeywordSentimentClassifier, SentimentClassifier, SentimentResult

__all__ = [
    "BrandMatch",
    "BrandMatcher",
    "BrandNameCandidateDetector",
    "CapitalizedPhraseDetector",
    "CitationAnalysis",
    "CitationExtractor",
    "DiscoveredBrand",
    "ExtractedCitation",
    "calculate_relevance_score",
    "extract_citations",
    "KeywordSentimentClassifier",
    "SentimentClassifier",
    "SentimentResult",
]
