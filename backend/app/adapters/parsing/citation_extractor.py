"""
Citation Extractor
Turns a raw AI answer into citations, brand mentions and discovered brands
"""

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from app.models import SentimentPolarity
from .brand_matcher import BrandMatcher, BrandNameCandidateDetector, CapitalizedPhraseDetector
from .sentiment_analyzer import KeywordSentimentClassifier, SentimentClassifier


@dataclass(frozen=True)
class ExtractedCitation:
    """An evidential unit found in an AI response"""
    citation_text: str           # Truncated section text
    position: int                # 1-indexed section the citation came from
    context: str                 # Full section text
    is_brand_mentioned: bool
    source_url: Optional[str] = None
    source_domain: Optional[str] = None
    source_title: Optional[str] = None
    brand_name: Optional[str] = None
    sentiment: Optional[SentimentPolarity] = None
    relevance_score: Optional[float] = None


@dataclass
class DiscoveredBrand:
    """A candidate brand seen while scanning the response"""
    brand_name: str
    position: int                # Section of first occurrence
    mention_count: int = 1
    brand_domain: Optional[str] = None


@dataclass
class CitationAnalysis:
    """Everything extracted from one response"""
    citations: List[ExtractedCitation]
    discovered_brands: Dict[str, DiscoveredBrand]
    target_brand_mentioned: bool
    target_brand_position: Optional[int]
    total_brands_found: int
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe representation for storage"""
        return {
            "citations": [
                {**asdict(c), "sentiment": c.sentiment.value if c.sentiment else None}
                for c in self.citations
            ],
            "discovered_brands": [asdict(b) for b in self.discovered_brands.values()],
            "target_brand_mentioned": self.target_brand_mentioned,
            "target_brand_position": self.target_brand_position,
            "total_brands_found": self.total_brands_found,
            "summary": self.summary,
        }


SECTION_SPLIT = re.compile(r'\n\s*\n')
URL_PATTERN = re.compile(r'https?://\S+')
TRAILING_PUNCTUATION = re.compile(r'[.,;!?)]+$')


def split_sections(text: str) -> List[str]:
    """Blank-line separated sections, empty ones dropped"""
    return [s for s in SECTION_SPLIT.split(text or "") if s.strip()]


def extract_urls(text: str) -> List[str]:
    """http(s) URLs in text with trailing punctuation removed"""
    return [TRAILING_PUNCTUATION.sub('', m.group()) for m in URL_PATTERN.finditer(text)]


def extract_domain(url: str) -> Optional[str]:
    """Hostname without a leading www., or None if the URL does not parse"""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname or None


class CitationExtractor:
    """
    Section-by-section analysis of an AI answer.

    The answer is split on blank lines. Each section is checked for the
    tracked brand, scanned for candidate brand names and URLs, and given a
    sentiment label. Sections are numbered from 1 and that number is the
    position reported for everything found in it.
    """

    # Citation text limits (characters)
    MENTION_TEXT_LIMIT = 500
    URL_TEXT_LIMIT = 200

    # Relevance assigned at extraction time
    MENTION_RELEVANCE = 0.9
    BRAND_URL_RELEVANCE = 0.95
    GENERIC_URL_RELEVANCE = 0.5
    FALLBACK_RELEVANCE = 0.8

    def __init__(
        self,
        candidate_detector: Optional[BrandNameCandidateDetector] = None,
        sentiment_classifier: Optional[SentimentClassifier] = None,
    ):
        self.candidate_detector = candidate_detector or CapitalizedPhraseDetector()
        self.sentiment_classifier = sentiment_classifier or KeywordSentimentClassifier()

    def mention_citation(
        self, section: str, position: int, brand_name: Optional[str]
    ) -> Optional[ExtractedCitation]:
        """Citation for a section naming the tracked brand; None records no quote"""
        return ExtractedCitation(
            citation_text=section[:self.MENTION_TEXT_LIMIT],
            position=position,
            context=section,
            is_brand_mentioned=True,
            brand_name=brand_name,
            sentiment=self.sentiment_classifier.classify(section),
            relevance_score=self.MENTION_RELEVANCE,
        )

    def extract(self, response_text: str, target_brand_names: Sequence[str]) -> CitationAnalysis:
        """
        Extract citations and brand information from a response.

        Args:
            response_text: Raw model output
            target_brand_names: Name variants of the tracked brand

        Returns:
            CitationAnalysis; malformed or empty text yields an empty analysis
        """
        matcher = BrandMatcher(target_brand_names)
        citations: List[ExtractedCitation] = []
        discovered: Dict[str, DiscoveredBrand] = {}
        target_brand_mentioned = False
        target_brand_position: Optional[int] = None

        for index, section in enumerate(split_sections(response_text)):
            position = index + 1
            match = matcher.find(section)

            if match.found:
                target_brand_mentioned = True
                if target_brand_position is None:
                    target_brand_position = position

                citation = self.mention_citation(section, position, match.matched_name)
                if citation is not None:
                    citations.append(citation)

            for brand_name in self.candidate_detector.detect(section):
                existing = discovered.get(brand_name)
                if existing is None:
                    discovered[brand_name] = DiscoveredBrand(brand_name=brand_name, position=position)
                else:
                    existing.mention_count += 1

            for url in extract_urls(section):
                citations.append(ExtractedCitation(
                    citation_text=section[:self.URL_TEXT_LIMIT],
                    position=position,
                    context=section,
                    is_brand_mentioned=match.found,
                    source_url=url,
                    source_domain=extract_domain(url),
                    brand_name=match.matched_name,
                    relevance_score=(
                        self.BRAND_URL_RELEVANCE if match.found else self.GENERIC_URL_RELEVANCE
                    ),
                ))

        # A "mentioned" verdict always carries at least one evidence record
        if target_brand_mentioned and not citations:
            citations.append(ExtractedCitation(
                citation_text=response_text[:self.MENTION_TEXT_LIMIT],
                position=1,
                context=response_text,
                is_brand_mentioned=True,
                brand_name=matcher.find(response_text).matched_name,
                sentiment=self.sentiment_classifier.classify(response_text),
                relevance_score=self.FALLBACK_RELEVANCE,
            ))

        summary = (
            f"Found {len(citations)} citations, "
            f"{'including' if target_brand_mentioned else 'not including'} target brand. "
            f"Discovered {len(discovered)} other brands."
        )

        return CitationAnalysis(
            citations=citations,
            discovered_brands=discovered,
            target_brand_mentioned=target_brand_mentioned,
            target_brand_position=target_brand_position,
            total_brands_found=len(discovered),
            summary=summary,
        )


_default_extractor = CitationExtractor()


def extract_citations(response_text: str, target_brand_names: Sequence[str]) -> CitationAnalysis:
    """Extract with the default heuristics"""
    return _default_extractor.extract(response_text, target_brand_names)


def calculate_relevance_score(citation: ExtractedCitation, brand_name: str) -> float:
    """
    Re-score a citation from scratch.

    Base 0.5, +0.3 for a brand mention, up to +0.2 for early positions
    (0.02 less per position, nothing from position 10 on), +/-0.2 for
    positive/negative sentiment and +0.3 when the source domain contains the
    brand name. Clamped to [0, 1].
    """
    score = 0.5

    if citation.is_brand_mentioned:
        score += 0.3

    if citation.position:
        score += max(0.0, 0.2 - citation.position * 0.02)

    if citation.sentiment == SentimentPolarity.POSITIVE:
        score += 0.2
    elif citation.sentiment == SentimentPolarity.NEGATIVE:
        score -= 0.2

    if citation.source_domain and brand_name:
        if brand_name.lower() in citation.source_domain:
            score += 0.3

    return max(0.0, min(1.0, score))
