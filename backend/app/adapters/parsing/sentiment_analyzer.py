"""
Sentiment Analyzer
Lexicon-based polarity detection for response sections
"""

from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

from app.models import SentimentPolarity


class SentimentClassifier(Protocol):
    """Anything that can label a piece of text positive, neutral or negative."""

    def classify(self, text: str) -> SentimentPolarity:
        ...


@dataclass
class SentimentResult:
    """Result of sentiment analysis"""
    polarity: SentimentPolarity
    positive_count: int
    negative_count: int
    matched_indicators: List[str] = field(default_factory=list)


class KeywordSentimentClassifier:
    """
    Counts lexicon entries contained in the text.

    Each entry counts at most once, matched case-insensitively as a plain
    substring. More positive than negative entries means positive, the reverse
    means negative, and a tie (including zero hits) is neutral.
    """

    POSITIVE_WORDS = (
        "excellent", "great", "best", "top", "leading", "premier",
        "outstanding", "exceptional", "highly rated", "recommended",
        "trusted", "quality", "professional", "reliable",
    )

    NEGATIVE_WORDS = (
        "poor", "bad", "worst", "avoid", "disappointing", "inferior",
        "limited", "lacking", "unreliable", "problematic",
    )

    def __init__(
        self,
        positive_words: Sequence[str] = POSITIVE_WORDS,
        negative_words: Sequence[str] = NEGATIVE_WORDS,
    ):
        self.positive_words = [w.lower() for w in positive_words]
        self.negative_words = [w.lower() for w in negative_words]

    def analyze(self, text: str) -> SentimentResult:
        """
        Analyze sentiment of text.

        Args:
            text: Text to analyze

        Returns:
            SentimentResult with polarity and the indicators that matched
        """
        text_lower = (text or "").lower()

        positive_hits = [w for w in self.positive_words if w in text_lower]
        negative_hits = [w for w in self.negative_words if w in text_lower]

        if len(positive_hits) > len(negative_hits):
            polarity = SentimentPolarity.POSITIVE
        elif len(negative_hits) > len(positive_hits):
            polarity = SentimentPolarity.NEGATIVE
        else:
            polarity = SentimentPolarity.NEUTRAL

        return SentimentResult(
            polarity=polarity,
            positive_count=len(positive_hits),
            negative_count=len(negative_hits),
            matched_indicators=positive_hits + negative_hits,
        )

    def classify(self, text: str) -> SentimentPolarity:
        return self.analyze(text).polarity
