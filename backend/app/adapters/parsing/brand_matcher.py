"""
Brand Matching
Target-brand mention detection and competitor candidate discovery
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence


@dataclass(frozen=True)
class BrandMatch:
    """Outcome of looking for the tracked brand in a piece of text"""
    found: bool
    matched_name: Optional[str] = None


class BrandMatcher:
    """
    Case-insensitive containment test against the tracked brand's name variants.

    Variants are tried in the order given and the first hit wins. Matching is
    plain substring containment, so a short variant also matches inside longer
    words ("Art" matches "Smart"). Whitespace is ignored on both sides, so
    "Hope Hospital" also matches "HopeHospital".
    """

    WHITESPACE = re.compile(r'\s+')

    def __init__(self, brand_names: Sequence[str]):
        self.brand_names = [name for name in brand_names if name and name.strip()]
        self._compact = [(name, self._compact_lower(name)) for name in self.brand_names]

    @classmethod
    def _compact_lower(cls, text: str) -> str:
        return cls.WHITESPACE.sub('', text).lower()

    def find(self, text: str) -> BrandMatch:
        text_compact = self._compact_lower(text or "")
        for name, compact in self._compact:
            if compact in text_compact:
                return BrandMatch(found=True, matched_name=name)
        return BrandMatch(found=False)


class BrandNameCandidateDetector(Protocol):
    """Finds strings in a section that might be brand names."""

    def detect(self, text: str) -> List[str]:
        ...


class CapitalizedPhraseDetector:
    """
    Proper-noun heuristic: runs of capitalized words are brand candidates.

    Sentence-initial words, people and places also qualify; callers treat the
    output as candidates only.
    """

    PATTERN = re.compile(r'\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b')

    STOP_WORDS = frozenset([
        "The", "A", "An", "In", "For", "To",
        "This", "That", "These", "Those", "It",
        "Is", "Are", "Was", "Were", "Be", "Been", "Being",
        "Have", "Has", "Had", "Do", "Does", "Did",
        "Will", "Would", "Could", "Should", "May", "Might", "Must", "Can",
    ])

    MIN_LENGTH = 3

    def __init__(self, stop_words: Optional[Sequence[str]] = None):
        self.stop_words = frozenset(stop_words) if stop_words is not None else self.STOP_WORDS

    def detect(self, text: str) -> List[str]:
        """Unique candidates in order of first appearance"""
        seen = {}
        for match in self.PATTERN.finditer(text or ""):
            candidate = match.group()
            if candidate in self.stop_words or len(candidate) < self.MIN_LENGTH:
                continue
            seen.setdefault(candidate, None)
        return list(seen)
