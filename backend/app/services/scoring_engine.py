"""
Visibility Scoring Engine
Weighted 0-100 visibility score with trend and projection helpers

Score Factors:
- Mention Frequency (40%): share of tracked queries that mention the brand
- Ranking Position (30%): where in the answer the brand first appears
- Sentiment (20%): positive / neutral / negative tone of brand mentions
- Citation Quality (10%): average relevance of brand citations

Every visibility number shown to users comes from calculate_visibility_score.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


SCORE_WEIGHTS = {
    "mention_frequency": 0.4,
    "position": 0.3,
    "sentiment": 0.2,
    "citation_quality": 0.1,
}

# Projections longer than this (about six months) are reported as unachievable
MAX_ACHIEVABLE_WEEKS = 26


@dataclass(frozen=True)
class SentimentDistribution:
    positive: int = 0
    neutral: int = 0
    negative: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.neutral + self.negative


@dataclass(frozen=True)
class VisibilityMetrics:
    """Aggregate tracking observations for one brand over a window"""
    total_queries: int
    total_mentions: int
    average_position: Optional[float]  # None when never mentioned
    sentiment_distribution: SentimentDistribution
    citation_quality: float  # average relevance, 0-1


@dataclass(frozen=True)
class ScoreBreakdown:
    overall: float
    mention_frequency: float
    position: float
    sentiment: float
    citation_quality: float


@dataclass(frozen=True)
class ScoreInterpretation:
    label: str
    description: str
    color: str  # green, yellow, red
    recommendation: str


@dataclass(frozen=True)
class Trend:
    value: float  # percent change, 1 decimal
    is_positive: bool
    label: str  # improving, declining, stable


@dataclass(frozen=True)
class TargetEstimate:
    weeks: float  # math.inf when the score is not improving
    achievable: bool
    message: str


def round_half_up(value: float, places: int = 1) -> float:
    """Round half away from zero (2.25 -> 2.3, -2.25 -> -2.3)"""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def calculate_mention_frequency_score(total_queries: int, total_mentions: int) -> float:
    """
    Piecewise-linear score for the mention rate.

    90%+ -> 100, 70-90% -> 80-100, 50-70% -> 60-80,
    30-50% -> 40-60, below 30% -> 0-40.
    """
    if total_queries <= 0:
        return 0.0

    mention_rate = total_mentions / total_queries

    if mention_rate >= 0.9:
        return 100.0
    if mention_rate >= 0.7:
        return 80 + (mention_rate - 0.7) * 100
    if mention_rate >= 0.5:
        return 60 + (mention_rate - 0.5) * 100
    if mention_rate >= 0.3:
        return 40 + (mention_rate - 0.3) * 100
    return max(0.0, mention_rate / 0.3 * 40)


def calculate_position_score(average_position: Optional[float]) -> float:
    """Step score for average position; lower positions score higher"""
    if average_position is None:
        return 0.0

    if average_position <= 1:
        return 100.0
    if average_position <= 2:
        return 90.0
    if average_position <= 3:
        return 80.0
    if average_position <= 4:
        return 65.0
    if average_position <= 5:
        return 50.0
    if average_position <= 10:
        return max(0.0, 40 - (average_position - 5) * 4)
    return max(0.0, 20 - (average_position - 10) * 2)


def calculate_sentiment_score(distribution: SentimentDistribution) -> float:
    """
    Positive mentions are worth 100, neutral 70 and negative -50.

    Rates are taken over the categorized mentions only.
    """
    total = distribution.total
    if total <= 0:
        return 0.0

    positive_rate = distribution.positive / total
    neutral_rate = distribution.neutral / total
    negative_rate = distribution.negative / total

    return _clamp(positive_rate * 100 + neutral_rate * 70 - negative_rate * 50)


def calculate_citation_quality_score(average_relevance: float) -> float:
    return _clamp(average_relevance * 100)


def calculate_visibility_score(metrics: VisibilityMetrics) -> ScoreBreakdown:
    """Weighted composite of the four sub-scores, all rounded to 1 decimal"""
    mention_frequency = calculate_mention_frequency_score(
        metrics.total_queries, metrics.total_mentions
    )
    position = calculate_position_score(metrics.average_position)
    sentiment = calculate_sentiment_score(metrics.sentiment_distribution)
    citation_quality = calculate_citation_quality_score(metrics.citation_quality)

    overall = (
        mention_frequency * SCORE_WEIGHTS["mention_frequency"]
        + position * SCORE_WEIGHTS["position"]
        + sentiment * SCORE_WEIGHTS["sentiment"]
        + citation_quality * SCORE_WEIGHTS["citation_quality"]
    )

    return ScoreBreakdown(
        overall=round_half_up(_clamp(overall)),
        mention_frequency=round_half_up(mention_frequency),
        position=round_half_up(position),
        sentiment=round_half_up(sentiment),
        citation_quality=round_half_up(citation_quality),
    )


_INTERPRETATIONS = (
    (70, ScoreInterpretation(
        label="Excellent",
        description="Your brand has strong AI search visibility",
        color="green",
        recommendation="Maintain your current strategy and continue tracking performance.",
    )),
    (50, ScoreInterpretation(
        label="Good",
        description="Your brand is performing well in AI search",
        color="yellow",
        recommendation="Focus on improving ranking positions and increasing positive citations.",
    )),
    (30, ScoreInterpretation(
        label="Fair",
        description="Your brand has moderate AI search presence",
        color="yellow",
        recommendation="Optimize prompts, increase content quality, and build authoritative citations.",
    )),
)

_NEEDS_IMPROVEMENT = ScoreInterpretation(
    label="Needs Improvement",
    description="Your brand needs significant optimization",
    color="red",
    recommendation=(
        "Apply GEO techniques: add statistics, quotations, and authoritative "
        "sources to your content."
    ),
)


def get_score_interpretation(score: float) -> ScoreInterpretation:
    for threshold, interpretation in _INTERPRETATIONS:
        if score >= threshold:
            return interpretation
    return _NEEDS_IMPROVEMENT


def calculate_trend(current_score: float, previous_score: float) -> Trend:
    """Percent change between two scores; 0 when there is no previous score"""
    change = current_score - previous_score
    percent_change = (change / previous_score) * 100 if previous_score > 0 else 0.0

    if change > 0:
        label = "improving"
    elif change < 0:
        label = "declining"
    else:
        label = "stable"

    return Trend(
        value=round_half_up(percent_change),
        is_positive=change > 0,
        label=label,
    )


def estimate_time_to_target(
    current_score: float,
    target_score: float,
    weekly_trend: float,
) -> TargetEstimate:
    """
    Weeks needed to reach target_score at weekly_trend points per week.

    The week count is reported even when it exceeds the achievable horizon.
    """
    if current_score >= target_score:
        return TargetEstimate(weeks=0, achievable=True, message="Target already achieved!")

    if weekly_trend <= 0:
        return TargetEstimate(
            weeks=math.inf,
            achievable=False,
            message="Score is not improving. Optimize your strategy to see progress.",
        )

    weeks = math.ceil((target_score - current_score) / weekly_trend)

    if weeks > MAX_ACHIEVABLE_WEEKS:
        return TargetEstimate(
            weeks=weeks,
            achievable=False,
            message=f"At current pace, it would take {weeks} weeks. Consider more aggressive optimization.",
        )

    return TargetEstimate(
        weeks=weeks,
        achievable=True,
        message=f"At current pace, you could reach {target_score:g} in approximately {weeks} weeks.",
    )
