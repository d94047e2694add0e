"""Deterministic desirability scoring for candidate posts.

Three sub-scores, each clamped to [0, 1], feed a weighted total:

- engagement: log-compressed (score + comments * 0.3) per hour of age
- text length: piecewise preference for 100-500 words
- content quality: paragraph/sentence structure minus caps and link spam
"""

from __future__ import annotations

import math
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from narrator.config.settings import SelectionConfig

from .types import CandidateItem, CandidateScore

_URL_PATTERN = re.compile(r"https?://\S+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_UPPERCASE = re.compile(r"[A-Z]")

MIN_USABLE_WORDS = 10
LINK_ONLY_RATIO = 0.8
SECONDARY_SIGNAL_WEIGHT = 0.3
MIN_AGE_HOURS = 0.1


@dataclass(frozen=True)
class ScoringWeights:
    engagement: float = 0.4
    text_length: float = 0.3
    quality: float = 0.3

    def __post_init__(self) -> None:
        total = self.engagement + self.text_length + self.quality
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Scoring weights must sum to 1, got {total:.4f}")


@dataclass(frozen=True)
class TextLengthBounds:
    min: int = 50
    ideal_min: int = 100
    ideal_max: int = 500
    max: int = 800

    def __post_init__(self) -> None:
        if not (0 < self.min < self.ideal_min <= self.ideal_max < self.max):
            raise ValueError(
                "Text length bounds must satisfy 0 < min < ideal_min <= ideal_max < max"
            )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def count_words(text: str) -> int:
    """Count whitespace-separated words."""

    return len(text.split()) if text else 0


def has_usable_text(item: CandidateItem) -> bool:
    """Return False for posts too short to narrate or whose body is just a link."""

    if count_words(item.full_text.strip()) < MIN_USABLE_WORDS:
        return False

    body = item.body or ""
    if body.strip().startswith("http"):
        url_length = sum(len(url) for url in _URL_PATTERN.findall(body))
        if url_length / len(body) > LINK_ONLY_RATIO:
            return False

    return True


def engagement_score(item: CandidateItem, now: float) -> float:
    age_hours = max((now - item.created_utc) / 3600, MIN_AGE_HOURS)
    raw = (item.primary_signal + item.secondary_signal * SECONDARY_SIGNAL_WEIGHT) / age_hours
    # Downvoted posts carry no engagement rather than a log domain error.
    raw = max(raw, 0.0)
    return _clamp(min(math.log10(raw + 1) / 3, 1.0))


def text_length_score(word_count: int, bounds: TextLengthBounds = TextLengthBounds()) -> float:
    if word_count <= 0:
        return 0.0
    if word_count < bounds.min:
        return (word_count / bounds.min) * 0.3
    if bounds.ideal_min <= word_count <= bounds.ideal_max:
        return 1.0
    if word_count < bounds.ideal_min:
        position = (word_count - bounds.min) / (bounds.ideal_min - bounds.min)
        return 0.3 + position * 0.7
    if word_count <= bounds.max:
        position = (word_count - bounds.ideal_max) / (bounds.max - bounds.ideal_max)
        return 1.0 - position * 0.5
    return 0.3


def content_quality_score(text: str) -> float:
    if not text or not text.strip():
        return 0.0

    score = 0.5

    paragraphs = [p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]
    if len(paragraphs) > 1:
        score += 0.2

    sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
    if len(sentences) > 2:
        score += 0.15

    caps_ratio = len(_UPPERCASE.findall(text)) / len(text)
    if caps_ratio > 0.3:
        score -= 0.2

    if len(_URL_PATTERN.findall(text)) > 2:
        score -= 0.15

    return _clamp(score)


class Scorer:
    """Compute a :class:`CandidateScore` for one candidate."""

    def __init__(
        self,
        *,
        weights: ScoringWeights = ScoringWeights(),
        bounds: TextLengthBounds = TextLengthBounds(),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._weights = weights
        self._bounds = bounds
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: SelectionConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "Scorer":
        return cls(
            weights=ScoringWeights(
                engagement=config.weight_engagement,
                text_length=config.weight_text_length,
                quality=config.weight_quality,
            ),
            bounds=TextLengthBounds(
                min=config.min_words,
                ideal_min=config.ideal_min_words,
                ideal_max=config.ideal_max_words,
                max=config.max_words,
            ),
            clock=clock,
        )

    def now(self) -> float:
        return self._clock()

    def score(self, item: CandidateItem, *, now: Optional[float] = None) -> CandidateScore:
        reference = self._clock() if now is None else now
        text = item.full_text
        words = count_words(text)

        engagement = engagement_score(item, reference)
        length = _clamp(text_length_score(words, self._bounds))
        quality = content_quality_score(text)
        total = _clamp(
            engagement * self._weights.engagement
            + length * self._weights.text_length
            + quality * self._weights.quality
        )

        return CandidateScore(
            item=item,
            engagement_score=engagement,
            text_length_score=length,
            content_quality_score=quality,
            total_score=total,
            word_count=words,
        )


__all__ = [
    "Scorer",
    "ScoringWeights",
    "TextLengthBounds",
    "content_quality_score",
    "count_words",
    "engagement_score",
    "has_usable_text",
    "text_length_score",
]
