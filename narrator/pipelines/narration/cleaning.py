"""Narration text cleaning stage.

Turns a raw post (title + Reddit-flavoured markdown body) into plain text
that reads naturally when spoken, capped to the configured narration length.
"""

from __future__ import annotations

import math
import re

from .types import CandidateItem, FormattedText

_URL = re.compile(r"https?://(?:www\.)?(\S+\.\S+)")
_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC = re.compile(r"\*([^*]+)\*")
_STRIKE = re.compile(r"~~([^~]+)~~")
_SUPERSCRIPT = re.compile(r"\^(\S+)")
_CODE = re.compile(r"`([^`]+)`")
_UNORDERED_ITEM = re.compile(r"^\s*[-*+]\s+", re.MULTILINE)
_ORDERED_ITEM = re.compile(r"^\s*\d+\.\s+", re.MULTILINE)
_QUOTE = re.compile(r"^>\s+", re.MULTILINE)
_WHITESPACE = re.compile(r"\s+")
_UNSPOKEN = re.compile(r"[#|]")
_PARAGRAPH_BREAK = re.compile(r"\n\n+")
_SENTENCE_GAP = re.compile(r"([.!?])\s+")


def clean_markdown(text: str) -> str:
    """Strip markdown and replace links with their bare domain."""

    cleaned = _URL.sub(lambda match: match.group(1).split("/")[0], text)
    cleaned = _BOLD.sub(r"\1", cleaned)
    cleaned = _ITALIC.sub(r"\1", cleaned)
    cleaned = _STRIKE.sub(r"\1", cleaned)
    cleaned = _SUPERSCRIPT.sub(r"\1", cleaned)
    cleaned = _CODE.sub(r"\1", cleaned)
    cleaned = _UNORDERED_ITEM.sub("", cleaned)
    cleaned = _ORDERED_ITEM.sub("", cleaned)
    cleaned = _QUOTE.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    cleaned = _UNSPOKEN.sub("", cleaned)
    return cleaned.strip()


def estimate_duration(word_count: int, words_per_minute: int = 150) -> int:
    """Seconds needed to read ``word_count`` words aloud."""

    return math.ceil(word_count / words_per_minute * 60)


def truncate_to_words(text: str, max_words: int) -> str:
    """Cut ``text`` to ``max_words``, preferring a late sentence boundary."""

    words = text.split()
    if len(words) <= max_words:
        return text

    truncated = " ".join(words[:max_words])
    last_sentence_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_sentence_end > len(truncated) * 0.7:
        return truncated[: last_sentence_end + 1]
    return truncated + "..."


def add_pauses(text: str) -> str:
    formatted = _PARAGRAPH_BREAK.sub(".\n\n", text)
    return _SENTENCE_GAP.sub(r"\1 ", formatted)


def raw_text(item: CandidateItem) -> str:
    """Fallback narration text when cleaning is unavailable."""

    return f"{item.title}. {item.body}" if item.body else item.title


class TextCleaner:
    """Format candidates for narration within a maximum spoken duration."""

    def __init__(self, *, words_per_minute: int = 150, max_duration_seconds: int = 90) -> None:
        self._wpm = words_per_minute
        self._max_duration = max_duration_seconds

    @property
    def words_per_minute(self) -> int:
        return self._wpm

    @property
    def max_words(self) -> int:
        return math.floor(self._max_duration / 60 * self._wpm)

    def format(self, item: CandidateItem) -> FormattedText:
        title = clean_markdown(item.title)
        body = clean_markdown(item.body) if item.body else ""
        combined = f"{title}. {body}" if body else title

        word_count = len(combined.split())
        duration = estimate_duration(word_count, self._wpm)
        if duration > self._max_duration:
            combined = truncate_to_words(combined, self.max_words)
            word_count = len(combined.split())
            duration = estimate_duration(word_count, self._wpm)

        return FormattedText(
            text=add_pauses(combined),
            word_count=word_count,
            estimated_duration=duration,
        )


__all__ = [
    "TextCleaner",
    "add_pauses",
    "clean_markdown",
    "estimate_duration",
    "raw_text",
    "truncate_to_words",
]
