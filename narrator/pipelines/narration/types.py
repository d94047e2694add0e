"""Typed containers shared across the narration pipeline.

These dataclasses live in their own module so the other stages
(`scoring`, `selection`, `failover`, `orchestrator`) can import them without
creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from narrator.domain.models import AudioFile, SelectedItem


@dataclass(frozen=True)
class CandidateItem:
    """A text post fetched from the content source; immutable once fetched."""

    source_id: str
    collection: str
    title: str
    body: str = ""
    primary_signal: int = 0
    secondary_signal: int = 0
    author: str = ""
    created_utc: float = 0.0

    @property
    def full_text(self) -> str:
        return f"{self.title} {self.body}"


@dataclass(frozen=True)
class CandidateScore:
    """Per-run score of one candidate; every sub-score lies in [0, 1]."""

    item: CandidateItem
    engagement_score: float
    text_length_score: float
    content_quality_score: float
    total_score: float
    word_count: int


@dataclass(frozen=True)
class ProviderStatus:
    """Availability snapshot for one configured speech provider."""

    name: str
    available: bool
    quota: int = -1


@dataclass(frozen=True)
class FormattedText:
    """Narration-ready text produced by the cleaning stage."""

    text: str
    word_count: int
    estimated_duration: int


@dataclass(frozen=True)
class SynthesisResult:
    """Audio produced by the failover manager."""

    audio: bytes
    provider: str
    voice: str
    audio_format: str
    attempts: int

    @property
    def size_bytes(self) -> int:
        return len(self.audio)


class PersistKind(str, Enum):
    """Closed set of outcomes for persisting the selected candidate."""

    INSERTED = "inserted"
    EXISTING_UNLINKED = "existing_unlinked"
    EXISTING_LINKED = "existing_linked"


@dataclass(frozen=True)
class PersistOutcome:
    kind: PersistKind
    record: SelectedItem


@dataclass(frozen=True)
class NarrationResult:
    """Composite result of a completed narration run."""

    selected_item: SelectedItem
    audio_file: AudioFile
    audio_url: str
    duration_seconds: float
    provider: str
    score: Optional[CandidateScore] = None
