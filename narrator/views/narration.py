"""Pydantic schemas for the narration endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from narrator.pipelines.narration.types import (
    CandidateItem,
    CandidateScore,
    NarrationResult,
    ProviderStatus,
)


class CandidatePayload(BaseModel):
    """One candidate post submitted for narration."""

    source_id: str = Field(..., min_length=1)
    collection: str
    title: str
    body: str = ""
    primary_signal: int = 0
    secondary_signal: int = 0
    author: str = ""
    created_utc: float = 0.0

    def to_candidate(self) -> CandidateItem:
        return CandidateItem(**self.model_dump())


class NarrationRequest(BaseModel):
    candidates: list[CandidatePayload]

    def to_candidates(self) -> list[CandidateItem]:
        return [candidate.to_candidate() for candidate in self.candidates]


class ScoreResponse(BaseModel):
    """Score breakdown of a ranked candidate."""

    source_id: str
    title: str
    engagement_score: float
    text_length_score: float
    content_quality_score: float
    total_score: float
    word_count: int

    @classmethod
    def from_score(cls, score: CandidateScore) -> "ScoreResponse":
        return cls(
            source_id=score.item.source_id,
            title=score.item.title,
            engagement_score=score.engagement_score,
            text_length_score=score.text_length_score,
            content_quality_score=score.content_quality_score,
            total_score=score.total_score,
            word_count=score.word_count,
        )


class SelectedItemResponse(BaseModel):
    id: UUID
    source_id: str
    collection: str
    title: str
    author: str
    selection_score: float
    audio_file_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AudioFileResponse(BaseModel):
    id: UUID
    file_url: str
    duration_seconds: float
    file_size_bytes: int
    format: str
    provider: str
    voice_used: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NarrationResponse(BaseModel):
    """Composite result of a completed narration."""

    selected_item: SelectedItemResponse
    audio_file: AudioFileResponse
    audio_url: str
    duration_seconds: float
    provider: str
    score: Optional[ScoreResponse] = None

    @classmethod
    def from_result(cls, result: NarrationResult) -> "NarrationResponse":
        return cls(
            selected_item=SelectedItemResponse.model_validate(result.selected_item),
            audio_file=AudioFileResponse.model_validate(result.audio_file),
            audio_url=result.audio_url,
            duration_seconds=result.duration_seconds,
            provider=result.provider,
            score=ScoreResponse.from_score(result.score) if result.score else None,
        )


class ProcessedResponse(BaseModel):
    source_id: str
    processed: bool


class ProviderStatusResponse(BaseModel):
    name: str
    available: bool
    quota: int

    @classmethod
    def from_status(cls, status: ProviderStatus) -> "ProviderStatusResponse":
        return cls(name=status.name, available=status.available, quota=status.quota)
