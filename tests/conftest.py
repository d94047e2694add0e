"""Shared fakes for the narration test-suite."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
import sys
from typing import Any, Optional
from uuid import UUID, uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from narrator.domain.models import AudioFile, AudioFileCreate, SelectedItem  # noqa: E402
from narrator.pipelines.narration import CandidateItem  # noqa: E402
from narrator.services.errors import ProviderError, StorageError, StoreError  # noqa: E402
from narrator.services.record_store import RecordStore  # noqa: E402
from narrator.services.storage import AudioStorage, UploadResult  # noqa: E402
from narrator.services.tts_provider import SpeechProvider  # noqa: E402

NOW = 1_700_000_000.0


def words(count: int, word: str = "word") -> str:
    return " ".join([word] * count)


def make_item(source_id: str = "abc123", **overrides: Any) -> CandidateItem:
    values: dict[str, Any] = {
        "source_id": source_id,
        "collection": "AskReddit",
        "title": "What is the strangest thing that happened to you",
        "body": "It was a quiet night. " + words(120) + ". The end.",
        "primary_signal": 500,
        "secondary_signal": 100,
        "author": "someone",
        "created_utc": NOW - 2 * 3600,
    }
    values.update(overrides)
    return CandidateItem(**values)


class FakeProvider(SpeechProvider):
    """Scripted provider: each synthesize call pops the next outcome."""

    def __init__(
        self,
        name: str,
        outcomes: Optional[list[Any]] = None,
        *,
        available: bool = True,
        quota: int = -1,
        voice: str = "voice-1",
    ) -> None:
        self.name = name
        self._outcomes = list(outcomes or [b"audio-bytes"])
        self._available = available
        self._quota = quota
        self._voice = voice
        self.calls = 0
        self.closed = False

    @property
    def voice_id(self) -> str:
        return self._voice

    async def synthesize(self, text, options=None) -> bytes:
        self.calls += 1
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome()
        return outcome

    async def is_available(self) -> bool:
        if isinstance(self._available, BaseException):
            raise self._available
        return self._available

    async def remaining_quota(self) -> int:
        return self._quota

    async def aclose(self) -> None:
        self.closed = True


def provider_error(name: str, status_code: Optional[int] = None) -> ProviderError:
    return ProviderError(f"{name} failed", source=name, status_code=status_code)


class InMemoryRecordStore(RecordStore):
    """Dict-backed store with per-method failure injection."""

    def __init__(self) -> None:
        self.items: dict[str, SelectedItem] = {}
        self.audio_files: dict[UUID, AudioFile] = {}
        self.calls: list[str] = []
        self.fail: dict[str, BaseException] = {}
        self.hide_on_conflict = False
        self.delay = 0.0

    def _check(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail:
            raise self.fail[method]

    async def insert_if_absent(self, values):
        self._check("insert_if_absent")
        if self.delay:
            await asyncio.sleep(self.delay)
        existing = self.items.get(values["source_id"])
        if existing is not None:
            return (None if self.hide_on_conflict else existing), False
        record = SelectedItem(
            id=uuid4(),
            created_at=datetime.now(timezone.utc),
            **values,
        )
        self.items[record.source_id] = record
        return record, True

    async def get_selected_item(self, source_id):
        self._check("get_selected_item")
        return self.items.get(source_id)

    async def save_audio_file(self, audio: AudioFileCreate) -> AudioFile:
        self._check("save_audio_file")
        record = AudioFile(id=uuid4(), created_at=datetime.now(timezone.utc), **audio.model_dump())
        self.audio_files[record.id] = record
        return record

    async def link_audio(self, selected_item_id, audio_file_id):
        self._check("link_audio")
        for source_id, item in self.items.items():
            if item.id == selected_item_id:
                if item.audio_file_id is not None:
                    return None
                linked = item.model_copy(update={"audio_file_id": audio_file_id})
                self.items[source_id] = linked
                return linked
        raise StoreError(f"Selected item {selected_item_id} not found")


class FakeAudioStorage(AudioStorage):
    def __init__(self) -> None:
        self.uploads: list[tuple[str, bytes, str]] = []
        self.error: Optional[BaseException] = None

    async def upload(self, name, data, content_type):
        if self.error is not None:
            raise self.error
        self.uploads.append((name, data, content_type))
        return UploadResult(
            key=f"narrations/{name}",
            url=f"https://bucket.s3.amazonaws.com/narrations/{name}",
            size=len(data),
        )


async def no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def storage() -> FakeAudioStorage:
    return FakeAudioStorage()


__all__ = [
    "FakeAudioStorage",
    "FakeProvider",
    "InMemoryRecordStore",
    "NOW",
    "StorageError",
    "make_item",
    "no_sleep",
    "provider_error",
    "words",
]
