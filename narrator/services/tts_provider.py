"""Capability contract implemented by every speech synthesis backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class SpeechProvider(ABC):
    """One text-to-speech backend.

    ``synthesize`` raises :class:`~narrator.services.errors.ProviderError`
    on failure. ``is_available`` and ``remaining_quota`` never raise: probe
    failures degrade to ``False`` and ``-1`` respectively.
    """

    name: str
    audio_format: str = "mp3"

    @property
    @abstractmethod
    def voice_id(self) -> str:
        """Voice identifier used when no override is given."""

    @abstractmethod
    async def synthesize(
        self,
        text: str,
        options: Mapping[str, Any] | None = None,
    ) -> bytes:
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        ...

    @abstractmethod
    async def remaining_quota(self) -> int:
        """Remaining characters/credits, or -1 when unknown or unlimited."""

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


__all__ = ["SpeechProvider"]
