"""ElevenLabs text-to-speech provider (primary narration voice)."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from narrator.config.settings import ElevenLabsConfig, settings
from narrator.services.errors import ProviderConfigError, ProviderError
from narrator.services.tts_provider import SpeechProvider

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract the most specific error message ElevenLabs returned."""

    fallback = f"ElevenLabs API error: {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase or fallback

    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str) and detail:
            return detail
        if payload.get("message"):
            return str(payload["message"])
    return fallback


class ElevenLabsSpeechProvider(SpeechProvider):
    """Call the ElevenLabs REST API to synthesize MP3 narration."""

    name = "elevenlabs"
    audio_format = "mp3"

    def __init__(
        self,
        *,
        config: ElevenLabsConfig | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._config = config or settings.elevenlabs
        if self._config.api_key is None or not self._config.api_key.get_secret_value():
            raise ProviderConfigError(
                "ELEVENLABS_API_KEY environment variable is required",
                source=self.name,
            )
        self._api_key = self._config.api_key.get_secret_value()
        self._client = client or httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=timeout_seconds,
        )

    @property
    def voice_id(self) -> str:
        return self._config.voice_id

    def _headers(self, **extra: str) -> dict[str, str]:
        return {"xi-api-key": self._api_key, **extra}

    def _voice_settings(self) -> dict[str, Any]:
        return {
            "stability": self._config.stability,
            "similarity_boost": self._config.similarity_boost,
            "style": self._config.style,
            "use_speaker_boost": self._config.use_speaker_boost,
        }

    async def synthesize(
        self,
        text: str,
        options: Mapping[str, Any] | None = None,
    ) -> bytes:
        opts = dict(options or {})
        voice = opts.get("voice_id") or self._config.voice_id
        body = {
            "text": text,
            "model_id": opts.get("model_id") or self._config.model_id,
            "voice_settings": opts.get("voice_settings") or self._voice_settings(),
        }

        try:
            response = await self._client.post(
                f"/text-to-speech/{voice}",
                params={"output_format": self._config.output_format},
                headers=self._headers(Accept="audio/mpeg"),
                json=body,
            )
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"Failed to reach ElevenLabs: {exc}",
                source=self.name,
            ) from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "ElevenLabs rejected synthesis (status=%s): %s",
                response.status_code,
                message,
            )
            raise ProviderError(message, source=self.name, status_code=response.status_code)

        if not response.content:
            raise ProviderError("ElevenLabs returned an empty audio payload.", source=self.name)
        return response.content

    async def is_available(self) -> bool:
        try:
            response = await self._client.get("/user", headers=self._headers())
        except httpx.HTTPError as exc:
            logger.info("ElevenLabs availability probe failed: %s", exc)
            return False
        return response.is_success

    async def remaining_quota(self) -> int:
        try:
            response = await self._client.get("/user/subscription", headers=self._headers())
            if not response.is_success:
                return -1
            data = response.json()
        except (httpx.HTTPError, ValueError):
            return -1

        if not isinstance(data, dict):
            return -1
        try:
            limit = int(data.get("character_limit") or 0)
            used = int(data.get("character_count") or 0)
        except (TypeError, ValueError):
            return -1
        return max(0, limit - used)

    async def aclose(self) -> None:
        await self._client.aclose()


def create_elevenlabs_provider(*, timeout_seconds: float = 60.0) -> ElevenLabsSpeechProvider:
    """Factory used by the failover manager; raises ``ProviderConfigError`` without a key."""

    return ElevenLabsSpeechProvider(timeout_seconds=timeout_seconds)


__all__ = ["ElevenLabsSpeechProvider", "create_elevenlabs_provider"]
