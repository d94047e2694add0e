"""Amazon Polly speech provider."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from narrator.config.settings import PollyConfig, settings
from narrator.services.aws import client_error_status, create_boto3_client
from narrator.services.errors import ProviderConfigError, ProviderError
from narrator.services.tts_provider import SpeechProvider

logger = logging.getLogger(__name__)


class PollySpeechProvider(SpeechProvider):
    """Synthesize MP3 narration with Amazon Polly."""

    name = "polly"
    audio_format = "mp3"

    def __init__(
        self,
        *,
        config: PollyConfig | None = None,
        client: Any | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._config = config or settings.polly
        if not self._config.enabled:
            raise ProviderConfigError("Polly is disabled (POLLY_ENABLED=false)", source=self.name)
        self._client = client or create_boto3_client(
            "polly",
            region_name=self._config.region,
            timeout_seconds=timeout_seconds,
        )

    @property
    def voice_id(self) -> str:
        return self._config.voice_id

    async def synthesize(
        self,
        text: str,
        options: Mapping[str, Any] | None = None,
    ) -> bytes:
        opts = dict(options or {})
        voice = opts.get("voice_id") or self._config.voice_id
        try:
            response: dict[str, Any] = await run_in_threadpool(
                self._client.synthesize_speech,
                Text=text,
                TextType="text",
                VoiceId=voice,
                Engine=opts.get("engine") or self._config.engine,
                OutputFormat="mp3",
            )
        except ClientError as exc:
            status = client_error_status(exc)
            logger.warning("Polly rejected synthesis for voice '%s' (status=%s)", voice, status)
            raise ProviderError(
                f"Polly synthesis failed: {exc}",
                source=self.name,
                status_code=status,
            ) from exc
        except BotoCoreError as exc:
            raise ProviderError(
                f"Polly request could not be sent: {exc}",
                source=self.name,
            ) from exc

        audio_stream = response.get("AudioStream")
        if audio_stream is None:
            raise ProviderError("Polly returned no audio stream.", source=self.name)
        try:
            audio_bytes = await run_in_threadpool(audio_stream.read)
        finally:
            audio_stream.close()
        if not audio_bytes:
            raise ProviderError("Polly returned an empty audio stream.", source=self.name)
        return audio_bytes

    async def is_available(self) -> bool:
        try:
            await run_in_threadpool(
                self._client.describe_voices,
                LanguageCode=self._config.language_code,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.info("Polly availability probe failed: %s", exc)
            return False
        return True

    async def remaining_quota(self) -> int:
        # Polly is billed per character with no queryable quota.
        return -1


def create_polly_provider(*, timeout_seconds: float | None = None) -> PollySpeechProvider:
    """Factory used by the failover manager; raises ``ProviderConfigError`` when disabled."""

    return PollySpeechProvider(timeout_seconds=timeout_seconds)


__all__ = ["PollySpeechProvider", "create_polly_provider"]
