"""Speech synthesis with per-provider retries and ordered failover.

Transient failures (timeouts, 5xx, rate limits, network errors) are retried
on the same provider with exponential backoff. Authentication failures abort
the provider at once, and an exhausted provider hands over to the next one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Sequence, TypeVar

from narrator.config.settings import RetryConfig
from narrator.services.errors import (
    ErrorKind,
    FailoverError,
    ProviderConfigError,
    ProviderError,
)
from narrator.services.tts_provider import SpeechProvider
from narrator.telemetry import record_failover, record_tts_attempt

from .types import ProviderStatus, SynthesisResult

logger = logging.getLogger("narrator.pipeline")

T = TypeVar("T")
ProviderFactory = Callable[[], SpeechProvider]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff; delays are in seconds."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            initial_delay=config.initial_delay_ms / 1000,
            backoff_multiplier=config.backoff_multiplier,
            max_delay=config.max_delay_ms / 1000,
        )

    def delay_for(self, attempt: int) -> float:
        """Wait before the retry that follows ``attempt`` (1-based)."""

        return min(
            self.initial_delay * self.backoff_multiplier ** (attempt - 1),
            self.max_delay,
        )


@dataclass(frozen=True)
class _ProviderOutcome:
    attempts: int
    audio: Optional[bytes] = None
    error: Optional[ProviderError] = None


class FailoverManager:
    """Generate audio from an ordered, immutable list of speech providers."""

    def __init__(
        self,
        providers: Sequence[SpeechProvider],
        *,
        policy: RetryPolicy = RetryPolicy(),
        call_timeout: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._providers: tuple[SpeechProvider, ...] = tuple(providers)
        if not self._providers:
            raise FailoverError(
                "No speech providers configured. Set ELEVENLABS_API_KEY or enable Polly.",
                kind=ErrorKind.NO_PROVIDERS_CONFIGURED,
            )
        self._policy = policy
        self._call_timeout = call_timeout
        self._sleep = sleep

    @classmethod
    def from_factories(
        cls,
        factories: Iterable[ProviderFactory],
        **kwargs: Any,
    ) -> "FailoverManager":
        """Build providers in priority order, omitting those that cannot be configured."""

        providers: list[SpeechProvider] = []
        for factory in factories:
            try:
                providers.append(factory())
            except ProviderConfigError as exc:
                logger.warning("Speech provider '%s' not available: %s", exc.source, exc)
        return cls(providers, **kwargs)

    @property
    def providers(self) -> tuple[SpeechProvider, ...]:
        return self._providers

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        if self._call_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, self._call_timeout)

    async def _probe_available(self, provider: SpeechProvider) -> bool:
        try:
            return bool(await self._bounded(provider.is_available()))
        except Exception as exc:
            logger.warning("Availability probe for '%s' failed: %s", provider.name, exc)
            return False

    async def _synthesize_with_retry(
        self,
        provider: SpeechProvider,
        text: str,
        options: Mapping[str, Any] | None,
    ) -> _ProviderOutcome:
        max_attempts = self._policy.max_attempts
        error: ProviderError | None = None

        for attempt in range(1, max_attempts + 1):
            started = time.perf_counter()
            try:
                audio = await self._bounded(provider.synthesize(text, options))
            except ProviderError as exc:
                error = exc
            except asyncio.TimeoutError as exc:
                error = ProviderError(
                    f"{provider.name} timed out after {self._call_timeout}s",
                    source=provider.name,
                    kind=ErrorKind.PROVIDER_TIMEOUT,
                )
                error.__cause__ = exc
            except Exception as exc:
                error = ProviderError(f"{provider.name} failed: {exc}", source=provider.name)
                error.__cause__ = exc
            else:
                record_tts_attempt(provider.name, "success", time.perf_counter() - started)
                return _ProviderOutcome(attempts=attempt, audio=audio)

            record_tts_attempt(provider.name, error.kind.value.lower())

            if error.is_authentication_failure:
                logger.error(
                    "Authentication with '%s' failed (status=%s); not retrying",
                    provider.name,
                    error.status_code,
                )
                return _ProviderOutcome(attempts=attempt, error=error)

            if attempt >= max_attempts:
                break

            # A rate limit costs one extra backoff step.
            backoff_step = attempt + 1 if error.is_rate_limited else attempt
            delay = self._policy.delay_for(backoff_step)
            logger.warning(
                "Attempt %d/%d with '%s' failed (%s: %s); retrying in %.2fs",
                attempt,
                max_attempts,
                provider.name,
                error.kind.value,
                error,
                delay,
            )
            await self._sleep(delay)

        return _ProviderOutcome(attempts=max_attempts, error=error)

    async def generate(
        self,
        text: str,
        options: Mapping[str, Any] | None = None,
    ) -> SynthesisResult:
        """Synthesize ``text`` with the first provider that succeeds."""

        last_error: ProviderError | None = None
        total_attempts = 0

        for index, provider in enumerate(self._providers):
            is_last = index == len(self._providers) - 1

            if not await self._probe_available(provider):
                logger.warning("Speech provider '%s' is unavailable; skipping", provider.name)
                last_error = ProviderError(
                    f"Provider {provider.name} is not available",
                    source=provider.name,
                    kind=ErrorKind.PROVIDER_UNAVAILABLE,
                )
                record_failover(provider.name)
                continue

            logger.info("Generating audio with '%s'", provider.name)
            outcome = await self._synthesize_with_retry(provider, text, options)
            total_attempts += outcome.attempts

            if outcome.audio is not None:
                voice = (options or {}).get("voice_id") or provider.voice_id
                return SynthesisResult(
                    audio=outcome.audio,
                    provider=provider.name,
                    voice=voice,
                    audio_format=provider.audio_format,
                    attempts=total_attempts,
                )

            last_error = outcome.error
            if last_error is not None and last_error.is_authentication_failure and is_last:
                raise last_error

            logger.error("Speech provider '%s' failed: %s", provider.name, last_error)
            record_failover(provider.name)
            if not is_last:
                logger.info("Failing over to '%s'", self._providers[index + 1].name)

        raise FailoverError(
            f"All speech providers failed. Last error: {last_error or 'unknown error'}",
            kind=ErrorKind.ALL_PROVIDERS_FAILED,
        ) from last_error

    async def get_providers_status(self) -> list[ProviderStatus]:
        """Probe every provider concurrently; a failing probe reports unavailable."""

        async def _status(provider: SpeechProvider) -> ProviderStatus:
            try:
                available = await self._bounded(provider.is_available())
                quota = await self._bounded(provider.remaining_quota())
            except Exception as exc:
                logger.warning("Status probe for '%s' failed: %s", provider.name, exc)
                return ProviderStatus(name=provider.name, available=False, quota=-1)
            return ProviderStatus(name=provider.name, available=bool(available), quota=int(quota))

        return list(await asyncio.gather(*(_status(p) for p in self._providers)))

    async def aclose(self) -> None:
        for provider in self._providers:
            await provider.aclose()


__all__ = ["FailoverManager", "ProviderFactory", "RetryPolicy"]
