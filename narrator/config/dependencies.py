"""Component wiring for the narration service."""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable

from narrator.pipelines.narration import (
    FailoverManager,
    NarrationOrchestrator,
    RetryPolicy,
    Scorer,
    Selector,
    TextCleaner,
)
from narrator.services.elevenlabs_tts import create_elevenlabs_provider
from narrator.services.polly_tts import create_polly_provider
from narrator.services.record_store import SessionFactory, SqlAlchemyRecordStore
from narrator.services.storage import S3AudioStorage
from narrator.services.tts_provider import SpeechProvider

from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def provider_factories(config: Settings) -> list[Callable[[], SpeechProvider]]:
    """Factories for the configured providers, in ``provider_order``."""

    timeout = config.retry.call_timeout_seconds
    known: dict[str, Callable[[], SpeechProvider]] = {
        "elevenlabs": partial(create_elevenlabs_provider, timeout_seconds=timeout),
        "polly": partial(create_polly_provider, timeout_seconds=timeout),
    }
    factories = []
    for name in config.narration.provider_order:
        factory = known.get(name.strip().lower())
        if factory is None:
            logger.warning("Ignoring unknown speech provider '%s'", name)
            continue
        factories.append(factory)
    return factories


def build_failover(config: Settings) -> FailoverManager:
    return FailoverManager.from_factories(
        provider_factories(config),
        policy=RetryPolicy.from_config(config.retry),
        call_timeout=config.retry.call_timeout_seconds,
    )


def build_orchestrator(
    session_factory: SessionFactory,
    config: Settings = default_settings,
) -> NarrationOrchestrator:
    """Assemble the orchestrator with the production collaborators."""

    return NarrationOrchestrator(
        selector=Selector(Scorer.from_config(config.selection)),
        failover=build_failover(config),
        store=SqlAlchemyRecordStore(session_factory),
        storage=S3AudioStorage(config=config.s3),
        cleaner=TextCleaner(
            words_per_minute=config.narration.words_per_minute,
            max_duration_seconds=config.narration.max_duration_seconds,
        ),
        content_type=config.narration.content_type,
        call_timeout=config.narration.store_timeout_seconds,
    )


__all__ = ["build_failover", "build_orchestrator", "provider_factories"]
