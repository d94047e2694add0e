"""Tests for configuration validation and component wiring."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from narrator.config.dependencies import provider_factories
from narrator.config.settings import (
    DatabaseConfig,
    NarrationConfig,
    RetryConfig,
    SelectionConfig,
    Settings,
)
from narrator.pipelines.narration import RetryPolicy


def test_selection_weights_must_sum_to_one():
    with pytest.raises(ValidationError):
        SelectionConfig(weight_engagement=0.5, weight_text_length=0.3, weight_quality=0.3)


def test_selection_bounds_must_increase():
    with pytest.raises(ValidationError):
        SelectionConfig(min_words=200, ideal_min_words=100)


def test_database_url_override():
    config = DatabaseConfig(DB_URL="sqlite+aiosqlite:///narrator.db")

    assert config.url == "sqlite+aiosqlite:///narrator.db"


def test_database_url_is_composed_and_escaped():
    config = DatabaseConfig(username="user", password="p@ss", host="db", port=5433, database="x")

    assert config.url == "postgresql+asyncpg://user:p%40ss@db:5433/x"


def test_retry_policy_from_config_converts_milliseconds():
    policy = RetryPolicy.from_config(
        RetryConfig(max_attempts=4, initial_delay_ms=250, backoff_multiplier=3, max_delay_ms=2000)
    )

    assert policy.max_attempts == 4
    assert policy.initial_delay == 0.25
    assert policy.max_delay == 2.0


def test_provider_factories_follow_configured_order():
    config = Settings(narration=NarrationConfig(provider_order=["polly", "unknown", "elevenlabs"]))

    factories = provider_factories(config)

    assert [factory.func.__name__ for factory in factories] == [
        "create_polly_provider",
        "create_elevenlabs_provider",
    ]
