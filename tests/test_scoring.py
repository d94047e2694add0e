"""Tests for candidate scoring."""

from __future__ import annotations

import pytest

from conftest import NOW, make_item, words
from narrator.config.settings import SelectionConfig
from narrator.pipelines.narration.scoring import (
    Scorer,
    ScoringWeights,
    TextLengthBounds,
    content_quality_score,
    engagement_score,
    has_usable_text,
    text_length_score,
)


def test_text_length_score_piecewise_boundaries():
    assert text_length_score(0) == 0.0
    assert text_length_score(25) == pytest.approx(0.15)
    # The short branch and the ramp agree at min.
    assert text_length_score(49) == pytest.approx(49 / 50 * 0.3)
    assert text_length_score(50) == pytest.approx(0.3)
    assert text_length_score(75) == pytest.approx(0.65)
    assert text_length_score(100) == 1.0
    assert text_length_score(500) == 1.0
    assert text_length_score(650) == pytest.approx(0.75)
    assert text_length_score(800) == pytest.approx(0.5)
    assert text_length_score(801) == 0.3


def test_engagement_prefers_fresh_posts():
    fresh = make_item(primary_signal=1000, secondary_signal=500, created_utc=NOW - 30 * 60)
    stale = make_item(primary_signal=1000, secondary_signal=500, created_utc=NOW - 24 * 3600)

    assert engagement_score(fresh, NOW) > engagement_score(stale, NOW)


def test_engagement_floors_age_and_caps_at_one():
    brand_new = make_item(primary_signal=10_000, secondary_signal=0, created_utc=NOW)
    future = make_item(primary_signal=10_000, secondary_signal=0, created_utc=NOW + 3600)

    assert engagement_score(brand_new, NOW) == 1.0
    assert engagement_score(future, NOW) == 1.0


def test_engagement_of_downvoted_post_is_zero():
    item = make_item(primary_signal=-50, secondary_signal=0)

    assert engagement_score(item, NOW) == 0.0


def test_uppercase_text_lowers_quality():
    normal = "This is a normal sentence. Another one here. And a third one."
    shouting = normal.upper()

    assert content_quality_score(shouting) < content_quality_score(normal)


def test_quality_rewards_structure_and_penalises_links():
    structured = "First paragraph here. Second sentence.\n\nSecond paragraph. Third sentence."
    links = "See https://a.com and https://b.com and https://c.com"

    assert content_quality_score(structured) == pytest.approx(0.85)
    assert content_quality_score(links) == pytest.approx(0.5)
    assert content_quality_score("") == 0.0


def test_has_usable_text_rejects_short_and_link_only_posts():
    assert not has_usable_text(make_item(title="Too short", body="only a few words"))
    link_only = make_item(
        title="Look at this amazing thing I found on the internet today friends",
        body="https://example.com/a/very/long/path/to/some/article?id=12345",
    )
    assert not has_usable_text(link_only)
    assert has_usable_text(make_item())


def test_scores_stay_within_unit_interval():
    scorer = Scorer(clock=lambda: NOW)
    items = [
        make_item(body=words(5)),
        make_item(body=words(2000)),
        make_item(primary_signal=10**9, secondary_signal=10**9, created_utc=NOW),
        make_item(body=("BIG LETTERS. " * 40)),
    ]

    for item in items:
        score = scorer.score(item)
        for value in (
            score.engagement_score,
            score.text_length_score,
            score.content_quality_score,
            score.total_score,
        ):
            assert 0.0 <= value <= 1.0


def test_total_is_weighted_sum():
    scorer = Scorer(
        weights=ScoringWeights(engagement=0.5, text_length=0.25, quality=0.25),
        clock=lambda: NOW,
    )
    score = scorer.score(make_item())

    expected = (
        score.engagement_score * 0.5
        + score.text_length_score * 0.25
        + score.content_quality_score * 0.25
    )
    assert score.total_score == pytest.approx(expected)


def test_invalid_weights_and_bounds_are_rejected():
    with pytest.raises(ValueError):
        ScoringWeights(engagement=0.5, text_length=0.5, quality=0.5)
    with pytest.raises(ValueError):
        TextLengthBounds(min=100, ideal_min=50)


def test_scorer_from_config_uses_configured_bounds():
    config = SelectionConfig(min_words=10, ideal_min_words=20, ideal_max_words=30, max_words=40)
    scorer = Scorer.from_config(config, clock=lambda: NOW)

    score = scorer.score(make_item(title="one two three four", body=words(21)))

    assert score.word_count == 25
    assert score.text_length_score == 1.0
