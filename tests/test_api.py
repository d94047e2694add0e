"""HTTP tests for the /narrations endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import NOW, FakeAudioStorage, FakeProvider, InMemoryRecordStore, make_item, no_sleep
from narrator.controllers.narration import get_content_source, get_orchestrator
from narrator.main import app
from narrator.middleware.logging import COLOR_RED, StructuredLoggingMiddleware
from narrator.pipelines.narration import (
    FailoverManager,
    NarrationOrchestrator,
    RetryPolicy,
    Scorer,
    Selector,
    TextCleaner,
)
from narrator.services.errors import ContentSourceError, ErrorKind, StoreError


class FakeContentSource:
    def __init__(self) -> None:
        self.candidates = [make_item("hot1")]
        self.error: ContentSourceError | None = None
        self.requests: list[tuple[str, int | None]] = []

    async def fetch_candidates(self, collection, limit=None):
        self.requests.append((collection, limit))
        if self.error is not None:
            raise self.error
        return self.candidates


@pytest.fixture
def pipeline():
    store = InMemoryRecordStore()
    storage = FakeAudioStorage()
    provider = FakeProvider("elevenlabs", quota=900)
    orchestrator = NarrationOrchestrator(
        selector=Selector(Scorer(clock=lambda: NOW)),
        failover=FailoverManager([provider], policy=RetryPolicy(max_attempts=1), sleep=no_sleep),
        store=store,
        storage=storage,
        cleaner=TextCleaner(),
        clock=lambda: NOW,
    )
    return orchestrator, store, provider


@pytest.fixture
def content_source() -> FakeContentSource:
    return FakeContentSource()


@pytest.fixture(autouse=True)
def override_dependencies(pipeline, content_source):
    """Swap the production pipeline for in-memory fakes."""

    app.dependency_overrides[get_orchestrator] = lambda: pipeline[0]
    app.dependency_overrides[get_content_source] = lambda: content_source

    yield

    app.dependency_overrides.clear()


def _payload(*items) -> dict:
    return {
        "candidates": [
            {
                "source_id": item.source_id,
                "collection": item.collection,
                "title": item.title,
                "body": item.body,
                "primary_signal": item.primary_signal,
                "secondary_signal": item.secondary_signal,
                "author": item.author,
                "created_utc": item.created_utc,
            }
            for item in items
        ]
    }


def test_create_narration_returns_composite_result():
    client = TestClient(app)

    response = client.post("/narrations", json=_payload(make_item("abc")))

    assert response.status_code == 201
    body = response.json()
    assert body["provider"] == "elevenlabs"
    assert body["selected_item"]["source_id"] == "abc"
    assert body["selected_item"]["audio_file_id"] == body["audio_file"]["id"]
    assert body["audio_url"].endswith(".mp3")
    assert body["score"]["source_id"] == "abc"


@pytest.mark.parametrize(
    ("payload", "status_code", "code"),
    [
        ({"candidates": []}, 400, ErrorKind.EMPTY_BATCH.value),
        (_payload(make_item(title="tiny", body="")), 422, ErrorKind.NO_VALID_CANDIDATES.value),
    ],
)
def test_validation_failures_map_to_client_errors(payload, status_code, code):
    client = TestClient(app)

    response = client.post("/narrations", json=payload)

    assert response.status_code == status_code
    assert response.json()["code"] == code


def test_duplicate_narration_is_a_conflict():
    client = TestClient(app)
    client.post("/narrations", json=_payload(make_item("abc")))

    response = client.post("/narrations", json=_payload(make_item("abc")))

    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_PROCESSED"


def test_persistence_failure_is_a_server_error(pipeline):
    _, store, _ = pipeline
    store.fail["insert_if_absent"] = StoreError("db down")
    client = TestClient(app)

    response = client.post("/narrations", json=_payload(make_item()))

    assert response.status_code == 500
    assert response.json()["code"] == "PERSIST_FAILED"


def test_collection_narration_uses_content_source(content_source):
    client = TestClient(app)

    response = client.post("/narrations/collections/AskReddit?limit=5")

    assert response.status_code == 201
    assert response.json()["selected_item"]["source_id"] == "hot1"
    assert content_source.requests == [("AskReddit", 5)]


@pytest.mark.parametrize(
    ("kind", "status_code"),
    [
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.RATE_LIMITED, 429),
        (ErrorKind.CONTENT_SOURCE_ERROR, 502),
    ],
)
def test_content_source_failures(content_source, kind, status_code):
    content_source.error = ContentSourceError("reddit failed", kind=kind)
    client = TestClient(app)

    response = client.post("/narrations/collections/AskReddit")

    assert response.status_code == status_code
    assert response.json() == {"detail": "reddit failed", "code": kind.value}


def test_preview_ranks_without_side_effects(pipeline):
    _, store, _ = pipeline
    client = TestClient(app)

    response = client.post(
        "/narrations/preview",
        json=_payload(make_item("a"), make_item("b", primary_signal=0)),
    )

    assert response.status_code == 200
    assert [entry["source_id"] for entry in response.json()] == ["a", "b"]
    assert store.calls == []


def test_processed_status():
    client = TestClient(app)
    client.post("/narrations", json=_payload(make_item("abc")))

    assert client.get("/narrations/abc/processed").json() == {"source_id": "abc", "processed": True}
    assert client.get("/narrations/other/processed").json() == {
        "source_id": "other",
        "processed": False,
    }


def test_providers_status():
    client = TestClient(app)

    response = client.get("/narrations/providers")

    assert response.status_code == 200
    assert response.json() == [{"name": "elevenlabs", "available": True, "quota": 900}]


def test_missing_pipeline_returns_service_unavailable():
    app.dependency_overrides.pop(get_orchestrator)
    client = TestClient(app)

    response = client.get("/narrations/providers")

    assert response.status_code == 503


def test_health_and_metrics():
    client = TestClient(app)

    assert client.get("/health").json()["status"] == "healthy"
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "narration_runs_total" in metrics.text


def test_request_log_line_is_coloured_by_status():
    message = StructuredLoggingMiddleware.format_console_message(
        {"method": "POST", "url": "http://testserver/narrations", "status_code": 502}
    )

    assert message.startswith(COLOR_RED)
    assert "method=POST" in message
    assert "client_ip=-" in message
