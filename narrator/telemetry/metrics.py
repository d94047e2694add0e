"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

NARRATION_RUNS = Counter(
    "narration_runs_total",
    "Narration runs by terminal outcome",
    ("outcome",),
)

TTS_ATTEMPTS = Counter(
    "tts_attempts_total",
    "Speech synthesis attempts per provider",
    ("provider", "outcome"),
)

TTS_FAILOVERS = Counter(
    "tts_failovers_total",
    "Times a provider was abandoned in favour of the next one",
    ("provider",),
)

TTS_LATENCY = Histogram(
    "tts_synthesis_seconds",
    "Duration of successful speech synthesis calls",
    ("provider",),
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 60.0),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def record_narration_outcome(outcome: str) -> None:
    """Count one finished narration run (``complete`` or an error code)."""

    NARRATION_RUNS.labels(outcome=outcome).inc()


def record_tts_attempt(provider: str, outcome: str, duration_seconds: float | None = None) -> None:
    """Count one synthesis attempt and, on success, its latency."""

    TTS_ATTEMPTS.labels(provider=provider, outcome=outcome).inc()
    if duration_seconds is not None:
        TTS_LATENCY.labels(provider=provider).observe(max(duration_seconds, 0.0))


def record_failover(provider: str) -> None:
    TTS_FAILOVERS.labels(provider=provider).inc()
