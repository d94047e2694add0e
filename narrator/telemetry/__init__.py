"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    NARRATION_RUNS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    TTS_ATTEMPTS,
    TTS_FAILOVERS,
    TTS_LATENCY,
    observe_request,
    record_failover,
    record_narration_outcome,
    record_tts_attempt,
)

__all__ = [
    "ERROR_COUNTER",
    "NARRATION_RUNS",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "TTS_ATTEMPTS",
    "TTS_FAILOVERS",
    "TTS_LATENCY",
    "observe_request",
    "record_failover",
    "record_narration_outcome",
    "record_tts_attempt",
]
