"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse
from .narration import (
    AudioFileResponse,
    CandidatePayload,
    NarrationRequest,
    NarrationResponse,
    ProcessedResponse,
    ProviderStatusResponse,
    ScoreResponse,
    SelectedItemResponse,
)

__all__ = [
    "AudioFileResponse",
    "CandidatePayload",
    "ErrorResponse",
    "NarrationRequest",
    "NarrationResponse",
    "ProcessedResponse",
    "ProviderStatusResponse",
    "ScoreResponse",
    "SelectedItemResponse",
]
