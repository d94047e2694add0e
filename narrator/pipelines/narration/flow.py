"""Stage map for one narration run.

A run moves strictly forward through the stages below; any step may end it
in ``FAILED`` with the error code bound to that stage:

1. ``SELECTING`` – score the batch and choose one candidate.
2. ``PERSISTING`` – record the selection (unique per source id).
3. ``SYNTHESIZING`` – narrate through the provider failover chain.
4. ``UPLOADING`` – store the audio bytes in S3.
5. ``SAVING_METADATA`` – persist the audio file record.
6. ``LINKING`` – attach the audio file to the selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

from narrator.services.errors import ErrorKind


class SagaStage(str, Enum):
    SELECTING = "selecting"
    PERSISTING = "persisting"
    SYNTHESIZING = "synthesizing"
    UPLOADING = "uploading"
    SAVING_METADATA = "saving_metadata"
    LINKING = "linking"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the narration run."""

    order: int
    stage: SagaStage
    failure: ErrorKind
    summary: str


class NarrationPipeline:
    """Ordered description of the narration saga."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            SagaStage.SELECTING,
            ErrorKind.NO_VALID_CANDIDATES,
            "Drop unusable candidates, score the rest and keep the best one.",
        ),
        PipelineStage(
            2,
            SagaStage.PERSISTING,
            ErrorKind.PERSIST_FAILED,
            "Insert the selection or resume the unlinked record for the same source id.",
        ),
        PipelineStage(
            3,
            SagaStage.SYNTHESIZING,
            ErrorKind.SYNTHESIS_FAILED,
            "Narrate the cleaned text, retrying and failing over between providers.",
        ),
        PipelineStage(
            4,
            SagaStage.UPLOADING,
            ErrorKind.UPLOAD_FAILED,
            "Upload the audio bytes to S3 under <source>_<provider>_<millis>.<format>.",
        ),
        PipelineStage(
            5,
            SagaStage.SAVING_METADATA,
            ErrorKind.METADATA_SAVE_FAILED,
            "Persist URL, size, duration, provider and voice for the audio file.",
        ),
        PipelineStage(
            6,
            SagaStage.LINKING,
            ErrorKind.LINK_FAILED,
            "Attach the audio file to the selection; unlinked audio is left for repair.",
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)

    @classmethod
    def failure_for(cls, stage: SagaStage) -> ErrorKind:
        for entry in cls._STAGES:
            if entry.stage is stage:
                return entry.failure
        return ErrorKind.UNEXPECTED_ERROR


__all__ = ["NarrationPipeline", "PipelineStage", "SagaStage"]
