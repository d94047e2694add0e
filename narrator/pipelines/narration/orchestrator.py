"""Narration saga: select, persist, synthesize, upload, record, link.

Each step commits on its own, so the orchestrator compensates explicitly
instead of relying on a transaction:

- a duplicate selection without audio is resumed, one with audio is
  rejected as already processed;
- a failed link leaves an unlinked audio file that a repair job can attach
  later without synthesizing again;
- a link never replaces an existing one; a run that loses the race to
  another process ends as already processed and leaves its audio orphaned.

Retries live in the failover manager only; a failed run is never retried here.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from narrator.domain.models import AudioFileCreate, SelectedItem
from narrator.services.errors import ErrorKind, OrchestrationError
from narrator.services.record_store import RecordStore, selection_values
from narrator.services.storage import AudioStorage
from narrator.telemetry import record_narration_outcome

from .cleaning import TextCleaner, estimate_duration, raw_text
from .failover import FailoverManager
from .flow import NarrationPipeline, SagaStage
from .selection import Selector
from .types import (
    CandidateItem,
    CandidateScore,
    FormattedText,
    NarrationResult,
    PersistKind,
    PersistOutcome,
    ProviderStatus,
)

logger = logging.getLogger("narrator.pipeline")

T = TypeVar("T")

_EXPECTED_FAILURES = {
    ErrorKind.EMPTY_BATCH,
    ErrorKind.NO_VALID_CANDIDATES,
    ErrorKind.ALREADY_PROCESSED,
}


def classify_persist(record: Optional[SelectedItem], inserted: bool) -> PersistOutcome:
    """Map a store insert result onto the closed set of persistence outcomes."""

    if record is None:
        raise OrchestrationError(
            "Selection conflicted on source id but no existing record was found",
            kind=ErrorKind.PERSIST_INCONSISTENCY,
        )
    if inserted:
        return PersistOutcome(PersistKind.INSERTED, record)
    if record.is_linked:
        return PersistOutcome(PersistKind.EXISTING_LINKED, record)
    return PersistOutcome(PersistKind.EXISTING_UNLINKED, record)


class NarrationOrchestrator:
    """Run the narration saga against injected collaborators."""

    def __init__(
        self,
        *,
        selector: Selector,
        failover: FailoverManager,
        store: RecordStore,
        storage: AudioStorage,
        cleaner: TextCleaner | None = None,
        content_type: str = "audio/mpeg",
        call_timeout: float | None = None,
        words_per_minute: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._selector = selector
        self._failover = failover
        self._store = store
        self._storage = storage
        self._cleaner = cleaner
        self._content_type = content_type
        self._call_timeout = call_timeout
        if words_per_minute is None:
            words_per_minute = cleaner.words_per_minute if cleaner is not None else 150
        self._words_per_minute = words_per_minute
        self._clock = clock
        self._inflight: dict[str, asyncio.Future[NarrationResult]] = {}

    async def run(self, candidates: Sequence[CandidateItem]) -> NarrationResult:
        """Narrate the best candidate of ``candidates``.

        Raises :class:`OrchestrationError` whose ``kind`` identifies the failed step.
        """

        try:
            result = await self._run(candidates)
        except OrchestrationError as exc:
            record_narration_outcome(exc.code)
            raise
        record_narration_outcome(SagaStage.COMPLETE.value)
        return result

    def preview(self, candidates: Sequence[CandidateItem]) -> list[CandidateScore]:
        """Rank ``candidates`` without side effects."""

        return self._selector.rank(candidates)

    async def is_processed(self, source_id: str) -> bool:
        """True when the source item has a selection with linked audio.

        Store errors read as "not processed" so a flaky store never blocks work.
        """

        try:
            record = await self._bounded(self._store.get_selected_item(source_id))
        except Exception as exc:
            logger.warning("Could not check processing status for %s: %s", source_id, exc)
            return False
        return record is not None and record.is_linked

    async def get_providers_status(self) -> list[ProviderStatus]:
        return await self._failover.get_providers_status()

    async def aclose(self) -> None:
        await self._failover.aclose()

    def audio_file_name(self, source_id: str, provider: str, audio_format: str = "mp3") -> str:
        millis = int(self._clock() * 1000)
        return f"{source_id}_{provider}_{millis}.{audio_format}"

    async def _run(self, candidates: Sequence[CandidateItem]) -> NarrationResult:
        if not candidates:
            error = OrchestrationError(
                "No candidates provided for processing",
                kind=ErrorKind.EMPTY_BATCH,
            )
            self._log_failure(SagaStage.SELECTING, None, error)
            raise error

        logger.info("Analyzing %d candidates", len(candidates))
        try:
            best = self._selector.select_best(candidates)
        except Exception as exc:
            error = OrchestrationError(
                f"Unexpected error during selection: {exc}",
                kind=ErrorKind.UNEXPECTED_ERROR,
            )
            self._log_failure(SagaStage.SELECTING, None, error, exc)
            raise error from exc

        if best is None:
            error = OrchestrationError(
                "No valid candidates found after analysis",
                kind=ErrorKind.NO_VALID_CANDIDATES,
            )
            self._log_failure(SagaStage.SELECTING, None, error)
            raise error

        return await self._single_flight(best)

    async def _single_flight(self, best: CandidateScore) -> NarrationResult:
        """Share one in-flight narration between concurrent runs of a source item."""

        source_id = best.item.source_id
        task = self._inflight.get(source_id)
        if task is None:
            task = asyncio.ensure_future(self._narrate(best))
            self._inflight[source_id] = task
            task.add_done_callback(lambda done, key=source_id: self._forget(key, done))
        else:
            logger.info("Joining in-flight narration for %s", source_id)
        return await asyncio.shield(task)

    def _forget(self, source_id: str, task: asyncio.Future[Any]) -> None:
        if self._inflight.get(source_id) is task:
            del self._inflight[source_id]

    async def _narrate(self, best: CandidateScore) -> NarrationResult:
        item = best.item
        stage = SagaStage.PERSISTING
        try:
            self._enter(stage, item)
            selected = await self._persist_selection(best)

            stage = SagaStage.SYNTHESIZING
            self._enter(stage, item)
            formatted = self._format(item)
            synthesis = await self._step(
                SagaStage.SYNTHESIZING,
                "Failed to generate audio",
                self._failover.generate(formatted.text),
                bounded=False,
            )
            logger.info(
                "Audio for %s generated by '%s' (%d bytes, %d attempts)",
                item.source_id,
                synthesis.provider,
                synthesis.size_bytes,
                synthesis.attempts,
            )

            stage = SagaStage.UPLOADING
            self._enter(stage, item)
            file_name = self.audio_file_name(
                item.source_id, synthesis.provider, synthesis.audio_format
            )
            upload = await self._step(
                stage,
                "Failed to upload audio file",
                self._storage.upload(file_name, synthesis.audio, self._content_type),
            )

            stage = SagaStage.SAVING_METADATA
            self._enter(stage, item)
            audio_file = await self._step(
                stage,
                "Failed to save audio metadata",
                self._store.save_audio_file(
                    AudioFileCreate(
                        file_url=upload.url,
                        duration_seconds=formatted.estimated_duration,
                        file_size_bytes=upload.size,
                        format=synthesis.audio_format,
                        provider=synthesis.provider,
                        voice_used=synthesis.voice,
                    )
                ),
            )

            stage = SagaStage.LINKING
            self._enter(stage, item)
            try:
                linked = await self._step(
                    stage,
                    "Failed to link audio to selected item",
                    self._store.link_audio(selected.id, audio_file.id),
                )
            except OrchestrationError:
                logger.error(
                    "Audio file %s for %s is stored but unlinked",
                    audio_file.id,
                    item.source_id,
                )
                raise
            if linked is None:
                raise OrchestrationError(
                    f"Item {item.source_id} was linked to other audio while this run "
                    f"was in progress; audio file {audio_file.id} is orphaned",
                    kind=ErrorKind.ALREADY_PROCESSED,
                )
        except OrchestrationError as exc:
            self._log_failure(stage, item, exc)
            raise
        except Exception as exc:
            error = OrchestrationError(
                f"Unexpected error during processing: {exc}",
                kind=ErrorKind.UNEXPECTED_ERROR,
            )
            self._log_failure(stage, item, error, exc)
            raise error from exc

        logger.info("Narration of %s complete: %s", item.source_id, upload.url)
        return NarrationResult(
            selected_item=linked,
            audio_file=audio_file,
            audio_url=upload.url,
            duration_seconds=audio_file.duration_seconds,
            provider=synthesis.provider,
            score=best,
        )

    async def _persist_selection(self, best: CandidateScore) -> SelectedItem:
        item = best.item
        values = selection_values(
            source_id=item.source_id,
            collection=item.collection,
            title=item.title,
            body=item.body,
            primary_signal=item.primary_signal,
            secondary_signal=item.secondary_signal,
            author=item.author,
            created_utc=item.created_utc,
            selection_score=best.total_score,
        )
        record, inserted = await self._step(
            SagaStage.PERSISTING,
            "Failed to save selected item",
            self._store.insert_if_absent(values),
        )

        outcome = classify_persist(record, inserted)
        if outcome.kind is PersistKind.EXISTING_LINKED:
            raise OrchestrationError(
                f"Item {item.source_id} has already been processed with audio",
                kind=ErrorKind.ALREADY_PROCESSED,
            )
        if outcome.kind is PersistKind.EXISTING_UNLINKED:
            logger.info("Resuming unfinished narration for %s", item.source_id)
        return outcome.record

    def _format(self, item: CandidateItem) -> FormattedText:
        if self._cleaner is not None:
            try:
                return self._cleaner.format(item)
            except Exception as exc:
                logger.warning("Text cleaning failed for %s, using raw text: %s", item.source_id, exc)
        text = raw_text(item)
        words = len(text.split())
        return FormattedText(
            text=text,
            word_count=words,
            estimated_duration=estimate_duration(words, self._words_per_minute),
        )

    async def _step(
        self,
        stage: SagaStage,
        message: str,
        awaitable: Awaitable[T],
        *,
        bounded: bool = True,
    ) -> T:
        kind = NarrationPipeline.failure_for(stage)
        try:
            if bounded:
                return await self._bounded(awaitable)
            return await awaitable
        except OrchestrationError:
            raise
        except asyncio.TimeoutError as exc:
            raise OrchestrationError(
                f"{message}: timed out after {self._call_timeout}s",
                kind=kind,
            ) from exc
        except Exception as exc:
            raise OrchestrationError(f"{message}: {exc}", kind=kind) from exc

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        if self._call_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, self._call_timeout)

    @staticmethod
    def _enter(stage: SagaStage, item: CandidateItem) -> None:
        logger.info("[%s] %s", stage.value, item.source_id)

    @staticmethod
    def _log_failure(
        stage: SagaStage,
        item: Optional[CandidateItem],
        error: OrchestrationError,
        cause: BaseException | None = None,
    ) -> None:
        source_id = item.source_id if item else "-"
        if error.kind in _EXPECTED_FAILURES:
            logger.warning("[%s] %s at %s: %s", error.code, source_id, stage.value, error)
            return
        logger.error(
            "[%s] %s failed at %s: %s",
            error.code,
            source_id,
            stage.value,
            error,
            exc_info=cause or error.__cause__,
        )


__all__ = ["NarrationOrchestrator", "classify_persist"]
