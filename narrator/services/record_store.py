"""Persistence of selections and audio file metadata."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from narrator.domain.models import AudioFile, AudioFileCreate, SelectedItem
from narrator.models import AudioFileRecord, SelectedItemRecord
from narrator.services.errors import StoreError

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Any]

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RecordStore(ABC):
    """Persistence contract used by the narration orchestrator.

    Each call commits on its own; failures raise :class:`StoreError`.
    """

    @abstractmethod
    async def insert_if_absent(
        self,
        values: dict[str, Any],
    ) -> tuple[Optional[SelectedItem], bool]:
        """Insert a selection unless its ``source_id`` exists.

        Returns ``(record, inserted)``. On conflict ``record`` is the existing
        row, or ``None`` when the store cannot see it.
        """

    @abstractmethod
    async def get_selected_item(self, source_id: str) -> Optional[SelectedItem]:
        ...

    @abstractmethod
    async def save_audio_file(self, audio: AudioFileCreate) -> AudioFile:
        ...

    @abstractmethod
    async def link_audio(
        self,
        selected_item_id: UUID,
        audio_file_id: UUID,
    ) -> Optional[SelectedItem]:
        """Attach ``audio_file_id`` to a selection that has no audio yet.

        Returns ``None`` when the selection is already linked; an existing
        link is never replaced.
        """


def selection_values(
    *,
    source_id: str,
    collection: str,
    title: str,
    body: str,
    primary_signal: int,
    secondary_signal: int,
    author: str,
    created_utc: float,
    selection_score: float,
) -> dict[str, Any]:
    """Column values for a new ``selected_items`` row."""

    return {
        "source_id": source_id,
        "collection": collection,
        "title": title,
        "body": body or None,
        "primary_signal": int(primary_signal),
        "secondary_signal": int(secondary_signal),
        "author": author,
        "source_created_at": datetime.fromtimestamp(created_utc, tz=timezone.utc),
        "selection_score": float(selection_score),
    }


class SqlAlchemyRecordStore(RecordStore):
    """SQLAlchemy implementation backed by PostgreSQL (or SQLite in tests)."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def insert_if_absent(
        self,
        values: dict[str, Any],
    ) -> tuple[Optional[SelectedItem], bool]:
        new_id = uuid4()
        table = SelectedItemRecord.__table__

        async with self._session_factory() as session:
            insert = self._insert_for(session)
            stmt = insert(table).values(id=new_id, **values)
            # A no-op update makes RETURNING yield the existing row in the same statement.
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.source_id],
                set_={"source_id": stmt.excluded.source_id},
            ).returning(*table.c)
            try:
                result = await session.execute(stmt)
                row = result.mappings().one_or_none()
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception("Failed to insert selection %s", values.get("source_id"))
                raise StoreError(f"Failed to save selected item: {exc}") from exc

        if row is None:
            return None, False
        record = SelectedItem.model_validate(dict(row))
        return record, record.id == new_id

    async def get_selected_item(self, source_id: str) -> Optional[SelectedItem]:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(SelectedItemRecord).where(SelectedItemRecord.source_id == source_id)
                )
                row = result.scalar_one_or_none()
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to get selected item: {exc}") from exc
        return SelectedItem.model_validate(row) if row else None

    async def save_audio_file(self, audio: AudioFileCreate) -> AudioFile:
        async with self._session_factory() as session:
            db_audio = AudioFileRecord(**audio.model_dump())
            session.add(db_audio)
            try:
                await session.commit()
                await session.refresh(db_audio)
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StoreError(f"Failed to save audio file: {exc}") from exc
            return AudioFile.model_validate(db_audio)

    async def link_audio(
        self,
        selected_item_id: UUID,
        audio_file_id: UUID,
    ) -> Optional[SelectedItem]:
        table = SelectedItemRecord.__table__
        stmt = (
            update(table)
            .where(table.c.id == selected_item_id, table.c.audio_file_id.is_(None))
            .values(audio_file_id=audio_file_id)
            .returning(*table.c)
        )

        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                row = result.mappings().one_or_none()
                await session.commit()
                if row is None:
                    exists = await session.get(SelectedItemRecord, selected_item_id)
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StoreError(f"Failed to link audio to selected item: {exc}") from exc

        if row is not None:
            return SelectedItem.model_validate(dict(row))
        if exists is None:
            raise StoreError(f"Selected item {selected_item_id} not found")
        logger.warning(
            "Selected item %s is already linked; audio file %s left unlinked",
            selected_item_id,
            audio_file_id,
        )
        return None

    @staticmethod
    def _insert_for(session: AsyncSession) -> Callable[..., Any]:
        dialect = session.get_bind().dialect.name
        try:
            return _UPSERT_DIALECTS[dialect]
        except KeyError:
            raise StoreError(f"Atomic upsert is not supported on '{dialect}'") from None


__all__ = ["RecordStore", "SqlAlchemyRecordStore", "selection_values"]
