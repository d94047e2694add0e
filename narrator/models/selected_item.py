"""SQLAlchemy model for selected candidate posts."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from narrator.models.audio_file import utc_now
from narrator.models.base import Base


class SelectedItemRecord(Base):
    """A post chosen for narration; ``source_id`` is unique across runs."""

    __tablename__ = "selected_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    source_id = Column(String(64), unique=True, nullable=False, index=True)
    collection = Column(String(128), nullable=False, index=True)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=True)
    primary_signal = Column(Integer, nullable=False)
    secondary_signal = Column(Integer, nullable=False)
    author = Column(String(128), nullable=False)
    source_created_at = Column(DateTime(timezone=True), nullable=False)
    selection_score = Column(Float, nullable=False)
    audio_file_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("audio_files.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)

    audio_file = relationship("AudioFileRecord", lazy="noload")


__all__ = ["SelectedItemRecord"]
