"""SQLAlchemy model for synthesized audio files."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, Uuid

from narrator.models.base import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AudioFileRecord(Base):
    """Metadata for one uploaded narration; immutable once written."""

    __tablename__ = "audio_files"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    file_url = Column(Text, nullable=False)
    duration_seconds = Column(Float, nullable=False)
    file_size_bytes = Column(Integer, nullable=False)
    format = Column(String(16), nullable=False, default="mp3")
    provider = Column(String(64), nullable=False)
    voice_used = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)


__all__ = ["AudioFileRecord", "utc_now"]
