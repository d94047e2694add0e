from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SelectedItem(BaseModel):
    """Domain model for a selected candidate post"""

    id: UUID
    source_id: str
    collection: str
    title: str
    body: Optional[str] = None
    primary_signal: int
    secondary_signal: int
    author: str
    source_created_at: datetime
    selection_score: float
    audio_file_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_linked(self) -> bool:
        return self.audio_file_id is not None


class AudioFile(BaseModel):
    """Domain model for a synthesized audio artifact"""

    id: UUID
    file_url: str
    duration_seconds: float
    file_size_bytes: int
    format: str = "mp3"
    provider: str
    voice_used: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AudioFileCreate(BaseModel):
    """Metadata required to persist an audio artifact"""

    file_url: str
    duration_seconds: float
    file_size_bytes: int
    format: str = "mp3"
    provider: str
    voice_used: str
