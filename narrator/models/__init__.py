"""SQLAlchemy models for the narration store."""

from .base import Base
from .audio_file import AudioFileRecord  # noqa: F401
from .selected_item import SelectedItemRecord  # noqa: F401

__all__ = [
    "Base",
    "AudioFileRecord",
    "SelectedItemRecord",
]
