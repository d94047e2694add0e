"""Pydantic domain models returned by the record store."""

from .models import AudioFile, AudioFileCreate, SelectedItem

__all__ = ["AudioFile", "AudioFileCreate", "SelectedItem"]
