"""
Request and response models for speech endpoints.
"""
from typing import Optional

from pydantic import BaseModel


class TtsRequest(BaseModel):
    """Text to synthesize. The output encoding is always MP3."""

    text: str
    voice: Optional[str] = None


class TranscriptionResponse(BaseModel):
    """Documented shape of the transcription passthrough; extra fields are kept."""

    model_config = {"extra": "allow"}

    text: str
