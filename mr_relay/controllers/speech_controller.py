"""
Speech controller.

Handles text-to-speech and speech-to-text relaying.
"""
import logging
from typing import Any, Optional

from starlette.datastructures import FormData, UploadFile

from mr_relay.api.models.speech import TtsRequest
from mr_relay.config.settings import Settings
from mr_relay.services.upstream import UpstreamClient
from mr_relay.utils.errors import ValidationError

logger = logging.getLogger(__name__)

# Multipart field names accepted for the audio upload, in lookup order
ACCEPTED_AUDIO_FIELDS = ("audio", "file", "audio_file")


class SpeechController:
    """Controller for TTS and STT relay operations."""

    def __init__(self, upstream: UpstreamClient, settings: Settings):
        self.upstream = upstream
        self.settings = settings

    def _validate_tts(self, payload: Any) -> TtsRequest:
        """
        Validate a TTS request body.

        Raises:
            ValidationError: If text is missing or empty
        """
        if not isinstance(payload, dict) or not payload.get("text"):
            raise ValidationError("text required")

        text = payload["text"]
        voice = payload.get("voice")
        if not isinstance(text, str):
            raise ValidationError("text must be a string")
        if voice is not None and not isinstance(voice, str):
            raise ValidationError("voice must be a string")

        return TtsRequest(text=text, voice=voice or None)

    async def synthesize(self, payload: Any) -> bytes:
        request = self._validate_tts(payload)
        audio, declared_type = await self.upstream.create_speech(
            text=request.text,
            voice=request.voice or self.settings.tts_default_voice,
            model=self.settings.tts_model,
        )
        logger.debug(f"TTS returned {len(audio)} bytes declared as {declared_type!r}")
        return audio

    @staticmethod
    def find_upload(form: FormData) -> Optional[UploadFile]:
        """Return the first file found under an accepted field name."""
        for field in ACCEPTED_AUDIO_FIELDS:
            value = form.get(field)
            if isinstance(value, UploadFile):
                return value
        return None

    async def transcribe(self, form: FormData) -> Any:
        """
        Relay an audio upload to the transcription API.

        Raises:
            ValidationError: If no file was attached, it is empty, or it
                exceeds the configured size ceiling
        """
        upload = self.find_upload(form)
        if upload is None:
            raise ValidationError(
                f"audio file required (field name: {', '.join(ACCEPTED_AUDIO_FIELDS)})"
            )

        limit = self.settings.max_audio_bytes
        content = await upload.read(limit + 1)
        if len(content) > limit:
            raise ValidationError(f"audio file exceeds the {limit} byte limit")
        if not content:
            raise ValidationError("audio file is empty")

        return await self.upstream.create_transcription(
            filename=upload.filename or "audio.wav",
            content=content,
            content_type=upload.content_type,
            model=self.settings.stt_model,
        )
