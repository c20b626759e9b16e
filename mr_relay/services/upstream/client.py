"""
Upstream provider client.

Thin wrapper over ``AsyncOpenAI`` that returns the provider's raw payloads
and turns SDK failures into relay errors. One instance is shared by the
whole application; it holds no per-request state.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from mr_relay.config.settings import Settings
from mr_relay.utils.errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.6
SPEECH_FORMAT = "mp3"
SPEECH_MEDIA_TYPE = "audio/mpeg"


class UpstreamClient:
    """Client for the provider's chat, realtime, speech and transcription APIs."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        # No retries: one upstream attempt per relay request, bounded by the timeout
        self.client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.upstream_timeout_seconds,
            max_retries=0,
            http_client=http_client,
        )

    async def close(self) -> None:
        await self.client.close()

    async def create_chat_completion(
        self, messages: List[Dict[str, Any]], model: str
    ) -> Any:
        """Run a chat completion and return the provider's JSON payload."""
        try:
            response = await self.client.chat.completions.with_raw_response.create(
                model=model,
                messages=messages,
                temperature=CHAT_TEMPERATURE,
            )
        except (APIStatusError, APIConnectionError) as e:
            raise self._translate("chat", e) from e
        return _json_payload("chat", response.http_response)

    async def create_realtime_session(self, model: str) -> Any:
        """Mint a short-lived realtime credential. Never cached."""
        try:
            response = await self.client.post(
                "/realtime/sessions",
                body={"model": model},
                cast_to=httpx.Response,
            )
        except (APIStatusError, APIConnectionError) as e:
            raise self._translate("session", e) from e
        return _json_payload("session", response)

    async def create_speech(self, text: str, voice: str, model: str) -> Tuple[bytes, str]:
        """
        Synthesize ``text`` as MP3.

        MP3 is requested through both the payload and the Accept header so a
        change in the provider's default format does not leak to clients.

        Returns:
            Audio bytes and the content type declared by the provider
        """
        try:
            response = await self.client.audio.speech.with_raw_response.create(
                model=model,
                input=text,
                voice=voice,
                response_format=SPEECH_FORMAT,
                extra_headers={"Accept": SPEECH_MEDIA_TYPE},
            )
        except (APIStatusError, APIConnectionError) as e:
            raise self._translate("tts", e) from e
        http_response = response.http_response
        return http_response.content, http_response.headers.get("content-type", "")

    async def create_transcription(
        self, filename: str, content: bytes, content_type: Optional[str], model: str
    ) -> Any:
        """Transcribe an audio upload and return the provider's JSON payload."""
        try:
            response = await self.client.audio.transcriptions.with_raw_response.create(
                model=model,
                file=(filename, content, content_type or "application/octet-stream"),
            )
        except (APIStatusError, APIConnectionError) as e:
            raise self._translate("stt", e) from e
        return _json_payload("stt", response.http_response)

    @staticmethod
    def _translate(endpoint: str, error: Exception) -> Exception:
        if isinstance(error, APIStatusError):
            upstream = error.response
            logger.warning(
                "Upstream %s failed with status %s", endpoint, upstream.status_code
            )
            return UpstreamError(
                endpoint,
                upstream.status_code,
                upstream.content,
                upstream.headers.get("content-type"),
            )
        logger.warning("Upstream %s unreachable: %s", endpoint, error)
        return TransportError(endpoint, error)


def _json_payload(endpoint: str, response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        logger.warning("Upstream %s returned a non-JSON body", endpoint)
        raise UpstreamError(
            endpoint, response.status_code, response.content, response.headers.get("content-type")
        ) from e
