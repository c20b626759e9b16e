"""
Async client for the relay, as used by the headset.

Covers typed chat with a duplicate-send guard, push-to-talk transcription,
spoken replies decoded through the audio sniffer, and ephemeral realtime
keys.
"""
import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from mr_relay.audio.sniffer import AudioFormat, Mp3Decoder, decode_audio, sniff_audio_format
from mr_relay.audio.types import DecodedAudio

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are an MR assistant."
DUPLICATE_WINDOW_SECONDS = 0.3


class RelayClientError(Exception):
    """The relay answered with a failure or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SendGuard:
    """
    Debounce chat submissions.

    A send is refused while another is in flight, or when the same text was
    accepted less than ``window_seconds`` ago (Enter and the send button
    firing for one message).
    """

    def __init__(
        self,
        window_seconds: float = DUPLICATE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.clock = clock
        self._last_text: Optional[str] = None
        self._last_time = -math.inf
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def try_acquire(self, text: str) -> bool:
        if self._in_flight:
            return False
        now = self.clock()
        if text == self._last_text and now - self._last_time < self.window_seconds:
            return False
        self._last_text = text
        self._last_time = now
        self._in_flight = True
        return True

    def release(self) -> None:
        self._in_flight = False


def find_ephemeral_key(payload: Any) -> Optional[str]:
    """
    Locate the ephemeral key in a /session payload.

    ``client_secret.value`` is checked first; otherwise the first string
    stored under a ``value`` key anywhere in the payload is used, since the
    nesting differs between provider API versions.
    """
    if isinstance(payload, dict):
        secret = payload.get("client_secret")
        if isinstance(secret, dict) and isinstance(secret.get("value"), str) and secret["value"]:
            return secret["value"]
        value = payload.get("value")
        if isinstance(value, str) and value:
            return value
        children = list(payload.values())
    elif isinstance(payload, list):
        children = payload
    else:
        return None

    for child in children:
        found = find_ephemeral_key(child)
        if found:
            return found
    return None


class RelayClient:
    """Client for the relay's /chat, /stt, /tts and /session endpoints."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8787",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ):
        self.base_url = base_url.rstrip("/")
        self.system_prompt = system_prompt
        self.guard = SendGuard()
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _raise_for_status(response: httpx.Response, label: str) -> None:
        if response.is_success:
            return
        raise RelayClientError(
            f"{label} failed with status {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )

    def build_messages(self, user_text: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": user_text},
        ]

    async def chat(self, text: Optional[str]) -> Optional[str]:
        """
        Send one user message and return the reply text.

        Returns None without calling the relay when the trimmed text is
        empty or the send guard rejects it as a duplicate. A relay body
        without a ``text`` field is returned as-is.
        """
        message = (text or "").strip()
        if not message:
            return None
        if not self.guard.try_acquire(message):
            logger.debug("Dropped duplicate chat submission")
            return None

        try:
            response = await self.http.post(
                self._url("/chat"), json={"messages": self.build_messages(message)}
            )
            self._raise_for_status(response, "chat")
            return _reply_text(response)
        finally:
            self.guard.release()

    async def transcribe(self, wav: bytes, filename: str = "speech.wav") -> str:
        """Upload recorded WAV audio and return the transcript."""
        response = await self.http.post(
            self._url("/stt"), files={"audio": (filename, wav, "audio/wav")}
        )
        self._raise_for_status(response, "stt")

        text = _reply_text(response).strip()
        if not text:
            raise RelayClientError("STT returned empty text", status_code=response.status_code)
        return text

    async def speak(
        self, text: str, mp3_decoder: Optional[Mp3Decoder] = None
    ) -> Optional[DecodedAudio]:
        """
        Synthesize ``text`` and decode the audio by sniffing its bytes.

        The relay answers with MP3, and MP3 is only decoded through
        ``mp3_decoder``; without one, MP3 audio yields None. WAV is decoded
        natively whatever the declared type.
        """
        response = await self.http.post(self._url("/tts"), json={"text": text})
        self._raise_for_status(response, "tts")

        content_type = response.headers.get("content-type")
        audio_format = sniff_audio_format(response.content, content_type)
        if mp3_decoder is None and audio_format is AudioFormat.MP3:
            logger.warning("TTS returned MP3 audio but no mp3_decoder was given; audio dropped")
            return None
        return decode_audio(response.content, content_type, mp3_decoder=mp3_decoder)

    async def fetch_ephemeral_key(self) -> str:
        """Mint a realtime session through the relay and return its key."""
        response = await self.http.get(self._url("/session"))
        self._raise_for_status(response, "session")

        try:
            payload = response.json()
        except ValueError as e:
            raise RelayClientError("Session response is not JSON", body=response.text) from e

        key = find_ephemeral_key(payload)
        if not key:
            raise RelayClientError("No ephemeral key in /session response", body=response.text)
        return key


def _reply_text(response: httpx.Response) -> str:
    """The ``text`` field of a JSON reply, else the raw body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and isinstance(payload.get("text"), str):
        return payload["text"]
    return response.text
