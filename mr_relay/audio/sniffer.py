"""
Audio format sniffing.

The provider sometimes labels audio with a generic or wrong content type
while the leading bytes are unambiguous, so the bytes decide first and the
declared type is only a fallback.
"""
import logging
from enum import Enum
from typing import Callable, Optional

from mr_relay.audio.types import DecodedAudio
from mr_relay.audio.wav import decode_wav

logger = logging.getLogger(__name__)

# Anything shorter cannot hold a playable frame
MIN_AUDIO_BYTES = 8

Mp3Decoder = Callable[[bytes], Optional[DecodedAudio]]


class AudioFormat(str, Enum):
    WAV = "wav"
    MP3 = "mp3"
    UNKNOWN = "unknown"


def sniff_audio_format(data: bytes, content_type: Optional[str] = None) -> AudioFormat:
    """
    Classify an audio blob, first match wins:

    1. ``RIFF`` at offset 0 and ``WAVE`` at offset 8: WAV
    2. ``ID3`` tag, or an MPEG frame sync (0xFF then top 3 bits set): MP3
    3. declared content type mentioning ``mpeg``/``mp3`` or ``wav``
    4. UNKNOWN
    """
    if len(data) >= 12 and data[0:4] == b"RIFF" and data[8:12] == b"WAVE":
        return AudioFormat.WAV

    if data[0:3] == b"ID3":
        return AudioFormat.MP3
    if len(data) >= 2 and data[0] == 0xFF and (data[1] & 0xE0) == 0xE0:
        return AudioFormat.MP3

    declared = (content_type or "").lower()
    if "mpeg" in declared or "mp3" in declared:
        return AudioFormat.MP3
    if "wav" in declared:
        return AudioFormat.WAV

    return AudioFormat.UNKNOWN


def decode_audio(
    data: Optional[bytes],
    content_type: Optional[str] = None,
    mp3_decoder: Optional[Mp3Decoder] = None,
) -> Optional[DecodedAudio]:
    """
    Decode an audio blob along the path its sniffed format selects.

    MP3 decoding is delegated to ``mp3_decoder``. Unknown input is probed as
    MP3 first and WAV second; playable audio is preferred over strict
    labeling. Returns None when nothing decodes.
    """
    if not data or len(data) < MIN_AUDIO_BYTES:
        logger.warning("Empty audio payload")
        return None

    audio_format = sniff_audio_format(data, content_type)
    if audio_format is AudioFormat.MP3:
        return _try_mp3(data, mp3_decoder)
    if audio_format is AudioFormat.WAV:
        return decode_wav(data)

    logger.warning(
        f"Unknown audio format (content-type={content_type!r}, bytes={len(data)}); "
        "probing mp3 then wav"
    )
    return _try_mp3(data, mp3_decoder) or decode_wav(data)


def _try_mp3(data: bytes, mp3_decoder: Optional[Mp3Decoder]) -> Optional[DecodedAudio]:
    if mp3_decoder is None:
        logger.debug("No mp3 decoder configured")
        return None
    try:
        return mp3_decoder(data)
    except Exception as e:
        logger.warning(f"mp3 decode failed: {e}")
        return None
