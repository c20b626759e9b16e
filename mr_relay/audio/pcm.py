"""
PCM16 helpers for realtime audio streaming.

Realtime sessions exchange mono little-endian 16-bit PCM, base64 encoded
inside ``input_audio_buffer.append`` events.
"""
import base64
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

Samples = Union[Sequence[float], np.ndarray]


def floats_to_pcm16(samples: Samples, count: Optional[int] = None) -> bytes:
    """Convert floats in [-1, 1] to PCM16, optionally only the first ``count``."""
    values = np.asarray(samples, dtype=np.float64)
    if count is not None:
        values = values[:count]
    ints = np.clip(np.rint(values * 32767.0), -32768, 32767).astype("<i2")
    return ints.tobytes()


def pcm16_to_floats(data: bytes) -> np.ndarray:
    """Convert PCM16 bytes to floats in [-1, 1]. A trailing odd byte is ignored."""
    ints = np.frombuffer(data[:len(data) - len(data) % 2], dtype="<i2")
    return np.clip(ints / 32767.0, -1.0, 1.0).astype(np.float32)


def encode_audio_chunk(samples: Samples, count: Optional[int] = None) -> str:
    return base64.b64encode(floats_to_pcm16(samples, count)).decode("ascii")


def build_append_event(samples: Samples, count: Optional[int] = None) -> Dict[str, Any]:
    """Realtime event appending one chunk of microphone audio."""
    return {
        "type": "input_audio_buffer.append",
        "audio": encode_audio_chunk(samples, count),
    }
