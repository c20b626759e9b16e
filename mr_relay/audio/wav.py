"""
RIFF/WAVE parsing and encoding.

The parser walks chunks in any order until it finds ``data``, so files with
``LIST``/``fact`` or vendor chunks between ``fmt `` and ``data`` still
decode. Supported encodings: integer PCM at 16, 24 and 32 bits and 32-bit
IEEE float, including WAVE_FORMAT_EXTENSIBLE headers. Anything else yields
None rather than an exception.
"""
import logging
import struct
from typing import Optional, Sequence, Union

import numpy as np

from mr_relay.audio.types import DecodedAudio

logger = logging.getLogger(__name__)

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_IEEE_FLOAT = 0x0003
WAVE_FORMAT_EXTENSIBLE = 0xFFFE

HEADER_SIZE = 44
CHUNK_HEADER_SIZE = 8
FMT_MIN_SIZE = 16
FMT_EXTENSIBLE_MIN_SIZE = 40
# Offset of the SubFormat GUID inside an extensible fmt chunk; its first
# two bytes are the effective format tag
SUBFORMAT_OFFSET = 24


def decode_wav(data: bytes) -> Optional[DecodedAudio]:
    """
    Decode a WAV file into normalized float samples.

    Args:
        data: Complete file contents

    Returns:
        DecodedAudio, or None for truncated, malformed or unsupported input
    """
    if not data or len(data) < HEADER_SIZE:
        return None
    if data[0:4] != b"RIFF" or data[8:12] != b"WAVE":
        return None

    pos = 12
    channels, sample_rate, bits = 1, 16000, 16
    format_tag = WAVE_FORMAT_PCM
    sub_format = None
    data_pos, data_size = -1, -1

    while pos + CHUNK_HEADER_SIZE <= len(data):
        chunk_id = data[pos:pos + 4]
        (chunk_size,) = struct.unpack_from("<i", data, pos + 4)
        pos += CHUNK_HEADER_SIZE
        if chunk_size < 0 or pos + chunk_size > len(data):
            return None

        if chunk_id == b"fmt ":
            if chunk_size < FMT_MIN_SIZE:
                return None
            format_tag, channels, sample_rate = struct.unpack_from("<HHI", data, pos)
            (bits,) = struct.unpack_from("<H", data, pos + 14)
            if format_tag == WAVE_FORMAT_EXTENSIBLE and chunk_size >= FMT_EXTENSIBLE_MIN_SIZE:
                (sub_format,) = struct.unpack_from("<H", data, pos + SUBFORMAT_OFFSET)
        elif chunk_id == b"data":
            data_pos, data_size = pos, chunk_size
            break

        # Chunks are word aligned: odd sizes carry one pad byte
        pos += chunk_size + (chunk_size & 1)

    if data_pos < 0 or data_size <= 0 or channels <= 0:
        return None

    if format_tag == WAVE_FORMAT_EXTENSIBLE:
        format_tag = sub_format if sub_format is not None else WAVE_FORMAT_PCM

    samples = _decode_samples(data[data_pos:data_pos + data_size], format_tag, bits)
    if samples is None:
        logger.debug(f"Unsupported WAV encoding: format={format_tag:#06x} bits={bits}")
        return None

    frames = len(samples) // channels
    if frames <= 0:
        return None

    return DecodedAudio(
        samples=samples[:frames * channels],
        channels=channels,
        sample_rate=sample_rate,
    )


def _decode_samples(raw: bytes, format_tag: int, bits: int) -> Optional[np.ndarray]:
    if format_tag == WAVE_FORMAT_IEEE_FLOAT:
        if bits != 32:
            return None
        samples = np.frombuffer(_trim(raw, 4), dtype="<f4")
        return np.clip(samples, -1.0, 1.0).astype(np.float32)

    if format_tag != WAVE_FORMAT_PCM:
        return None

    if bits == 16:
        ints = np.frombuffer(_trim(raw, 2), dtype="<i2")
        return (ints / 32768.0).astype(np.float32)

    if bits == 24:
        triplets = np.frombuffer(_trim(raw, 3), dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        ints = triplets[:, 0] | (triplets[:, 1] << 8) | (triplets[:, 2] << 16)
        ints = np.where(ints & 0x800000, ints - 0x1000000, ints)
        return np.clip(ints / 8388608.0, -1.0, 1.0).astype(np.float32)

    if bits == 32:
        ints = np.frombuffer(_trim(raw, 4), dtype="<i4")
        return np.clip(ints / 2147483648.0, -1.0, 1.0).astype(np.float32)

    return None


def _trim(raw: bytes, width: int) -> bytes:
    return raw[:len(raw) - len(raw) % width]


def encode_wav(
    samples: Union[Sequence[float], np.ndarray],
    channels: int = 1,
    sample_rate: int = 16000,
) -> bytes:
    """
    Encode interleaved float samples in [-1, 1] as a 16-bit PCM WAV file.

    Samples are scaled by 32768 and clamped to the int16 range, so decoding
    with ``decode_wav`` reproduces each sample within one quantization step.
    """
    values = np.asarray(samples, dtype=np.float64)
    pcm = np.clip(np.rint(values * 32768.0), -32768, 32767).astype("<i2")
    payload = pcm.tobytes()

    block_align = channels * 2
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        HEADER_SIZE + len(payload) - 8,
        b"WAVE",
        b"fmt ",
        FMT_MIN_SIZE,
        WAVE_FORMAT_PCM,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        16,
        b"data",
        len(payload),
    )
    return header + payload
