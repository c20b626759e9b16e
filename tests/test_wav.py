"""
Tests for WAV parsing and encoding.
"""
import struct

import numpy as np
import pytest

from mr_relay.audio.wav import (
    WAVE_FORMAT_EXTENSIBLE,
    WAVE_FORMAT_IEEE_FLOAT,
    WAVE_FORMAT_PCM,
    decode_wav,
    encode_wav,
)

QUANTUM = 1 / 32768


def chunk(chunk_id: bytes, payload: bytes) -> bytes:
    """A RIFF chunk including the pad byte for odd sizes."""
    pad = b"\0" if len(payload) % 2 else b""
    return chunk_id + struct.pack("<I", len(payload)) + payload + pad


def fmt_chunk(format_tag: int, channels: int, sample_rate: int, bits: int) -> bytes:
    block_align = channels * bits // 8
    return chunk(
        b"fmt ",
        struct.pack(
            "<HHIIHH", format_tag, channels, sample_rate, sample_rate * block_align, block_align, bits
        ),
    )


def extensible_fmt_chunk(sub_format: int, channels: int, sample_rate: int, bits: int) -> bytes:
    block_align = channels * bits // 8
    guid_tail = b"\x00\x00\x00\x00\x10\x00\x80\x00\x00\xaa\x00\x38\x9b\x71"
    payload = struct.pack(
        "<HHIIHHHHI",
        WAVE_FORMAT_EXTENSIBLE,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits,
        22,
        bits,
        0x4,
    ) + struct.pack("<H", sub_format) + guid_tail
    assert len(payload) == 40
    return chunk(b"fmt ", payload)


def riff(*chunks: bytes) -> bytes:
    body = b"WAVE" + b"".join(chunks)
    return b"RIFF" + struct.pack("<I", len(body)) + body


def test_round_trip_within_one_quantization_step():
    rng = np.random.default_rng(7)
    samples = np.concatenate([rng.uniform(-1.0, 1.0, 1000), [-1.0, 0.0, 1.0, 0.999, -0.999]])

    decoded = decode_wav(encode_wav(samples, channels=1, sample_rate=16000))

    assert decoded is not None
    assert decoded.channels == 1
    assert decoded.sample_rate == 16000
    assert len(decoded.samples) == len(samples)
    assert np.max(np.abs(decoded.samples - samples)) <= QUANTUM + 1e-9


def test_encoded_header_layout():
    wav = encode_wav([0.0, 0.5], channels=2, sample_rate=48000)

    assert len(wav) == 44 + 4
    assert wav[0:4] == b"RIFF" and wav[8:12] == b"WAVE"
    assert struct.unpack_from("<I", wav, 4)[0] == len(wav) - 8
    format_tag, channels, rate, byte_rate, block_align, bits = struct.unpack_from("<HHIIHH", wav, 20)
    assert (format_tag, channels, rate, byte_rate, block_align, bits) == (1, 2, 48000, 192000, 4, 16)
    assert wav[36:40] == b"data"
    assert struct.unpack_from("<I", wav, 40)[0] == 4


def test_encoding_clamps_out_of_range_samples():
    decoded = decode_wav(encode_wav([2.0, -2.0]))

    assert decoded.samples[0] == pytest.approx(32767 / 32768)
    assert decoded.samples[1] == -1.0


def test_unknown_odd_sized_chunk_between_fmt_and_data_is_skipped():
    pcm = struct.pack("<4h", 0, 16384, -16384, 32767)
    wav = riff(
        fmt_chunk(WAVE_FORMAT_PCM, 1, 8000, 16),
        chunk(b"junk", b"abc"),
        chunk(b"LIST", b"INFOISFT" + struct.pack("<I", 5) + b"lavf\0" + b"\0"),
        chunk(b"data", pcm),
    )

    decoded = decode_wav(wav)

    assert decoded is not None
    assert decoded.sample_rate == 8000
    np.testing.assert_allclose(decoded.samples, [0.0, 0.5, -0.5, 32767 / 32768])


def test_data_before_fmt_uses_defaults():
    pcm = struct.pack("<22h", *range(22))
    wav = riff(chunk(b"data", pcm), fmt_chunk(WAVE_FORMAT_PCM, 2, 44100, 16))

    decoded = decode_wav(wav)

    # Scanning stops at data, so the 16 kHz mono defaults apply
    assert decoded is not None
    assert (decoded.channels, decoded.sample_rate) == (1, 16000)


def test_stereo_frames():
    pcm = struct.pack("<6h", 0, 0, 8192, -8192, 16384, -16384)
    decoded = decode_wav(riff(fmt_chunk(WAVE_FORMAT_PCM, 2, 22050, 16), chunk(b"data", pcm)))

    assert decoded.channels == 2
    assert decoded.frames == 3
    assert decoded.duration_seconds == pytest.approx(3 / 22050)


def test_pcm24():
    values = [0, 4194304, -4194304, 8388607, -8388608]
    pcm = b"".join(struct.pack("<i", v)[:3] for v in values)
    wav = riff(fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 24), chunk(b"data", pcm + b"\0" * 9))

    decoded = decode_wav(wav)

    assert decoded is not None
    np.testing.assert_allclose(
        decoded.samples[:5], [0.0, 0.5, -0.5, 8388607 / 8388608, -1.0], atol=1e-7
    )


def test_pcm32_integer():
    pcm = struct.pack("<4i", 0, 1073741824, -1073741824, -2147483648)
    wav = riff(fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 32), chunk(b"data", pcm + b"\0" * 8))

    decoded = decode_wav(wav)

    np.testing.assert_allclose(decoded.samples[:4], [0.0, 0.5, -0.5, -1.0])


def test_float32_is_clamped():
    pcm = struct.pack("<6f", 0.0, 0.25, -0.75, 1.5, -3.0, 1.0)
    wav = riff(fmt_chunk(WAVE_FORMAT_IEEE_FLOAT, 1, 24000, 32), chunk(b"data", pcm))

    decoded = decode_wav(wav)

    assert decoded.sample_rate == 24000
    np.testing.assert_allclose(decoded.samples, [0.0, 0.25, -0.75, 1.0, -1.0, 1.0])


def test_extensible_float_resolves_sub_format():
    pcm = struct.pack("<6f", 0.5, -0.5, 0.125, -0.125, 0.0, 1.0)
    wav = riff(extensible_fmt_chunk(WAVE_FORMAT_IEEE_FLOAT, 2, 48000, 32), chunk(b"data", pcm))

    decoded = decode_wav(wav)

    assert decoded is not None
    assert (decoded.channels, decoded.sample_rate, decoded.frames) == (2, 48000, 3)
    np.testing.assert_allclose(decoded.samples, [0.5, -0.5, 0.125, -0.125, 0.0, 1.0])


def test_extensible_pcm_resolves_sub_format():
    pcm = struct.pack("<12h", *([16384, -16384] * 6))
    wav = riff(extensible_fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 16), chunk(b"data", pcm))

    decoded = decode_wav(wav)

    np.testing.assert_allclose(decoded.samples[:2], [0.5, -0.5])


@pytest.mark.parametrize(
    "wav",
    [
        b"",
        b"RIFF",
        riff(fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 16))[:30],
        b"RIFX" + riff(fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 16), chunk(b"data", b"\0" * 32))[4:],
        # no data chunk
        riff(fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 16), chunk(b"LIST", b"\0" * 24)),
        # data chunk claims more bytes than present
        riff(fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 16)) + b"data" + struct.pack("<I", 4096) + b"\0" * 16,
        # unsupported bit depth
        riff(fmt_chunk(WAVE_FORMAT_PCM, 1, 16000, 8), chunk(b"data", b"\x80" * 32)),
        # float with the wrong width
        riff(fmt_chunk(WAVE_FORMAT_IEEE_FLOAT, 1, 16000, 64), chunk(b"data", b"\0" * 32)),
        # compressed format tag (IMA ADPCM)
        riff(fmt_chunk(0x0011, 1, 16000, 16), chunk(b"data", b"\0" * 32)),
        # zero channels
        riff(fmt_chunk(WAVE_FORMAT_PCM, 0, 16000, 16), chunk(b"data", b"\0" * 32)),
        # fmt chunk too short
        riff(chunk(b"fmt ", b"\x01\x00\x01\x00"), chunk(b"data", b"\0" * 32)),
    ],
)
def test_malformed_input_returns_none(wav):
    assert decode_wav(wav) is None
