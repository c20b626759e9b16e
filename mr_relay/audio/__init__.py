from .pcm import build_append_event, encode_audio_chunk, floats_to_pcm16, pcm16_to_floats
from .sniffer import AudioFormat, decode_audio, sniff_audio_format
from .types import DecodedAudio
from .wav import decode_wav, encode_wav

__all__ = [
    "AudioFormat",
    "DecodedAudio",
    "build_append_event",
    "decode_audio",
    "decode_wav",
    "encode_audio_chunk",
    "encode_wav",
    "floats_to_pcm16",
    "pcm16_to_floats",
    "sniff_audio_format",
]
