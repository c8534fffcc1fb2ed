from __future__ import annotations

import struct

import numpy as np

from .types import PcmBuffer

WAV_HEADER_SIZE = 44
_FMT_CHUNK_SIZE = 16
_PCM_FORMAT = 1
_BITS_PER_SAMPLE = 16
_MAX_DATA_SIZE = 0xFFFFFFFF - 36

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def build_header(*, channel_count: int, sample_rate: int, data_size: int) -> bytes:
    block_align = channel_count * 2
    return _HEADER.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        _PCM_FORMAT,
        channel_count,
        sample_rate,
        sample_rate * block_align,
        block_align,
        _BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def write_wav(pcm: PcmBuffer) -> bytes:
    """Serialize a PcmBuffer as a canonical 44-byte-header PCM WAV file."""
    if not 1 <= pcm.channel_count <= 0x7FFF:
        raise ValueError("channel_count out of range")
    if pcm.sample_rate <= 0 or pcm.sample_rate * pcm.channel_count * 2 > 0xFFFFFFFF:
        raise ValueError("sample_rate out of range")
    if pcm.bytes_per_sample != 2:
        raise ValueError("only 16-bit PCM is supported")
    samples = np.asarray(pcm.interleaved_samples)
    if samples.ndim != 1 or len(samples) % pcm.channel_count:
        raise ValueError("interleaved sample count must be a multiple of channel_count")
    data = samples.astype("<i2", copy=False).tobytes()
    if len(data) > _MAX_DATA_SIZE:
        raise ValueError("PCM data too large for a RIFF container")
    return build_header(channel_count=pcm.channel_count, sample_rate=pcm.sample_rate, data_size=len(data)) + data
