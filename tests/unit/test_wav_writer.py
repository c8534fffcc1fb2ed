import io
import struct
import wave

import numpy as np
import pytest
import soundfile as sf

from audio_extract.audio.quantizer import quantize
from audio_extract.audio.types import PcmBuffer
from audio_extract.audio.wav_writer import WAV_HEADER_SIZE, build_header, write_wav

from conftest import rendered_from


def _pcm(samples, channels=1, rate=8000) -> PcmBuffer:
    return PcmBuffer(channel_count=channels, sample_rate=rate, interleaved_samples=np.asarray(samples, dtype="<i2"))


@pytest.mark.parametrize("channels,frames,rate", [(1, 0, 8000), (1, 7, 44100), (2, 5, 48000), (6, 3, 96000)])
def test_header_sizes_match_data(channels, frames, rate):
    pcm = _pcm(np.arange(frames * channels), channels=channels, rate=rate)

    blob = write_wav(pcm)

    data_size = frames * channels * 2
    assert len(blob) == WAV_HEADER_SIZE + data_size
    assert struct.unpack_from("<I", blob, 4)[0] == 36 + data_size
    assert struct.unpack_from("<I", blob, 40)[0] == data_size


def test_header_layout_is_canonical():
    header = build_header(channel_count=2, sample_rate=44100, data_size=8)

    assert header[0:4] == b"RIFF"
    assert header[8:12] == b"WAVE"
    assert header[12:16] == b"fmt "
    assert header[36:40] == b"data"
    fmt_size, audio_format, channels, rate, byte_rate, block_align, bits = struct.unpack_from("<IHHIIHH", header, 16)
    assert (fmt_size, audio_format, channels, rate) == (16, 1, 2, 44100)
    assert byte_rate == 44100 * 2 * 2
    assert block_align == 4
    assert bits == 16


def test_samples_are_little_endian_interleaved():
    blob = write_wav(_pcm([1, -2, 32767, -32768], channels=2))

    assert blob[44:] == struct.pack("<4h", 1, -2, 32767, -32768)


def test_mono_one_second_silence_scenario():
    rendered = rendered_from(np.zeros(8000, dtype=np.float32), 8000)

    blob = write_wav(quantize(rendered))

    assert struct.unpack_from("<I", blob, 40)[0] == 16000
    assert len(blob) == 16044
    assert blob[44:] == b"\x00" * 16000


def test_standard_readers_round_trip(stereo_rendered):
    pcm = quantize(stereo_rendered)
    blob = write_wav(pcm)

    with wave.open(io.BytesIO(blob), "rb") as reader:
        assert reader.getnchannels() == 2
        assert reader.getframerate() == 8000
        assert reader.getsampwidth() == 2
        raw = reader.readframes(reader.getnframes())
    assert np.array_equal(np.frombuffer(raw, dtype="<i2"), pcm.interleaved_samples)

    decoded, rate = sf.read(io.BytesIO(blob), dtype="float32", always_2d=True)
    assert rate == 8000
    assert decoded.shape == (stereo_rendered.frame_count, 2)
    for ch in range(2):
        # within one LSB of the source floats
        assert np.max(np.abs(decoded[:, ch] - stereo_rendered.channels[ch])) <= 1.0 / 32767.0 + 1e-6


@pytest.mark.parametrize(
    "pcm",
    [
        PcmBuffer(channel_count=0, sample_rate=8000, interleaved_samples=np.zeros(0, dtype="<i2")),
        PcmBuffer(channel_count=1, sample_rate=0, interleaved_samples=np.zeros(2, dtype="<i2")),
        PcmBuffer(channel_count=2, sample_rate=8000, interleaved_samples=np.zeros(3, dtype="<i2")),
    ],
)
def test_malformed_buffers_are_rejected(pcm):
    with pytest.raises(ValueError):
        write_wav(pcm)
