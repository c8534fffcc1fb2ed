"""
Shared fixtures for audio-extract tests.
"""

import io

import numpy as np
import pytest
import soundfile as sf

from audio_extract.audio.types import DecodedAudio, RenderedAudio


def wav_bytes(frames: np.ndarray, sample_rate: int, subtype: str = "PCM_16") -> bytes:
    buf = io.BytesIO()
    sf.write(buf, frames, sample_rate, format="WAV", subtype=subtype)
    return buf.getvalue()


def rendered_from(frames: np.ndarray, sample_rate: int) -> RenderedAudio:
    frames = np.asarray(frames, dtype=np.float32)
    if frames.ndim == 1:
        frames = frames[:, None]
    return RenderedAudio(
        channel_count=frames.shape[1],
        sample_rate=sample_rate,
        frame_count=frames.shape[0],
        channels=tuple(np.ascontiguousarray(frames[:, idx]) for idx in range(frames.shape[1])),
    )


@pytest.fixture
def stereo_frames():
    t = np.arange(2000, dtype=np.float32) / 8000.0
    left = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    right = 0.25 * np.sin(2 * np.pi * 220.0 * t)
    return np.stack([left, right], axis=1).astype(np.float32)


@pytest.fixture
def stereo_wav(stereo_frames):
    return wav_bytes(stereo_frames, 8000)


@pytest.fixture
def stereo_rendered(stereo_frames):
    return rendered_from(stereo_frames, 8000)


@pytest.fixture
def mono_decoded():
    frames = np.linspace(-1.0, 1.0, 300, dtype=np.float32)
    return DecodedAudio.from_frames(frames, 22050)
