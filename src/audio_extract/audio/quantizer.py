from __future__ import annotations

import numpy as np

from .types import PcmBuffer, RenderedAudio

_NEG_SCALE = 32768.0
_POS_SCALE = 32767.0


def quantize_samples(samples: np.ndarray) -> np.ndarray:
    """Map floats to int16: clamp to [-1, 1], scale asymmetrically, round half up.

    Non-finite values become 0.
    """
    values = np.asarray(samples, dtype=np.float64)
    values = np.where(np.isfinite(values), values, 0.0)
    clamped = np.clip(values, -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * _NEG_SCALE, clamped * _POS_SCALE)
    return np.floor(scaled + 0.5).astype("<i2")


def quantize(rendered: RenderedAudio) -> PcmBuffer:
    """Quantize and interleave frame-major (ch0, ch1, ... for each frame)."""
    if rendered.frame_count == 0:
        interleaved = np.zeros(0, dtype="<i2")
    else:
        frames = np.stack(rendered.channels, axis=1)
        interleaved = np.ascontiguousarray(quantize_samples(frames)).reshape(-1)
    interleaved.setflags(write=False)
    return PcmBuffer(
        channel_count=rendered.channel_count,
        sample_rate=rendered.sample_rate,
        interleaved_samples=interleaved,
    )
