from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

import numpy as np

from ..formats import TargetFormat


@dataclass(frozen=True, slots=True)
class MediaInput:
    """Opaque media bytes supplied by the caller."""

    data: bytes
    content_type: str
    filename: Optional[str] = None
    extra: Mapping[str, str] | None = None


def _check_channels(channels: Sequence[np.ndarray], frame_count: int, channel_count: int, sample_rate: int) -> None:
    if sample_rate <= 0:
        raise ValueError("sample_rate must be positive")
    if channel_count < 1:
        raise ValueError("at least one channel required")
    if len(channels) != channel_count:
        raise ValueError("channel array count does not match channel_count")
    for ch in channels:
        if ch.ndim != 1 or ch.shape[0] != frame_count:
            raise ValueError("every channel must hold exactly frame_count samples")


@dataclass(frozen=True, slots=True)
class DecodedAudio:
    """Per-channel float32 sample arrays produced by a decoder.

    Channel arrays are made read-only on construction; the renderer only reads them.
    """

    channel_count: int
    sample_rate: int
    frame_count: int
    channels: tuple[np.ndarray, ...]

    def __post_init__(self) -> None:
        _check_channels(self.channels, self.frame_count, self.channel_count, self.sample_rate)
        for ch in self.channels:
            ch.setflags(write=False)

    @classmethod
    def from_frames(cls, frames: np.ndarray, sample_rate: int) -> "DecodedAudio":
        """Build from a ``(frames, channels)`` array as returned by soundfile."""
        if frames.ndim == 1:
            frames = frames[:, None]
        channels = tuple(
            np.ascontiguousarray(frames[:, idx], dtype=np.float32) for idx in range(frames.shape[1])
        )
        return cls(
            channel_count=frames.shape[1],
            sample_rate=int(sample_rate),
            frame_count=frames.shape[0],
            channels=channels,
        )

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / float(self.sample_rate)


@dataclass(frozen=True, slots=True)
class RenderedAudio:
    """Final signal after the offline render pass."""

    channel_count: int
    sample_rate: int
    frame_count: int
    channels: tuple[np.ndarray, ...]

    def __post_init__(self) -> None:
        _check_channels(self.channels, self.frame_count, self.channel_count, self.sample_rate)
        for ch in self.channels:
            ch.setflags(write=False)

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / float(self.sample_rate)

    def interleaved_float32(self) -> np.ndarray:
        """Frame-major float32 samples, used to feed streaming encoders."""
        if self.frame_count == 0:
            return np.zeros(0, dtype="<f4")
        return np.ascontiguousarray(np.stack(self.channels, axis=1).astype("<f4")).reshape(-1)


@dataclass(frozen=True, slots=True)
class PcmBuffer:
    """Interleaved signed 16-bit samples."""

    channel_count: int
    sample_rate: int
    interleaved_samples: np.ndarray
    bytes_per_sample: int = 2

    @property
    def frame_count(self) -> int:
        return len(self.interleaved_samples) // max(1, self.channel_count)

    @property
    def data_size(self) -> int:
        return len(self.interleaved_samples) * self.bytes_per_sample


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    input: MediaInput
    target_format: TargetFormat = field(default_factory=TargetFormat.wav)
    # lossy targets only; None keeps the encoder default
    bitrate_kbps: Optional[int] = None


@dataclass(slots=True)
class ConversionResult:
    """What the caller receives once a request completes."""

    blob: bytes
    mime_type: str
    suggested_filename: str
    warning: Optional[str] = None
    duration_seconds: Optional[float] = None

    @property
    def size(self) -> int:
        return len(self.blob)
