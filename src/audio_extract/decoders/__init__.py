"""Media decoding backends."""

from .base import DecoderBackend
from .ffmpeg_backend import FfmpegDecoder
from .soundfile_backend import SoundfileDecoder

__all__ = [
    "DecoderBackend",
    "FfmpegDecoder",
    "SoundfileDecoder",
]
