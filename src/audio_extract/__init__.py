"""Media-to-audio extraction: decode, offline render, 16-bit PCM WAV or streaming encoder output."""

from .audio.types import ConversionRequest, ConversionResult, MediaInput
from .errors import ConversionCancelled, ConversionError, DecodeError, DecodeFailure, FormatUnsupportedWarning, RenderError
from .formats import TargetFormat
from .pipeline import ConversionPipeline

__all__ = [
    "ConversionPipeline",
    "ConversionRequest",
    "ConversionResult",
    "MediaInput",
    "TargetFormat",
    "ConversionError",
    "ConversionCancelled",
    "DecodeError",
    "DecodeFailure",
    "RenderError",
    "FormatUnsupportedWarning",
]
