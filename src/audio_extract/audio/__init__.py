"""Decode, render, quantize and WAV-encode stages."""

from .types import ConversionRequest, ConversionResult, DecodedAudio, MediaInput, PcmBuffer, RenderedAudio
from .ingest import IngestLimits, MediaIngestor
from .renderer import OfflineRenderer, RenderNode
from .quantizer import quantize, quantize_samples
from .wav_writer import WAV_HEADER_SIZE, write_wav

__all__ = [
    "ConversionRequest",
    "ConversionResult",
    "DecodedAudio",
    "MediaInput",
    "PcmBuffer",
    "RenderedAudio",
    "IngestLimits",
    "MediaIngestor",
    "OfflineRenderer",
    "RenderNode",
    "quantize",
    "quantize_samples",
    "WAV_HEADER_SIZE",
    "write_wav",
]
