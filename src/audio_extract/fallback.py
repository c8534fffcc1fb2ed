from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .audio.quantizer import quantize
from .audio.types import RenderedAudio
from .audio.wav_writer import write_wav
from .encoders.base import StreamingEncoder
from .encoders.ffmpeg import FfmpegStreamingEncoder
from .encoders.mock import MockStreamingEncoder
from .encoders.session import RecordSession
from .errors import FormatUnsupportedWarning
from .formats import WAV_MIME_TYPE, TargetFormat
from .settings import ConverterSettings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EncodedOutput:
    blob: bytes
    mime_type: str
    warning: Optional[FormatUnsupportedWarning] = None


def encode_wav(rendered: RenderedAudio) -> bytes:
    """Quantize and write WAV synchronously."""
    return write_wav(quantize(rendered))


class FormatFallbackSelector:
    """Chooses between the WAV writer and a streaming encoder per request."""

    def __init__(self, *, encoder: Optional[StreamingEncoder] = None) -> None:
        self._encoder = encoder

    @classmethod
    def from_settings(cls, cfg: ConverterSettings | None) -> "FormatFallbackSelector":
        encoder: Optional[StreamingEncoder] = None
        if cfg is not None:
            name = (cfg.encoder or "none").strip().lower()
            if name in {"none", "off", "wav"}:
                encoder = None
            elif name == "mock":
                encoder = MockStreamingEncoder(block_frames=cfg.encoder_block_frames)
            elif name == "ffmpeg":
                encoder = FfmpegStreamingEncoder(ffmpeg_path=cfg.ffmpeg_path, block_frames=cfg.encoder_block_frames)
            else:
                raise RuntimeError(f"unsupported streaming encoder: {cfg.encoder}")
        return cls(encoder=encoder)

    @property
    def encoder(self) -> Optional[StreamingEncoder]:
        return self._encoder

    def supports(self, target: TargetFormat) -> bool:
        if target.is_wav:
            return True
        return self._encoder is not None and self._encoder.is_type_supported(target.mime_type)

    async def encode(
        self,
        rendered: RenderedAudio,
        target: TargetFormat,
        *,
        bitrate_kbps: Optional[int] = None,
    ) -> EncodedOutput:
        if target.is_wav:
            return EncodedOutput(blob=encode_wav(rendered), mime_type=WAV_MIME_TYPE)

        if not self.supports(target):
            warning = FormatUnsupportedWarning(target.label)
            logger.warning(
                "convert.fallback.wav",
                extra={
                    "requested": target.mime_type,
                    "encoder": self._encoder.name if self._encoder else None,
                },
            )
            return EncodedOutput(blob=encode_wav(rendered), mime_type=WAV_MIME_TYPE, warning=warning)

        session = RecordSession(encoder=self._encoder, mime_type=target.mime_type, bitrate_kbps=bitrate_kbps)
        # once recording starts the session runs to completion even if the caller goes away
        blob = await asyncio.shield(session.run(rendered))
        return EncodedOutput(blob=blob, mime_type=self._encoder.output_mime_type(target.mime_type))
