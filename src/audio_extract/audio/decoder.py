from __future__ import annotations

import logging
import shutil
from typing import Optional

from ..decoders.base import DecoderBackend
from ..decoders.ffmpeg_backend import FfmpegDecoder
from ..decoders.soundfile_backend import SoundfileDecoder
from ..errors import DecodeError, DecodeFailure
from ..settings import ConverterSettings
from .types import DecodedAudio, MediaInput

logger = logging.getLogger(__name__)


class SampleDecoder:
    """Turns opaque media bytes into DecodedAudio via a single backend.

    Only the decoded channel count and sample rate are inspected; the container
    itself is never assumed. Failures are final for the request.
    """

    def __init__(self, *, backend: Optional[DecoderBackend] = None) -> None:
        self._backend = backend or SoundfileDecoder()

    @classmethod
    def from_settings(cls, cfg: ConverterSettings | None) -> "SampleDecoder":
        backend: Optional[DecoderBackend] = None
        if cfg is not None:
            name = (cfg.decoder or "auto").strip().lower()
            if name == "auto":
                if shutil.which(cfg.ffmpeg_path):
                    backend = FfmpegDecoder(ffmpeg_path=cfg.ffmpeg_path)
                else:
                    backend = SoundfileDecoder()
            elif name in {"soundfile", "libsndfile"}:
                backend = SoundfileDecoder()
            elif name == "ffmpeg":
                backend = FfmpegDecoder(ffmpeg_path=cfg.ffmpeg_path)
            else:
                raise RuntimeError(f"unsupported decoder backend: {cfg.decoder}")
        return cls(backend=backend)

    async def decode(self, media: MediaInput) -> DecodedAudio:
        try:
            decoded = await self._backend.decode(media)
        except DecodeError:
            raise
        except (OSError, ValueError) as exc:
            logger.warning("decode.backend_error", extra={"backend": self._backend.name, "error": str(exc)})
            raise DecodeError(DecodeFailure.CORRUPT_DATA) from exc
        if decoded.channel_count < 1:
            raise DecodeError(DecodeFailure.NO_AUDIO_TRACK)
        logger.debug(
            "decode.done",
            extra={
                "backend": self._backend.name,
                "channels": decoded.channel_count,
                "sample_rate": decoded.sample_rate,
                "frames": decoded.frame_count,
            },
        )
        return decoded

    @property
    def backend(self) -> DecoderBackend:
        return self._backend
