from __future__ import annotations

import asyncio
import io
import logging

import numpy as np

try:
    import soundfile as sf
except ImportError as exc:  # pragma: no cover - import guard
    raise RuntimeError("soundfile must be installed to use SoundfileDecoder") from exc

from ..audio.types import DecodedAudio, MediaInput
from ..errors import DecodeError, DecodeFailure
from .base import DecoderBackend

logger = logging.getLogger(__name__)

# libsndfile error codes (sndfile.h)
_SF_ERR_UNRECOGNISED_FORMAT = 1
_SF_ERR_MALFORMED_FILE = 3
_SF_ERR_UNSUPPORTED_ENCODING = 4


def read_frames(source: io.BytesIO | str) -> tuple[np.ndarray, int]:
    """Read a whole file as a ``(frames, channels)`` float32 array."""
    with sf.SoundFile(source) as handle:
        frames = handle.read(dtype="float32", always_2d=True)
        return frames, int(handle.samplerate)


def classify_error(exc: Exception) -> DecodeFailure:
    code = getattr(exc, "code", None)
    if code in {_SF_ERR_UNRECOGNISED_FORMAT, _SF_ERR_UNSUPPORTED_ENCODING}:
        return DecodeFailure.UNSUPPORTED_CONTAINER
    if code == _SF_ERR_MALFORMED_FILE:
        return DecodeFailure.CORRUPT_DATA
    message = str(exc).lower()
    if "not recognised" in message or "unsupported" in message:
        return DecodeFailure.UNSUPPORTED_CONTAINER
    return DecodeFailure.CORRUPT_DATA


class SoundfileDecoder(DecoderBackend):
    """Decodes containers libsndfile understands (WAV, FLAC, OGG, AIFF, ...)."""

    name = "soundfile"

    async def decode(self, media: MediaInput) -> DecodedAudio:
        if not media.data:
            raise DecodeError(DecodeFailure.CORRUPT_DATA)
        try:
            frames, sample_rate = await asyncio.to_thread(read_frames, io.BytesIO(media.data))
        except (RuntimeError, sf.SoundFileError) as exc:
            reason = classify_error(exc)
            logger.warning(
                "decode.soundfile.failed",
                extra={"reason": reason.value, "content_type": media.content_type, "error": str(exc)},
            )
            raise DecodeError(reason) from exc
        if frames.ndim != 2 or frames.shape[1] == 0:
            raise DecodeError(DecodeFailure.NO_AUDIO_TRACK)
        return DecodedAudio.from_frames(frames, sample_rate)
