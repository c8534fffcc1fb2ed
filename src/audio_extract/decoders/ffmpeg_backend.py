from __future__ import annotations

import asyncio
import logging
import subprocess
import tempfile
from pathlib import Path

from ..audio.types import DecodedAudio, MediaInput
from ..errors import DecodeError, DecodeFailure
from .base import DecoderBackend
from .soundfile_backend import read_frames

logger = logging.getLogger(__name__)

_NO_AUDIO_MARKERS = ("matches no streams", "does not contain any stream")
_UNSUPPORTED_MARKERS = ("invalid data found when processing input", "unknown input format")


def classify_stderr(stderr: str) -> DecodeFailure:
    text = stderr.lower()
    if any(marker in text for marker in _NO_AUDIO_MARKERS):
        return DecodeFailure.NO_AUDIO_TRACK
    if any(marker in text for marker in _UNSUPPORTED_MARKERS):
        return DecodeFailure.UNSUPPORTED_CONTAINER
    return DecodeFailure.CORRUPT_DATA


class FfmpegDecoder(DecoderBackend):
    """Extracts the first audio stream of any container ffmpeg can demux.

    Input and output go through a temporary directory: several containers (mp4/mov)
    need a seekable input, and a seekable output gets a complete WAV header.
    """

    name = "ffmpeg"

    def __init__(self, *, ffmpeg_path: str = "ffmpeg") -> None:
        self._ffmpeg_path = ffmpeg_path

    async def decode(self, media: MediaInput) -> DecodedAudio:
        if not media.data:
            raise DecodeError(DecodeFailure.CORRUPT_DATA)
        return await asyncio.to_thread(self._run_decode, media)

    def _build_command(self, in_path: Path, out_path: Path) -> list[str]:
        return [
            self._ffmpeg_path,
            "-y",
            "-hide_banner",
            "-nostdin",
            "-loglevel",
            "error",
            "-i",
            str(in_path),
            "-vn",
            "-map",
            "0:a:0",
            "-acodec",
            "pcm_f32le",
            "-f",
            "wav",
            str(out_path),
        ]

    def _run_decode(self, media: MediaInput) -> DecodedAudio:
        with tempfile.TemporaryDirectory(prefix="audio-extract-") as tmp:
            in_path = Path(tmp) / "input"
            out_path = Path(tmp) / "decoded.wav"
            in_path.write_bytes(media.data)

            proc = subprocess.run(
                self._build_command(in_path, out_path),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
            if proc.returncode != 0:
                reason = classify_stderr(proc.stderr or "")
                logger.warning(
                    "decode.ffmpeg.failed",
                    extra={
                        "reason": reason.value,
                        "content_type": media.content_type,
                        "stderr": (proc.stderr or "")[-1000:],
                    },
                )
                raise DecodeError(reason)
            if not out_path.exists():
                raise DecodeError(DecodeFailure.NO_AUDIO_TRACK)

            try:
                frames, sample_rate = read_frames(str(out_path))
            except RuntimeError as exc:
                raise DecodeError(DecodeFailure.CORRUPT_DATA) from exc
        if frames.shape[1] == 0:
            raise DecodeError(DecodeFailure.NO_AUDIO_TRACK)
        return DecodedAudio.from_frames(frames, sample_rate)
