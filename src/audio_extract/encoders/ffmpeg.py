from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
import threading
from dataclasses import dataclass
from typing import Optional

from ..audio.types import RenderedAudio
from .base import EncoderEvent, StreamingEncoder

logger = logging.getLogger(__name__)

_READ_SIZE = 64 * 1024
DEFAULT_BITRATE_KBPS = 192


@dataclass(frozen=True, slots=True)
class _CodecSpec:
    muxer: str
    codec: str
    extra: tuple[str, ...] = ()
    # None: the codec takes no bitrate (lossless) or uses its own default
    default_bitrate_kbps: Optional[int] = None
    lossy: bool = True


# MIME type -> how ffmpeg should produce it on a pipe.
_CODECS: dict[str, _CodecSpec] = {
    "audio/mpeg": _CodecSpec("mp3", "libmp3lame", default_bitrate_kbps=DEFAULT_BITRATE_KBPS),
    "audio/ogg": _CodecSpec("ogg", "libvorbis"),
    "audio/webm": _CodecSpec("webm", "libopus", ("-ar", "48000")),
    "audio/aac": _CodecSpec("adts", "aac", default_bitrate_kbps=DEFAULT_BITRATE_KBPS),
    "audio/flac": _CodecSpec("flac", "flac", lossy=False),
    "audio/mp4": _CodecSpec(
        "ipod", "aac", ("-movflags", "frag_keyframe+empty_moov"), default_bitrate_kbps=DEFAULT_BITRATE_KBPS
    ),
}


def _base_mime(mime_type: str) -> str:
    return mime_type.split(";", 1)[0].strip().lower()


class FfmpegStreamingEncoder(StreamingEncoder):
    """Streams float32 PCM into an ffmpeg subprocess and forwards stdout chunks.

    The child is driven through asyncio pipes, so a session holds no executor
    threads while ffmpeg is running.
    """

    name = "ffmpeg"

    def __init__(self, *, ffmpeg_path: str = "ffmpeg", block_frames: int = 4096) -> None:
        self._ffmpeg_path = ffmpeg_path
        self._block_frames = max(1, block_frames)
        self._encoders: Optional[frozenset[str]] = None
        self._encoders_lock = threading.Lock()

    def is_type_supported(self, mime_type: str) -> bool:
        spec = _CODECS.get(_base_mime(mime_type))
        if spec is None:
            return False
        return spec.codec in self._available_encoders()

    def _available_encoders(self) -> frozenset[str]:
        if self._encoders is None:
            with self._encoders_lock:
                if self._encoders is None:
                    self._encoders = self._probe_encoders()
        return self._encoders

    def _probe_encoders(self) -> frozenset[str]:
        if shutil.which(self._ffmpeg_path) is None:
            logger.info("encoder.ffmpeg.unavailable", extra={"ffmpeg_path": self._ffmpeg_path})
            return frozenset()
        try:
            proc = subprocess.run(
                [self._ffmpeg_path, "-hide_banner", "-encoders"],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError):
            logger.warning("encoder.ffmpeg.probe_failed", exc_info=True)
            return frozenset()
        names: set[str] = set()
        for line in proc.stdout.splitlines():
            # " A....D libmp3lame           libmp3lame MP3 (MPEG audio layer 3)"
            parts = line.split()
            if len(parts) >= 2 and len(parts[0]) == 6 and parts[0][0] == "A":
                names.add(parts[1])
        return frozenset(names)

    def build_command(
        self,
        *,
        audio: RenderedAudio,
        mime_type: str,
        bitrate_kbps: Optional[int] = None,
    ) -> list[str]:
        spec = _CODECS[_base_mime(mime_type)]
        bitrate = bitrate_kbps if bitrate_kbps is not None else spec.default_bitrate_kbps
        rate_args = ["-b:a", f"{bitrate}k"] if spec.lossy and bitrate is not None else []
        return [
            self._ffmpeg_path,
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "f32le",
            "-ar",
            str(audio.sample_rate),
            "-ac",
            str(audio.channel_count),
            "-i",
            "pipe:0",
            "-vn",
            "-codec:a",
            spec.codec,
            *rate_args,
            *spec.extra,
            "-f",
            spec.muxer,
            "pipe:1",
        ]

    async def record(
        self,
        *,
        audio: RenderedAudio,
        mime_type: str,
        events: asyncio.Queue,
        bitrate_kbps: Optional[int] = None,
    ) -> None:
        cmd = self.build_command(audio=audio, mime_type=mime_type, bitrate_kbps=bitrate_kbps)
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        events.put_nowait(EncoderEvent.started())

        samples = audio.interleaved_float32()
        step = self._block_frames * audio.channel_count

        async def feed() -> None:
            try:
                for start in range(0, len(samples), step):
                    proc.stdin.write(samples[start : start + step].tobytes())
                    await proc.stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                logger.warning("encoder.ffmpeg.stdin_closed", extra={"mime_type": mime_type})
            finally:
                # end of the source signal
                proc.stdin.close()

        async def drain() -> None:
            while True:
                chunk = await proc.stdout.read(_READ_SIZE)
                if not chunk:
                    return
                events.put_nowait(EncoderEvent.chunk(chunk))

        stderr_reader = asyncio.create_task(proc.stderr.read())
        pumps = [asyncio.create_task(feed()), asyncio.create_task(drain())]
        try:
            await asyncio.gather(*pumps)
            returncode = await proc.wait()
            stderr = (await stderr_reader).decode("utf-8", errors="replace")
        finally:
            if proc.returncode is None:
                logger.warning("encoder.ffmpeg.killed", extra={"mime_type": mime_type})
                proc.kill()
                await proc.wait()
            for task in (*pumps, stderr_reader):
                if not task.done():
                    task.cancel()
            await asyncio.gather(*pumps, stderr_reader, return_exceptions=True)

        if returncode != 0:
            raise RuntimeError(f"ffmpeg exited with status {returncode}: {stderr[-500:].strip()}")
        events.put_nowait(EncoderEvent.stopped())
