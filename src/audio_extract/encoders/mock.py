from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from ..audio.types import RenderedAudio
from ..formats import FORMAT_MIME_TYPES, RAW_MIME_TYPE
from .base import EncoderEvent, StreamingEncoder


class MockStreamingEncoder(StreamingEncoder):
    """In-process encoder that emits the float32 signal as-is, block by block.

    It accepts the configured target types but never compresses, so its output
    is labelled as raw bytes rather than as the requested container.
    """

    name = "mock"

    def __init__(
        self,
        *,
        supported_types: Iterable[str] = (FORMAT_MIME_TYPES["webm"], FORMAT_MIME_TYPES["ogg"]),
        block_frames: int = 4096,
        chunk_delay_ms: int = 0,
    ) -> None:
        self._supported = {mime.lower() for mime in supported_types}
        self._block_frames = max(1, block_frames)
        self._chunk_delay_ms = chunk_delay_ms

    def is_type_supported(self, mime_type: str) -> bool:
        return mime_type.split(";", 1)[0].strip().lower() in self._supported

    def output_mime_type(self, mime_type: str) -> str:
        return RAW_MIME_TYPE

    async def record(
        self,
        *,
        audio: RenderedAudio,
        mime_type: str,
        events: asyncio.Queue,
        bitrate_kbps: Optional[int] = None,
    ) -> None:
        events.put_nowait(EncoderEvent.started())
        samples = audio.interleaved_float32()
        step = self._block_frames * audio.channel_count
        for start in range(0, len(samples), step):
            await asyncio.sleep(max(0.0, self._chunk_delay_ms / 1000.0))
            events.put_nowait(EncoderEvent.chunk(samples[start : start + step].tobytes()))
        events.put_nowait(EncoderEvent.stopped())
