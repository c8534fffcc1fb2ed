from __future__ import annotations

import asyncio
import enum
import logging
from typing import Optional

from ..audio.types import RenderedAudio
from ..errors import RenderError
from .base import EncoderEvent, EncoderEventKind, StreamingEncoder

logger = logging.getLogger(__name__)

# Posted by the session itself once ``encoder.record`` has returned.
_RECORD_RETURNED = object()


class SessionState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"
    ASSEMBLED = "assembled"
    FAILED = "failed"


class RecordSession:
    """One streaming-encoder run: ``IDLE -> RECORDING -> STOPPED -> ASSEMBLED``.

    The session only resolves after the encoder posts ``STOPPED``; there is no
    timeout. Chunks are joined in the order they were posted.
    """

    def __init__(
        self,
        *,
        encoder: StreamingEncoder,
        mime_type: str,
        bitrate_kbps: Optional[int] = None,
    ) -> None:
        self._encoder = encoder
        self._mime_type = mime_type
        self._bitrate_kbps = bitrate_kbps
        self._state = SessionState.IDLE
        self._chunks: list[bytes] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    async def run(self, audio: RenderedAudio) -> bytes:
        if self._state is not SessionState.IDLE:
            raise RuntimeError(f"record session already used (state={self._state.value})")

        events: asyncio.Queue = asyncio.Queue()
        driver = asyncio.create_task(self._drive(audio, events))
        try:
            await self._consume(events)
        finally:
            if not driver.done():
                await driver

        blob = b"".join(self._chunks)
        self._state = SessionState.ASSEMBLED
        logger.debug(
            "encoder.session.assembled",
            extra={"encoder": self._encoder.name, "chunks": len(self._chunks), "bytes": len(blob)},
        )
        return blob

    async def _drive(self, audio: RenderedAudio, events: asyncio.Queue) -> None:
        try:
            await self._encoder.record(
                audio=audio,
                mime_type=self._mime_type,
                events=events,
                bitrate_kbps=self._bitrate_kbps,
            )
        except Exception as exc:
            logger.exception("encoder.session.record_failed", extra={"encoder": self._encoder.name})
            events.put_nowait(EncoderEvent.failed(str(exc) or exc.__class__.__name__))
        finally:
            events.put_nowait(_RECORD_RETURNED)

    async def _consume(self, events: asyncio.Queue) -> None:
        while True:
            event = await events.get()
            if event is _RECORD_RETURNED:
                self._fail("encoder returned without stopping")
            kind: EncoderEventKind = event.kind
            if kind is EncoderEventKind.STARTED:
                self._transition(SessionState.IDLE, SessionState.RECORDING)
            elif kind is EncoderEventKind.DATA:
                if self._state is not SessionState.RECORDING:
                    self._fail("data received outside of recording")
                if event.data:
                    self._chunks.append(event.data)
            elif kind is EncoderEventKind.STOPPED:
                self._transition(SessionState.RECORDING, SessionState.STOPPED)
                return
            else:
                self._fail(event.error)

    def _transition(self, expected: SessionState, target: SessionState) -> None:
        if self._state is not expected:
            self._fail(f"unexpected transition {self._state.value} -> {target.value}")
        self._state = target

    def _fail(self, reason: Optional[str]) -> None:
        self._state = SessionState.FAILED
        logger.error(
            "encoder.session.failed",
            extra={"encoder": self._encoder.name, "mime_type": self._mime_type, "reason": reason},
        )
        raise RenderError(reason)
