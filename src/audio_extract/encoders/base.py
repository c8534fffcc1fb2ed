from __future__ import annotations

import abc
import asyncio
import enum
from dataclasses import dataclass
from typing import Optional

from ..audio.types import RenderedAudio


class EncoderEventKind(str, enum.Enum):
    STARTED = "started"
    DATA = "data"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class EncoderEvent:
    kind: EncoderEventKind
    data: bytes = b""
    error: Optional[str] = None

    @classmethod
    def started(cls) -> "EncoderEvent":
        return cls(kind=EncoderEventKind.STARTED)

    @classmethod
    def chunk(cls, data: bytes) -> "EncoderEvent":
        return cls(kind=EncoderEventKind.DATA, data=data)

    @classmethod
    def stopped(cls) -> "EncoderEvent":
        return cls(kind=EncoderEventKind.STOPPED)

    @classmethod
    def failed(cls, error: str) -> "EncoderEvent":
        return cls(kind=EncoderEventKind.FAILED, error=error)


class StreamingEncoder(abc.ABC):
    """External encoder capability driven by a record session.

    ``record`` plays the rendered signal through the encoder and reports
    progress only by posting events to ``events``: ``STARTED`` once, any
    number of ``DATA`` chunks in emission order, then ``STOPPED`` after the
    source has ended and the encoder has flushed.
    """

    name: str

    @abc.abstractmethod
    def is_type_supported(self, mime_type: str) -> bool:
        """Whether ``mime_type`` can be produced by this encoder."""

    @abc.abstractmethod
    async def record(
        self,
        *,
        audio: RenderedAudio,
        mime_type: str,
        events: "asyncio.Queue[EncoderEvent]",
        bitrate_kbps: Optional[int] = None,
    ) -> None:
        """Encode ``audio`` into ``mime_type`` and post events until stopped.

        ``bitrate_kbps`` is a hint for lossy codecs; encoders may ignore it.
        """

    def output_mime_type(self, mime_type: str) -> str:
        """MIME type of the bytes ``record`` actually produces for ``mime_type``."""
        return mime_type

    async def shutdown(self) -> None:
        """Allow encoder to cleanup resources if needed."""
        return None
