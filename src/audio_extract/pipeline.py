from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from .audio.decoder import SampleDecoder
from .audio.renderer import DEFAULT_RENDER_QUANTUM, OfflineRenderer
from .audio.types import ConversionRequest, ConversionResult
from .errors import ConversionCancelled, ConversionError, RenderError
from .fallback import FormatFallbackSelector
from .formats import format_duration, format_size, suggest_filename
from .settings import ConverterSettings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class ConversionPipeline:
    """decode -> offline render -> (quantize -> WAV | streaming encoder).

    Each call to ``convert`` owns its buffers; nothing is shared between requests.
    """

    def __init__(
        self,
        *,
        decoder: Optional[SampleDecoder] = None,
        renderer: Optional[OfflineRenderer] = None,
        selector: Optional[FormatFallbackSelector] = None,
    ) -> None:
        self._decoder = decoder or SampleDecoder()
        self._renderer = renderer or OfflineRenderer()
        self._selector = selector or FormatFallbackSelector()

    @classmethod
    def from_settings(cls, cfg: ConverterSettings | None) -> "ConversionPipeline":
        quantum = cfg.render_quantum_frames if cfg is not None else DEFAULT_RENDER_QUANTUM
        return cls(
            decoder=SampleDecoder.from_settings(cfg),
            renderer=OfflineRenderer(quantum_frames=quantum),
            selector=FormatFallbackSelector.from_settings(cfg),
        )

    @property
    def decoder(self) -> SampleDecoder:
        return self._decoder

    @property
    def selector(self) -> FormatFallbackSelector:
        return self._selector

    async def convert(
        self,
        request: ConversionRequest,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        """Run one request end to end.

        ``cancel_event`` is honoured at stage boundaries up to the start of
        encoding. Decode and render errors propagate unchanged; nothing is retried.
        """
        media = request.input
        target = request.target_format
        started = time.perf_counter()

        def report(percent: int, message: str) -> None:
            if progress is not None:
                progress(percent, message)

        def checkpoint(stage: str) -> None:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("convert.cancelled", extra={"stage": stage})
                raise ConversionCancelled()

        checkpoint("decode")
        report(5, "Decoding audio...")
        decoded = await self._decoder.decode(media)
        report(30, "Audio decoded")

        checkpoint("render")
        report(50, "Rendering audio...")
        rendered = await self._renderer.render(decoded)
        del decoded
        report(70, "Audio rendered")

        checkpoint("encode")
        report(75, f"Encoding {target.label}...")
        try:
            output = await self._selector.encode(rendered, target, bitrate_kbps=request.bitrate_kbps)
        except ConversionError:
            raise
        except Exception as exc:
            logger.exception("convert.encode_failed", extra={"mime_type": target.mime_type})
            raise RenderError() from exc
        report(85, "Encoded")

        result = ConversionResult(
            blob=output.blob,
            mime_type=output.mime_type,
            suggested_filename=suggest_filename(media.filename, output.mime_type),
            warning=str(output.warning) if output.warning is not None else None,
            duration_seconds=rendered.duration_seconds,
        )
        report(100, "Complete!")
        logger.info(
            "convert.done",
            extra={
                "mime_type": result.mime_type,
                "size": format_size(result.size),
                "duration": format_duration(rendered.duration_seconds),
                "fallback": result.warning is not None,
                "elapsed_ms": round((time.perf_counter() - started) * 1000.0, 1),
            },
        )
        return result
