from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..errors import MediaTooLarge, UnsupportedMediaType
from .types import MediaInput

_GENERIC_TYPES = {"", "application/octet-stream"}


@dataclass(slots=True)
class IngestLimits:
    max_bytes: int


class MediaIngestor:
    """Parses inbound uploads into MediaInput objects."""

    def __init__(self, *, limits: IngestLimits) -> None:
        self._limits = limits

    async def from_bytes(
        self,
        *,
        data: bytes,
        content_type: str,
        filename: Optional[str] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> MediaInput:
        self._enforce_size(len(data))
        content_type = self._enforce_media_type(content_type)
        return MediaInput(data=bytes(data), content_type=content_type, filename=filename, extra=meta or {})

    async def from_upload(
        self,
        *,
        file_reader: Callable[[], Awaitable[bytes]],
        content_type: str,
        filename: Optional[str] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> MediaInput:
        data = await file_reader()
        return await self.from_bytes(data=data, content_type=content_type, filename=filename, meta=meta)

    def _enforce_size(self, size: int) -> None:
        if size > self._limits.max_bytes:
            raise MediaTooLarge("media payload exceeds configured size limit")

    def _enforce_media_type(self, content_type: str) -> str:
        normalized = (content_type or "").split(";", 1)[0].strip().lower()
        if normalized in _GENERIC_TYPES:
            return "application/octet-stream"
        if normalized.startswith("audio/") or normalized.startswith("video/"):
            return normalized
        raise UnsupportedMediaType("unsupported media type: expected an audio or video file")
