from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

WAV_MIME_TYPE = "audio/wav"
RAW_MIME_TYPE = "application/octet-stream"

_WAV_ALIASES = {"audio/wav", "audio/x-wav", "audio/wave", "audio/vnd.wave"}

# short name -> MIME type
FORMAT_MIME_TYPES: dict[str, str] = {
    "wav": WAV_MIME_TYPE,
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "webm": "audio/webm",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "m4a": "audio/mp4",
}

_EXTENSIONS: dict[str, str] = {mime: name for name, mime in FORMAT_MIME_TYPES.items()}
_EXTENSIONS[RAW_MIME_TYPE] = "bin"

# kbps choices offered for lossy targets
BITRATE_OPTIONS_KBPS: tuple[int, ...] = (64, 96, 128, 160, 192, 224, 256, 320)


def _base_mime(mime_type: str) -> str:
    # "audio/webm;codecs=opus" -> "audio/webm"
    return mime_type.split(";", 1)[0].strip().lower()


def is_wav_mime(mime_type: str) -> bool:
    return _base_mime(mime_type) in _WAV_ALIASES


def extension_for(mime_type: str) -> str:
    base = _base_mime(mime_type)
    if base in _WAV_ALIASES:
        return "wav"
    if base in _EXTENSIONS:
        return _EXTENSIONS[base]
    subtype = base.split("/", 1)[-1]
    return subtype or "bin"


@dataclass(frozen=True, slots=True)
class TargetFormat:
    """Requested output format: WAV or any other MIME type."""

    mime_type: str

    @property
    def is_wav(self) -> bool:
        return is_wav_mime(self.mime_type)

    @property
    def extension(self) -> str:
        return extension_for(self.mime_type)

    @property
    def label(self) -> str:
        return self.extension.upper()

    @classmethod
    def wav(cls) -> "TargetFormat":
        return cls(mime_type=WAV_MIME_TYPE)

    @classmethod
    def parse(cls, value: str) -> "TargetFormat":
        """Accept a short name (``"mp3"``) or a MIME type (``"audio/ogg"``)."""
        text = (value or "").strip()
        if not text:
            raise ValueError("target format required")
        if "/" in text:
            if is_wav_mime(text):
                return cls.wav()
            return cls(mime_type=text.lower())
        name = text.lower().lstrip(".")
        mime = FORMAT_MIME_TYPES.get(name)
        if mime is None:
            raise ValueError(f"unknown target format: {value}")
        return cls(mime_type=mime)


def parse_bitrate(value: object) -> Optional[int]:
    """Validate an optional bitrate (kbps) against ``BITRATE_OPTIONS_KBPS``."""
    if value is None or value == "":
        return None
    try:
        kbps = int(str(value).strip().lower().removesuffix("k"))
    except ValueError:
        raise ValueError(f"invalid bitrate: {value}") from None
    if kbps not in BITRATE_OPTIONS_KBPS:
        raise ValueError(f"unsupported bitrate: {kbps}")
    return kbps


def suggest_filename(original: Optional[str], mime_type: str, *, default_stem: str = "converted") -> str:
    """Drop the last extension of ``original`` and append the one for ``mime_type``."""
    stem = ""
    if original:
        name = original.replace("\\", "/").rsplit("/", 1)[-1]
        stem = ".".join(name.split(".")[:-1])
    return f"{stem or default_stem}.{extension_for(mime_type)}"


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def format_duration(seconds: float) -> str:
    total = max(0, int(seconds))
    mins, secs = divmod(total, 60)
    return f"{mins}:{secs:02d}"


__all__ = [
    "WAV_MIME_TYPE",
    "RAW_MIME_TYPE",
    "FORMAT_MIME_TYPES",
    "BITRATE_OPTIONS_KBPS",
    "parse_bitrate",
    "TargetFormat",
    "is_wav_mime",
    "extension_for",
    "suggest_filename",
    "format_size",
    "format_duration",
]
