from __future__ import annotations

"""Runtime configuration helpers for audio-extract."""

import os
from dataclasses import dataclass

def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class ConverterSettings:
    max_bytes: int
    decoder: str
    encoder: str
    ffmpeg_path: str
    render_quantum_frames: int
    encoder_block_frames: int
    default_format: str


@dataclass(frozen=True)
class ServiceSettings:
    log_level: str
    port: int


@dataclass(frozen=True)
class Settings:
    converter: ConverterSettings
    service: ServiceSettings


def load_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""

    converter_settings = ConverterSettings(
        max_bytes=_env_int("CONVERTER_MAX_BYTES", 100 * 1024 * 1024),
        decoder=_env_str("CONVERTER_DECODER", "auto").lower(),
        encoder=_env_str("CONVERTER_ENCODER", "ffmpeg").lower(),
        ffmpeg_path=_env_str("CONVERTER_FFMPEG_PATH", "ffmpeg"),
        render_quantum_frames=max(1, _env_int("CONVERTER_RENDER_QUANTUM", 128)),
        encoder_block_frames=max(1, _env_int("CONVERTER_ENCODER_BLOCK_FRAMES", 4096)),
        default_format=_env_str("CONVERTER_DEFAULT_FORMAT", "wav").lower(),
    )

    service_settings = ServiceSettings(
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        port=_env_int("PORT", 8110),
    )

    return Settings(converter=converter_settings, service=service_settings)


settings = load_settings()

__all__ = [
    "Settings",
    "ConverterSettings",
    "ServiceSettings",
    "settings",
    "load_settings",
]
