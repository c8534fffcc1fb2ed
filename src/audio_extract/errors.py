from __future__ import annotations

import enum


class DecodeFailure(str, enum.Enum):
    UNSUPPORTED_CONTAINER = "unsupported_container"
    CORRUPT_DATA = "corrupt_data"
    NO_AUDIO_TRACK = "no_audio_track"


_DECODE_MESSAGES = {
    DecodeFailure.UNSUPPORTED_CONTAINER: "The file format is not supported.",
    DecodeFailure.CORRUPT_DATA: "The file could not be decoded; it may be damaged.",
    DecodeFailure.NO_AUDIO_TRACK: "The file does not contain an audio track.",
}


class MediaRejected(ValueError):
    """Upload refused before any decoding was attempted."""


class MediaTooLarge(MediaRejected):
    pass


class UnsupportedMediaType(MediaRejected):
    pass


class ConversionError(Exception):
    """Base error for a failed conversion request."""

    user_message = "Conversion failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)


class DecodeError(ConversionError):
    """Raised when the input cannot be turned into sample data.

    The message is shown to the user as-is.
    """

    def __init__(self, reason: DecodeFailure, message: str | None = None) -> None:
        self.reason = reason
        self.user_message = message or _DECODE_MESSAGES[reason]
        super().__init__(self.user_message)


class RenderError(ConversionError):
    """Raised when rendering or output encoding fails internally."""


class ConversionCancelled(ConversionError):
    """Raised when the caller aborts a request between pipeline stages."""

    user_message = "Conversion cancelled."


class FormatUnsupportedWarning(UserWarning):
    """Requested output format is unavailable; WAV was produced instead."""

    def __init__(self, requested: str) -> None:
        self.requested = requested
        super().__init__(f"{requested} is not supported by the available encoder. Generated WAV instead.")


__all__ = [
    "DecodeFailure",
    "MediaRejected",
    "MediaTooLarge",
    "UnsupportedMediaType",
    "ConversionError",
    "DecodeError",
    "RenderError",
    "ConversionCancelled",
    "FormatUnsupportedWarning",
]
