"""Streaming encoder capabilities and the record session that drives them."""

from .base import EncoderEvent, EncoderEventKind, StreamingEncoder
from .ffmpeg import FfmpegStreamingEncoder
from .mock import MockStreamingEncoder
from .session import RecordSession, SessionState

__all__ = [
    "EncoderEvent",
    "EncoderEventKind",
    "StreamingEncoder",
    "FfmpegStreamingEncoder",
    "MockStreamingEncoder",
    "RecordSession",
    "SessionState",
]
