from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

import numpy as np

from ..errors import RenderError
from .types import DecodedAudio, RenderedAudio

logger = logging.getLogger(__name__)

DEFAULT_RENDER_QUANTUM = 128


class RenderNode(Protocol):
    """A processing step between the buffer source and the destination.

    ``process`` receives a ``(channels, frames)`` float32 block and must return a
    block of the same shape.
    """

    def process(self, block: np.ndarray) -> np.ndarray:
        ...


class OfflineRenderer:
    """Renders decoded audio in fixed-size quanta, detached from any clock.

    The graph is ``source -> nodes... -> destination``; with no nodes the output
    equals the input sample-for-sample. Channel count, sample rate and length
    are preserved.
    """

    def __init__(self, *, quantum_frames: int = DEFAULT_RENDER_QUANTUM, nodes: Sequence[RenderNode] = ()) -> None:
        if quantum_frames < 1:
            raise ValueError("quantum_frames must be >= 1")
        self._quantum_frames = quantum_frames
        self._nodes = tuple(nodes)

    async def render(self, decoded: DecodedAudio) -> RenderedAudio:
        try:
            return await asyncio.to_thread(self._render_sync, decoded)
        except RenderError:
            raise
        except Exception as exc:
            logger.exception("render.failed", extra={"frames": decoded.frame_count})
            raise RenderError() from exc

    def _render_sync(self, decoded: DecodedAudio) -> RenderedAudio:
        channels = decoded.channel_count
        frames = decoded.frame_count
        destination = np.zeros((channels, frames), dtype=np.float32)
        if frames:
            source = np.stack(decoded.channels, axis=0)
            for start in range(0, frames, self._quantum_frames):
                end = min(frames, start + self._quantum_frames)
                block = np.array(source[:, start:end], dtype=np.float32, copy=True)
                for node in self._nodes:
                    block = np.asarray(node.process(block), dtype=np.float32)
                    if block.shape != (channels, end - start):
                        raise RenderError("render node changed the block shape")
                destination[:, start:end] = block
        return RenderedAudio(
            channel_count=channels,
            sample_rate=decoded.sample_rate,
            frame_count=frames,
            channels=tuple(destination[idx] for idx in range(channels)),
        )
