from __future__ import annotations

import abc

from ..audio.types import DecodedAudio, MediaInput


class DecoderBackend(abc.ABC):
    """Interface for media decoding backends.

    Implementations raise ``DecodeError`` for any input they cannot turn into samples.
    """

    name: str

    @abc.abstractmethod
    async def decode(self, media: MediaInput) -> DecodedAudio:
        """Decode the whole input into per-channel float samples."""
        raise NotImplementedError
