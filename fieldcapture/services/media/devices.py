"""
Abstract device capability collaborator.

The capture pipeline depends only on this contract: acquire a stream for a
set of constraints, grab frames from it, record it as a finite async sequence
of encoded chunks, and stop all of its tracks.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import aclosing

from PIL import Image

from fieldcapture.core.models import StreamConstraints


class MediaStream(ABC):
    """A live hardware-backed stream with one or more tracks."""

    def __init__(self, constraints: StreamConstraints) -> None:
        self.constraints = constraints

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while at least one hardware track is running."""

    @property
    @abstractmethod
    def recording_mime_type(self) -> str:
        """MIME type of the byte sequence produced by ``record()``."""

    @abstractmethod
    async def grab_frame(self) -> Image.Image:
        """Return the current video frame as an RGB image at native resolution."""

    @abstractmethod
    def record(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
        """Yield encoded chunks until ``stop`` is set or the stream ends.

        The sequence is finite: it terminates after the final chunk has been
        flushed once ``stop`` is set, or as soon as the tracks are stopped.
        """

    def package(self, chunks: list[bytes]) -> bytes:
        """Join recorded chunks into one playable blob."""
        return b"".join(chunks)

    @abstractmethod
    def stop_all_tracks(self) -> None:
        """Release every hardware track. Synchronous and idempotent."""


class MediaDevices(ABC):
    """Factory for hardware streams (camera / microphone)."""

    @abstractmethod
    async def get_stream(self, constraints: StreamConstraints) -> MediaStream:
        """Acquire a stream matching ``constraints``.

        Raises:
            PermissionError: Access to the device was denied.
            OSError: No device matches the constraints.
        """


async def collect_chunks(producer: AsyncIterator[bytes]) -> list[bytes]:
    """Drain a recording producer into a list, closing it on every exit path."""
    chunks: list[bytes] = []
    async with aclosing(producer) as stream:
        async for chunk in stream:
            if chunk:
                chunks.append(chunk)
    return chunks
