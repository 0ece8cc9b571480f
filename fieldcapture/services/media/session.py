"""Lifecycle owner of one hardware-backed audio/video stream.

A ``MediaSession`` holds at most one ``MediaStream``. Every acquisition
releases the previous stream first, and ``close()`` is synchronous so it
can run from teardown paths even while an acquisition is still pending.
A stream that arrives after ``close()`` is stopped immediately.

Usage::

    async with MediaSession(devices) as session:
        await session.open(FacingDirection.back, wants_audio=False)
        frame = await session.grab_frame()
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from PIL import Image

from fieldcapture.core.exceptions import (
    AcquisitionError,
    CaptureCancelledError,
    CaptureStateError,
)
from fieldcapture.core.models import FacingDirection, StreamConstraints
from fieldcapture.services.media.devices import MediaDevices, MediaStream

logger = logging.getLogger(__name__)

_CAMERA_DENIED = "Não foi possível acessar a câmera/microfone. Verifique as permissões."
_MICROPHONE_DENIED = "Não foi possível acessar o microfone."


class MediaSession:
    """Owns the stream handle; all access goes through open/switch/close.

    Args:
        devices: Device capability collaborator.
        facing: Initially requested camera.
        wants_audio: Request a microphone track.
        wants_video: Request a camera track (False for voice notes).
    """

    def __init__(
        self,
        devices: MediaDevices,
        facing: FacingDirection = FacingDirection.back,
        wants_audio: bool = False,
        wants_video: bool = True,
    ) -> None:
        self._devices = devices
        self._stream: MediaStream | None = None
        self._lock = asyncio.Lock()
        self._generation = 0
        self.facing = FacingDirection(facing)
        self.wants_audio = wants_audio
        self.wants_video = wants_video
        self.last_error: str | None = None

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def constraints(self) -> StreamConstraints:
        return StreamConstraints(
            facing=self.facing, video=self.wants_video, audio=self.wants_audio
        )

    async def open(
        self,
        facing: FacingDirection | None = None,
        wants_audio: bool | None = None,
    ) -> MediaStream:
        """Acquire a stream, releasing any existing one first.

        Raises:
            AcquisitionError: The device rejected the request; the session
                stays closed and may be retried.
            CaptureCancelledError: ``close()`` ran while acquiring.
        """
        async with self._lock:
            return await self._acquire(facing, wants_audio)

    async def switch_facing(self) -> MediaStream:
        """Reacquire with the opposite camera, keeping the audio requirement."""
        async with self._lock:
            return await self._acquire(self.facing.opposite(), self.wants_audio)

    async def reconfigure(self, wants_audio: bool) -> MediaStream:
        """Reacquire with the same camera and a new audio requirement."""
        async with self._lock:
            return await self._acquire(self.facing, wants_audio)

    async def _acquire(
        self, facing: FacingDirection | None, wants_audio: bool | None
    ) -> MediaStream:
        self.close()
        if facing is not None:
            self.facing = FacingDirection(facing)
        if wants_audio is not None:
            self.wants_audio = wants_audio

        generation = self._generation
        constraints = self.constraints
        try:
            stream = await self._devices.get_stream(constraints)
        except Exception as exc:
            message = _CAMERA_DENIED if constraints.video else _MICROPHONE_DENIED
            self.last_error = message
            logger.warning("Stream acquisition failed for %s: %s", constraints, exc)
            raise AcquisitionError(message) from exc

        if generation != self._generation:
            stream.stop_all_tracks()
            logger.debug("Discarded stream acquired after close: %s", constraints)
            raise CaptureCancelledError("Stream acquisition was cancelled")

        self._stream = stream
        self.last_error = None
        logger.debug("Stream acquired: %s", constraints)
        return stream

    def close(self) -> None:
        """Stop all hardware tracks. Idempotent; safe during a pending open."""
        self._generation += 1
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop_all_tracks()
            logger.debug("Stream released: %s", stream.constraints)

    def _require_stream(self, operation: str) -> MediaStream:
        if self._stream is None:
            raise CaptureStateError(operation, "closed")
        return self._stream

    async def grab_frame(self) -> Image.Image:
        return await self._require_stream("grab a frame").grab_frame()

    def record(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
        """Async producer of encoded chunks from the active stream."""
        return self._require_stream("record").record(stop)

    @property
    def recording_mime_type(self) -> str:
        return self._require_stream("record").recording_mime_type

    def package(self, chunks: list[bytes]) -> bytes:
        return self._require_stream("record").package(chunks)

    @asynccontextmanager
    async def acquire(
        self,
        facing: FacingDirection | None = None,
        wants_audio: bool | None = None,
    ) -> AsyncIterator[MediaStream]:
        """Scoped acquisition: the stream is released on every exit path."""
        try:
            yield await self.open(facing, wants_audio)
        finally:
            self.close()

    async def __aenter__(self) -> "MediaSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()
