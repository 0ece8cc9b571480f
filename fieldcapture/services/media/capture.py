"""Photo/video capture state machine on top of a ``MediaSession``.

States: ``idle -> previewing -> (capturing-photo | recording-video) -> idle``.

Operations on one instance are strictly sequential: an instance lock makes
every capture or restart wait for the previous release/acquire pair. ``close()``
is synchronous and may run at any point; it bumps an epoch counter so that
any photo or recording finishing afterwards is discarded instead of being
handed to the form.
"""

import asyncio
import logging
from collections.abc import Callable

from fieldcapture.core.config import get_settings
from fieldcapture.core.exceptions import (
    AcquisitionError,
    CaptureCancelledError,
    CaptureStateError,
    EncodingError,
)
from fieldcapture.core.models import (
    ArtifactKind,
    CaptureArtifact,
    CaptureMode,
    CaptureState,
    FacingDirection,
)
from fieldcapture.services.imaging.transcoder import encode_jpeg
from fieldcapture.services.media.devices import MediaDevices, collect_chunks
from fieldcapture.services.media.session import MediaSession
from fieldcapture.services.media.timer import RecordingTimer

logger = logging.getLogger(__name__)


class CaptureStateMachine:
    """Drives one capture surface and produces at most one artifact per use.

    Args:
        devices: Device capability collaborator.
        mode: Initial capture mode.
        facing: Initial camera.
        on_artifact: Called with each finalized artifact (e.g. ``MediaField.set``).
        snapshot_quality: JPEG quality for photos (default from settings).
        timer_interval: Seconds per recording-timer tick.
        on_tick: Called with the elapsed seconds while recording.
    """

    def __init__(
        self,
        devices: MediaDevices,
        mode: CaptureMode = CaptureMode.photo,
        facing: FacingDirection = FacingDirection.back,
        on_artifact: Callable[[CaptureArtifact], None] | None = None,
        snapshot_quality: int | None = None,
        timer_interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self.mode = CaptureMode(mode)
        self.state = CaptureState.idle
        self.error: str | None = None
        self._session = MediaSession(
            devices, facing=facing, wants_audio=self.mode is CaptureMode.video
        )
        self._snapshot_quality = snapshot_quality or get_settings().snapshot_quality
        self._timer = RecordingTimer(interval=timer_interval, on_tick=on_tick)
        self._on_artifact = on_artifact
        self._stop_event: asyncio.Event | None = None
        self._recorder: asyncio.Task | None = None
        self._epoch = 0
        # Serializes open/toggle/capture; close() never takes it
        self._lock = asyncio.Lock()

    @property
    def facing(self) -> FacingDirection:
        return self._session.facing

    @property
    def session_open(self) -> bool:
        return self._session.is_open

    @property
    def elapsed(self) -> int:
        """Seconds recorded so far (0 unless recording)."""
        return self._timer.elapsed

    @property
    def elapsed_display(self) -> str:
        return self._timer.formatted

    def _require(self, state: CaptureState, operation: str) -> None:
        if self.state is not state:
            raise CaptureStateError(operation, self.state.value)

    def _capturing(self) -> bool:
        return self.state in (CaptureState.recording_video, CaptureState.capturing_photo)

    # -- preview -------------------------------------------------------------

    async def open(self) -> None:
        """Acquire the camera and start previewing.

        Raises:
            AcquisitionError: Camera/microphone unavailable; stays ``idle``.
        """
        async with self._lock:
            self._require(CaptureState.idle, "open the camera")
            self.error = None
            await self._acquire(self._session.open(wants_audio=self.mode is CaptureMode.video))

    async def _acquire(self, acquisition) -> None:
        try:
            await acquisition
        except AcquisitionError as exc:
            self.error = exc.detail
            self.state = CaptureState.idle
            raise
        except CaptureCancelledError:
            self.state = CaptureState.idle
            raise
        self.state = CaptureState.previewing

    async def set_mode(self, mode: CaptureMode) -> bool:
        """Switch between photo and video; ignored while capturing.

        Returns:
            False if the toggle was ignored.
        """
        mode = CaptureMode(mode)
        if self._capturing():
            logger.debug("Ignoring mode switch to %s while %s", mode, self.state)
            return False
        async with self._lock:
            if self._capturing():
                return False
            if mode is self.mode:
                return True
            self.mode = mode
            if self.state is CaptureState.previewing:
                # Audio is only requested in video mode
                await self._acquire(
                    self._session.reconfigure(wants_audio=mode is CaptureMode.video)
                )
            else:
                self._session.wants_audio = mode is CaptureMode.video
            return True

    async def switch_facing(self) -> bool:
        """Flip front/back camera; ignored while capturing."""
        if self._capturing():
            logger.debug("Ignoring facing switch while %s", self.state)
            return False
        async with self._lock:
            if self._capturing():
                return False
            if self.state is CaptureState.previewing:
                await self._acquire(self._session.switch_facing())
            else:
                self._session.facing = self._session.facing.opposite()
            return True

    # -- photo ---------------------------------------------------------------

    async def take_photo(self) -> CaptureArtifact:
        """Grab the current frame as a JPEG and close the session.

        Front-camera frames are mirrored to match the preview. A request made
        while the camera is being switched waits for the new stream.

        Raises:
            EncodingError: The frame could not be grabbed or encoded; the
                surface is force-closed.
            CaptureCancelledError: The surface was closed meanwhile.
        """
        async with self._lock:
            return await self._take_photo()

    async def _take_photo(self) -> CaptureArtifact:
        self._require(CaptureState.previewing, "take a photo")
        if self.mode is not CaptureMode.photo:
            raise CaptureStateError("take a photo", f"in {self.mode} mode")

        epoch = self._epoch
        self.state = CaptureState.capturing_photo
        mirror = self.facing is FacingDirection.front
        try:
            frame = await self._session.grab_frame()
            data = await asyncio.to_thread(encode_jpeg, frame, self._snapshot_quality, mirror)
        except Exception as exc:
            if epoch != self._epoch:
                raise CaptureCancelledError("Photo discarded: capture surface was closed") from exc
            self.close()
            raise EncodingError(f"Photo capture failed: {exc}") from exc

        if epoch != self._epoch:
            raise CaptureCancelledError("Photo discarded: capture surface was closed")

        artifact = CaptureArtifact.create(ArtifactKind.photo, data, "image/jpeg")
        self.close()
        self._emit(artifact)
        return artifact

    # -- video ---------------------------------------------------------------

    async def start_recording(self) -> None:
        """Begin buffering encoded chunks and start the recording timer."""
        async with self._lock:
            self._require(CaptureState.previewing, "start recording")
            if self.mode is not CaptureMode.video:
                raise CaptureStateError("start recording", f"in {self.mode} mode")

            self._stop_event = asyncio.Event()
            producer = self._session.record(self._stop_event)
            self._recorder = asyncio.create_task(collect_chunks(producer))
            self.state = CaptureState.recording_video
            self._timer.start()
            logger.info("Video recording started (%s camera)", self.facing)

    async def stop_recording(self) -> CaptureArtifact:
        """Flush buffered chunks into one video artifact and close the session.

        Raises:
            EncodingError: The recording failed; the surface is force-closed.
            CaptureCancelledError: The surface was closed meanwhile.
        """
        async with self._lock:
            return await self._stop_recording()

    async def _stop_recording(self) -> CaptureArtifact:
        self._require(CaptureState.recording_video, "stop recording")
        epoch = self._epoch
        recorder = self._recorder
        self._stop_event.set()
        await asyncio.wait([recorder])

        if epoch != self._epoch or recorder.cancelled():
            raise CaptureCancelledError("Recording discarded: capture surface was closed")
        exc = recorder.exception()
        if exc is not None:
            self.error = "Erro ao gravar vídeo. Dispositivo incompatível."
            self.close()
            raise EncodingError(f"Video recording failed: {exc}") from exc

        chunks = recorder.result()
        data = self._session.package(chunks)
        mime_type = self._session.recording_mime_type
        seconds = self._timer.elapsed
        self.close()

        artifact = CaptureArtifact.create(ArtifactKind.video, data, mime_type)
        logger.info(
            "Video recording finished: %d chunks, %d bytes, ~%ds",
            len(chunks),
            len(data),
            seconds,
        )
        self._emit(artifact)
        return artifact

    # -- teardown ------------------------------------------------------------

    def close(self) -> None:
        """Close the capture surface from any state.

        Synchronously stops the timer, cancels an unfinished recording
        without producing an artifact, and releases the hardware stream.
        Never waits for an operation in progress.
        """
        self._epoch += 1
        self._timer.stop()
        recorder, self._recorder = self._recorder, None
        if recorder is not None:
            if not recorder.done():
                recorder.cancel()
                logger.info("Unfinished recording discarded")
            elif not recorder.cancelled() and recorder.exception() is not None:
                logger.debug("Discarded failed recording: %r", recorder.exception())
        self._stop_event = None
        self._session.close()
        self.state = CaptureState.idle

    def _emit(self, artifact: CaptureArtifact) -> None:
        if self._on_artifact is not None:
            self._on_artifact(artifact)

    async def __aenter__(self) -> "CaptureStateMachine":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()
