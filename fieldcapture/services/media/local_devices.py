"""Local hardware backend: OpenCV for cameras, sounddevice for microphones.

Camera frames are read on a dedicated worker thread; recorded video is a
Motion-JPEG byte stream (one JPEG per frame). Microphone audio is captured
as 16-bit mono PCM and packaged as WAV.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import queue
import threading
from collections.abc import AsyncIterator

import numpy as np
from PIL import Image

from fieldcapture.core.config import get_settings
from fieldcapture.core.models import FacingDirection, StreamConstraints
from fieldcapture.services.audio.processor import AudioProcessor
from fieldcapture.services.media.devices import MediaDevices, MediaStream

logger = logging.getLogger(__name__)


class _CameraTrack:
    """Owns one ``cv2.VideoCapture`` handle."""

    def __init__(self, index: int) -> None:
        import cv2

        self._cv2 = cv2
        self._lock = threading.Lock()
        self._cap = cv2.VideoCapture(index)
        if not self._cap.isOpened():
            self._cap.release()
            raise OSError(f"Camera {index} could not be opened")

    @property
    def live(self) -> bool:
        return self._cap is not None

    def read_rgb(self) -> np.ndarray:
        with self._lock:
            if self._cap is None:
                raise OSError("Camera track stopped")
            ok, frame = self._cap.read()
        if not ok:
            raise OSError("Camera returned no frame")
        return self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)

    def encode_jpeg(self, frame: np.ndarray, quality: int = 80) -> bytes:
        bgr = self._cv2.cvtColor(frame, self._cv2.COLOR_RGB2BGR)
        ok, buf = self._cv2.imencode(".jpg", bgr, [self._cv2.IMWRITE_JPEG_QUALITY, quality])
        if not ok:
            raise OSError("Frame encoding failed")
        return buf.tobytes()

    def stop(self) -> None:
        with self._lock:
            if self._cap is not None:
                self._cap.release()
                self._cap = None


class _MicrophoneTrack:
    """Owns one ``sounddevice.InputStream`` feeding a thread-safe queue."""

    def __init__(self, sample_rate: int, buffered: bool = True) -> None:
        import sounddevice as sd

        self.sample_rate = sample_rate
        # When False the track is only held open and its PCM is dropped
        self.buffered = buffered
        self.chunks: queue.Queue[bytes] = queue.Queue()
        self._stream = sd.InputStream(
            samplerate=sample_rate,
            channels=1,
            dtype="int16",
            callback=self._on_audio,
        )
        self._stream.start()

    @property
    def live(self) -> bool:
        return self._stream is not None

    def _on_audio(self, indata, _frames, _time, status) -> None:
        if status:
            logger.debug("Microphone status: %s", status)
        if self.buffered:
            self.chunks.put(bytes(indata))

    def drain(self) -> bytes:
        data = bytearray()
        while True:
            try:
                data.extend(self.chunks.get_nowait())
            except queue.Empty:
                return bytes(data)

    def stop(self) -> None:
        if self._stream is not None:
            with contextlib.suppress(Exception):
                self._stream.stop()
            self._stream.close()
            self._stream = None


class LocalMediaStream(MediaStream):
    """Camera and/or microphone tracks opened for one set of constraints.

    When both tracks are present the recording carries video only; the
    microphone is held for the lifetime of the stream and its samples are
    discarded as they arrive.
    """

    def __init__(
        self,
        constraints: StreamConstraints,
        camera: _CameraTrack | None,
        microphone: _MicrophoneTrack | None,
        fps: float,
    ) -> None:
        super().__init__(constraints)
        self._camera = camera
        self._microphone = microphone
        self._fps = fps
        self._processor = AudioProcessor(
            sample_rate=microphone.sample_rate if microphone else 16000
        )
        if camera is not None and microphone is not None:
            # Video recordings carry no audio; keep the queue empty
            microphone.buffered = False
            microphone.drain()

    @property
    def active(self) -> bool:
        return any(t is not None and t.live for t in (self._camera, self._microphone))

    @property
    def recording_mime_type(self) -> str:
        return "video/x-motion-jpeg" if self._camera else "audio/wav"

    async def grab_frame(self) -> Image.Image:
        if self._camera is None:
            raise OSError("Stream has no video track")
        frame = await asyncio.to_thread(self._camera.read_rgb)
        return Image.fromarray(frame)

    async def record(self, stop: asyncio.Event) -> AsyncIterator[bytes]:
        if self._camera is not None:
            interval = 1.0 / self._fps
            while not stop.is_set() and self._camera.live:
                frame = await asyncio.to_thread(self._camera.read_rgb)
                yield await asyncio.to_thread(self._camera.encode_jpeg, frame)
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(stop.wait(), timeout=interval)
            return

        if self._microphone is None:
            return
        self._microphone.drain()  # discard audio captured before record()
        while not stop.is_set() and self._microphone.live:
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=0.25)
            pcm = self._microphone.drain()
            if pcm:
                yield pcm

    def package(self, chunks: list[bytes]) -> bytes:
        if self._camera is not None:
            return super().package(chunks)
        return self._processor.to_wav_bytes(b"".join(chunks))

    def stop_all_tracks(self) -> None:
        for track in (self._camera, self._microphone):
            if track is not None:
                track.stop()


class LocalMediaDevices(MediaDevices):
    """Opens local cameras (by facing) and the default microphone.

    Args:
        back_index: OpenCV index of the environment-facing camera.
        front_index: OpenCV index of the user-facing camera.
        sample_rate: Microphone sample rate in Hz.
        fps: Frame rate used while recording video.
    """

    def __init__(
        self,
        back_index: int | None = None,
        front_index: int | None = None,
        sample_rate: int | None = None,
        fps: float | None = None,
    ) -> None:
        settings = get_settings()
        self._indices = {
            FacingDirection.back: settings.camera_back_index if back_index is None else back_index,
            FacingDirection.front: settings.camera_front_index if front_index is None else front_index,
        }
        self._sample_rate = sample_rate or settings.audio_sample_rate
        self._fps = fps or settings.recording_fps

    async def get_stream(self, constraints: StreamConstraints) -> MediaStream:
        camera = None
        microphone = None
        try:
            if constraints.video:
                camera = await asyncio.to_thread(_CameraTrack, self._indices[constraints.facing])
            if constraints.audio:
                microphone = await asyncio.to_thread(
                    _MicrophoneTrack, self._sample_rate, not constraints.video
                )
        except Exception:
            # Never leave a half-acquired stream behind
            for track in (camera, microphone):
                if track is not None:
                    track.stop()
            raise
        logger.debug("Acquired local stream: %s", constraints)
        return LocalMediaStream(constraints, camera, microphone, self._fps)
