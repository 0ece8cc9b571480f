"""Shared pytest fixtures for the fieldcapture test suite.

Provides a fake device collaborator that tracks live hardware tracks,
image/audio sample factories, and a mock transcription backend.
"""

import asyncio
import io
import math
import struct
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from fieldcapture.core.models import StreamConstraints
from fieldcapture.services.media.devices import MediaDevices, MediaStream

# ---------------------------------------------------------------------------
# Device fakes
# ---------------------------------------------------------------------------


class FakeStream(MediaStream):
    """In-memory stream; counts its tracks on the owning FakeMediaDevices."""

    def __init__(self, constraints: StreamConstraints, devices: "FakeMediaDevices") -> None:
        super().__init__(constraints)
        self._devices = devices
        self._tracks = int(constraints.video) + int(constraints.audio)
        self._live = True
        devices.live_tracks += self._tracks

    @property
    def active(self) -> bool:
        return self._live

    @property
    def recording_mime_type(self) -> str:
        return "video/webm" if self.constraints.video else "audio/webm"

    async def grab_frame(self) -> Image.Image:
        if self._devices.frame_delay:
            await asyncio.sleep(self._devices.frame_delay)
        if not self._live:
            raise OSError("stream stopped")
        if self._devices.frame_error is not None:
            raise self._devices.frame_error
        # Left half red, right half blue, to make mirroring observable
        width, height = self._devices.frame_size
        frame = Image.new("RGB", (width, height), (255, 0, 0))
        frame.paste((0, 0, 255), (width // 2, 0, width, height))
        return frame

    async def record(self, stop: asyncio.Event):
        index = 0
        while self._live and not stop.is_set():
            if self._devices.record_error is not None:
                raise self._devices.record_error
            yield f"chunk{index};".encode()
            index += 1
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._devices.chunk_interval)
            except TimeoutError:
                pass
        if self._live:
            yield b"tail;"

    def stop_all_tracks(self) -> None:
        if self._live:
            self._live = False
            self._devices.live_tracks -= self._tracks


class FakeMediaDevices(MediaDevices):
    """Device collaborator double recording every acquisition request."""

    def __init__(self) -> None:
        self.live_tracks = 0
        self.requests: list[StreamConstraints] = []
        self.streams: list[FakeStream] = []
        self.max_live_streams = 0
        self.fail: Exception | None = None
        self.frame_error: Exception | None = None
        self.record_error: Exception | None = None
        self.delay = 0.0
        self.frame_delay = 0.0
        self.frame_size = (64, 48)
        self.chunk_interval = 0.01

    @property
    def live_streams(self) -> int:
        return sum(1 for s in self.streams if s.active)

    async def get_stream(self, constraints: StreamConstraints) -> MediaStream:
        self.requests.append(constraints)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        stream = FakeStream(constraints, self)
        self.streams.append(stream)
        self.max_live_streams = max(self.max_live_streams, self.live_streams)
        return stream


@pytest.fixture
def devices():
    """A fresh fake device collaborator."""
    return FakeMediaDevices()


# ---------------------------------------------------------------------------
# Image fixtures
# ---------------------------------------------------------------------------


def make_image_bytes(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    """Encode a solid-colour image of the given size."""
    color = (10, 120, 200, 128) if mode == "RGBA" else (10, 120, 200)
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def jpeg_factory():
    """Return a callable building JPEG bytes of a requested size."""
    return make_image_bytes


# ---------------------------------------------------------------------------
# Audio fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM audio data.
    """
    sample_rate = 16000
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(sample_rate):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


# ---------------------------------------------------------------------------
# Transcription fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_transcriber():
    """Create a mock transcription backend returning a fixed sentence.

    Returns:
        AsyncMock: A mock implementing the BaseTranscriber interface.
    """
    from fieldcapture.services.transcription.base import BaseTranscriber

    transcriber = AsyncMock(spec=BaseTranscriber)
    transcriber.transcribe.return_value = "Piso molhado próximo à escada."
    return transcriber
