"""Tests for MediaSession stream lifecycle.

Covers release-before-acquire on every open/switch, idempotent close,
acquisition failures, and a close() racing a pending acquisition.
"""

import asyncio

import pytest

from fieldcapture.core.exceptions import (
    AcquisitionError,
    CaptureCancelledError,
    CaptureStateError,
)
from fieldcapture.core.models import FacingDirection
from fieldcapture.services.media.session import MediaSession


@pytest.fixture
def session(devices):
    """A video session on the back camera."""
    return MediaSession(devices)


class TestOpen:
    """Verify stream acquisition."""

    async def test_open_acquires_back_camera(self, session, devices):
        """Default constraints request the back camera without audio."""
        await session.open()
        assert session.is_open
        assert devices.requests[0].facing is FacingDirection.back
        assert devices.requests[0].video is True
        assert devices.requests[0].audio is False
        assert devices.live_tracks == 1

    async def test_open_with_audio(self, session, devices):
        """wants_audio adds a microphone track."""
        await session.open(wants_audio=True)
        assert devices.requests[0].audio is True
        assert devices.live_tracks == 2

    async def test_reopen_releases_previous_stream(self, session, devices):
        """Opening again never leaves two live streams."""
        await session.open()
        await session.open()
        await session.open()
        assert devices.max_live_streams == 1
        assert devices.live_streams == 1
        assert len(devices.requests) == 3

    async def test_failure_raises_acquisition_error(self, session, devices):
        """A denied device leaves the session closed with a user message."""
        devices.fail = PermissionError("denied")
        with pytest.raises(AcquisitionError):
            await session.open()
        assert not session.is_open
        assert "câmera" in session.last_error

    async def test_audio_only_failure_mentions_microphone(self, devices):
        """Voice-note sessions report the microphone, not the camera."""
        session = MediaSession(devices, wants_audio=True, wants_video=False)
        devices.fail = OSError("no device")
        with pytest.raises(AcquisitionError, match="microfone"):
            await session.open()

    async def test_retry_after_failure(self, session, devices):
        """A failed acquisition may be retried and clears the error."""
        devices.fail = PermissionError("denied")
        with pytest.raises(AcquisitionError):
            await session.open()
        devices.fail = None
        await session.open()
        assert session.is_open
        assert session.last_error is None


class TestSwitchFacing:
    """Verify camera flips."""

    async def test_switch_flips_and_keeps_single_stream(self, session, devices):
        """Each switch releases the old stream before requesting the new one."""
        await session.open()
        await session.switch_facing()
        await session.switch_facing()
        assert [r.facing for r in devices.requests] == [
            FacingDirection.back,
            FacingDirection.front,
            FacingDirection.back,
        ]
        assert devices.max_live_streams == 1

    async def test_switch_keeps_audio_requirement(self, session, devices):
        """The microphone stays requested across a flip."""
        await session.open(wants_audio=True)
        await session.switch_facing()
        assert devices.requests[-1].audio is True

    async def test_concurrent_switches_are_serialized(self, session, devices):
        """Rapid toggles never overlap two acquisitions."""
        devices.delay = 0.01
        await session.open()
        await asyncio.gather(*(session.switch_facing() for _ in range(4)))
        assert devices.max_live_streams == 1
        assert devices.live_streams == 1


class TestClose:
    """Verify release semantics."""

    async def test_close_stops_all_tracks(self, session, devices):
        """After close no hardware track is live."""
        await session.open(wants_audio=True)
        session.close()
        assert devices.live_tracks == 0
        assert not session.is_open

    @pytest.mark.parametrize("facing", list(FacingDirection))
    async def test_close_releases_either_camera(self, session, devices, facing):
        """Both cameras are fully released on close."""
        await session.open(facing=facing, wants_audio=True)
        assert devices.requests[-1].facing is facing
        session.close()
        assert devices.live_tracks == 0
        assert devices.live_streams == 0

    def test_close_is_idempotent(self, session, devices):
        """Closing a never-opened session twice is harmless."""
        session.close()
        session.close()
        assert devices.live_tracks == 0

    async def test_close_during_pending_open(self, session, devices):
        """A stream arriving after close() is stopped immediately."""
        devices.delay = 0.05
        task = asyncio.create_task(session.open())
        await asyncio.sleep(0.01)
        session.close()
        with pytest.raises(CaptureCancelledError):
            await task
        assert devices.live_tracks == 0
        assert not session.is_open

    async def test_context_manager_closes(self, devices):
        """Leaving the async context releases the stream."""
        async with MediaSession(devices) as session:
            await session.open()
            assert devices.live_tracks == 1
        assert devices.live_tracks == 0

    async def test_scoped_acquire_releases_on_error(self, session, devices):
        """acquire() releases the stream even when the body raises."""
        with pytest.raises(RuntimeError):
            async with session.acquire():
                assert devices.live_tracks == 1
                raise RuntimeError("boom")
        assert devices.live_tracks == 0


class TestClosedOperations:
    """Verify operations on a closed session."""

    async def test_grab_frame_requires_stream(self, session):
        """Grabbing without a stream is a state error."""
        with pytest.raises(CaptureStateError):
            await session.grab_frame()

    def test_record_requires_stream(self, session):
        """Recording without a stream is a state error."""
        with pytest.raises(CaptureStateError):
            session.record(asyncio.Event())
