"""Tests for TranscriptionRelay (voice notes).

The relay records from the microphone, releases it on stop, sends exactly
one request per clip, and never raises from transcribe().
"""

import asyncio
import gc
import logging

import pytest

from fieldcapture.core.exceptions import (
    AcquisitionError,
    CaptureCancelledError,
    CaptureStateError,
    EncodingError,
    TranscriptionError,
)
from fieldcapture.services.transcription import TranscriptionRelay

ERROR_TEXT = "Erro na transcrição. Verifique sua conexão."


@pytest.fixture
def relay(devices, mock_transcriber):
    """A relay wired to the fake microphone and a mock backend."""
    return TranscriptionRelay(
        devices, mock_transcriber, instruction="Transcreva.", error_text=ERROR_TEXT
    )


class TestRecord:
    """Verify microphone acquisition."""

    async def test_record_requests_audio_only(self, relay, devices):
        """Voice notes never open the camera."""
        assert await relay.record() is True
        constraints = devices.requests[0]
        assert constraints.audio is True
        assert constraints.video is False
        assert relay.is_recording
        assert relay.mime_type == "audio/webm"
        relay.cancel()

    async def test_record_twice_is_noop(self, relay, devices):
        """A second record() while recording changes nothing."""
        await relay.record()
        assert await relay.record() is False
        assert len(devices.requests) == 1
        assert devices.live_tracks == 1
        relay.cancel()

    async def test_overlapping_record_calls_open_one_microphone(self, relay, devices):
        """Two record() calls racing the acquisition start one clip."""
        devices.delay = 0.02
        results = await asyncio.gather(relay.record(), relay.record())
        assert sorted(results) == [False, True]
        assert len(devices.requests) == 1
        assert devices.live_tracks == 1
        assert relay.is_recording
        relay.cancel()
        assert devices.live_tracks == 0

    async def test_microphone_denied(self, relay, devices):
        """Acquisition failures propagate and nothing is recording."""
        devices.fail = PermissionError("denied")
        with pytest.raises(AcquisitionError):
            await relay.record()
        assert not relay.is_recording


class TestStop:
    """Verify clip finalization."""

    async def test_stop_returns_audio_and_releases(self, relay, devices):
        """The packaged clip is returned and the microphone released."""
        await relay.record()
        await asyncio.sleep(0.02)
        audio = await relay.stop()
        assert audio.startswith(b"chunk0;")
        assert audio.endswith(b"tail;")
        assert devices.live_tracks == 0
        assert not relay.is_recording

    async def test_stop_when_idle(self, relay):
        """Stopping without a clip is a state error."""
        with pytest.raises(CaptureStateError):
            await relay.stop()

    async def test_recorder_failure_releases_microphone(self, relay, devices):
        """A failing recorder raises EncodingError and still releases."""
        await relay.record()
        devices.record_error = RuntimeError("encoder crashed")
        await asyncio.sleep(0.03)
        with pytest.raises(EncodingError):
            await relay.stop()
        assert devices.live_tracks == 0
        assert not relay.is_recording

    async def test_cancel_discards_clip(self, relay, devices, mock_transcriber):
        """cancel() releases the microphone and sends nothing."""
        await relay.record()
        await asyncio.sleep(0.02)
        relay.cancel()
        assert devices.live_tracks == 0
        assert not relay.is_recording
        mock_transcriber.transcribe.assert_not_called()

    async def test_cancel_during_stop(self, relay, devices):
        """A stop racing cancel() yields no clip."""
        devices.chunk_interval = 0.05
        await relay.record()
        stopping = asyncio.create_task(relay.stop())
        await asyncio.sleep(0)
        relay.cancel()
        with pytest.raises(CaptureCancelledError):
            await stopping
        assert devices.live_tracks == 0

    async def test_cancel_after_recorder_failure_retrieves_error(self, relay, devices, caplog):
        """Cancelling a failed clip leaves no unretrieved task error."""
        await relay.record()
        devices.record_error = RuntimeError("encoder crashed")
        await asyncio.sleep(0.03)
        with caplog.at_level(logging.DEBUG):
            relay.cancel()
            gc.collect()
            await asyncio.sleep(0)

        assert "Task exception was never retrieved" not in caplog.text
        assert "Discarded failed voice note" in caplog.text
        assert devices.live_tracks == 0


class TestTranscribe:
    """Verify the single-request relay to the backend."""

    async def test_stop_and_transcribe_sends_one_request(self, relay, mock_transcriber):
        """Exactly one request per clip, with the recorded MIME type."""
        await relay.record()
        await asyncio.sleep(0.02)
        text = await relay.stop_and_transcribe()

        assert text == "Piso molhado próximo à escada."
        mock_transcriber.transcribe.assert_awaited_once()
        audio, mime_type, instruction = mock_transcriber.transcribe.await_args.args
        assert audio.endswith(b"tail;")
        assert mime_type == "audio/webm"
        assert instruction == "Transcreva."

    async def test_backend_error_returns_error_text(self, relay, mock_transcriber):
        """Backend failures are turned into the fixed error text."""
        mock_transcriber.transcribe.side_effect = TranscriptionError("quota")
        assert await relay.transcribe(b"audio", "audio/wav") == ERROR_TEXT

    async def test_unexpected_error_returns_error_text(self, relay, mock_transcriber):
        """Even unexpected exceptions never escape transcribe()."""
        mock_transcriber.transcribe.side_effect = ConnectionError("offline")
        assert await relay.transcribe(b"audio") == ERROR_TEXT

    async def test_default_error_text_from_settings(self, devices, mock_transcriber):
        """Without an override the configured error text is used."""
        relay = TranscriptionRelay(devices, mock_transcriber)
        assert relay.error_text == ERROR_TEXT
