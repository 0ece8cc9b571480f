"""Voice-note relay: record a short clip and turn it into text.

``record()`` acquires the microphone, ``stop()`` returns the packaged clip
and releases it, and ``transcribe()`` performs exactly one request to the
speech-to-text backend. ``transcribe()`` never raises: on any failure it
returns the configured error text so the caller can append it to a text
field without interrupting the form flow.

Calling ``record()`` while a clip is already being recorded is a no-op.
"""

import asyncio
import logging

from fieldcapture.core.config import get_settings
from fieldcapture.core.exceptions import (
    CaptureCancelledError,
    CaptureStateError,
    EncodingError,
)
from fieldcapture.services.media.devices import MediaDevices, collect_chunks
from fieldcapture.services.media.session import MediaSession
from fieldcapture.services.transcription.base import BaseTranscriber

logger = logging.getLogger(__name__)


class TranscriptionRelay:
    """Records audio clips and relays them to a transcription backend.

    Args:
        devices: Device capability collaborator (microphone).
        transcriber: Speech-to-text backend.
        instruction: Prompt sent with every clip (default from settings).
        error_text: Returned instead of a transcription on failure.
    """

    def __init__(
        self,
        devices: MediaDevices,
        transcriber: BaseTranscriber,
        instruction: str | None = None,
        error_text: str | None = None,
    ) -> None:
        settings = get_settings()
        self._session = MediaSession(devices, wants_audio=True, wants_video=False)
        self._transcriber = transcriber
        self._instruction = instruction or settings.transcription_instruction
        self._error_text = error_text or settings.transcription_error_text
        self._stop_event: asyncio.Event | None = None
        self._recorder: asyncio.Task | None = None
        self._starting = False
        self.mime_type = "audio/wav"

    @property
    def is_recording(self) -> bool:
        return self._recorder is not None

    @property
    def error_text(self) -> str:
        return self._error_text

    async def record(self) -> bool:
        """Start capturing from the microphone.

        Returns:
            False if a clip was already being recorded (nothing changes).

        Raises:
            AcquisitionError: The microphone is unavailable.
        """
        if self.is_recording or self._starting:
            logger.warning("record() called while already recording; ignored")
            return False
        # Claimed before the await so overlapping calls see it
        self._starting = True
        try:
            await self._session.open()
        finally:
            self._starting = False
        self._stop_event = asyncio.Event()
        self.mime_type = self._session.recording_mime_type
        self._recorder = asyncio.create_task(
            collect_chunks(self._session.record(self._stop_event))
        )
        return True

    async def stop(self) -> bytes:
        """Finish the clip, release the microphone and return the audio bytes.

        Raises:
            CaptureStateError: Nothing is being recorded.
            CaptureCancelledError: ``cancel()`` ran meanwhile.
            EncodingError: The recording failed.
        """
        if self._recorder is None:
            raise CaptureStateError("stop recording", "idle")
        recorder = self._recorder
        self._stop_event.set()
        await asyncio.wait([recorder])

        if recorder is not self._recorder or recorder.cancelled():
            raise CaptureCancelledError("Voice note discarded")
        self._recorder = None
        self._stop_event = None
        try:
            exc = recorder.exception()
            if exc is not None:
                raise EncodingError("Erro ao processar áudio.") from exc
            audio = self._session.package(recorder.result())
        finally:
            self._session.close()
        logger.info("Voice note recorded: %d bytes (%s)", len(audio), self.mime_type)
        return audio

    async def transcribe(self, audio: bytes, mime_type: str | None = None) -> str:
        """Return recognized text, or the fixed error text on any failure."""
        try:
            return await self._transcriber.transcribe(
                audio, mime_type or self.mime_type, self._instruction
            )
        except Exception:
            logger.warning("Transcription failed; returning error text", exc_info=True)
            return self._error_text

    async def stop_and_transcribe(self) -> str:
        """Stop the current clip and send it for transcription."""
        audio = await self.stop()
        return await self.transcribe(audio, self.mime_type)

    def cancel(self) -> None:
        """Discard an unfinished clip and release the microphone."""
        recorder, self._recorder = self._recorder, None
        if recorder is not None:
            if not recorder.done():
                recorder.cancel()
            elif not recorder.cancelled() and recorder.exception() is not None:
                logger.debug("Discarded failed voice note: %r", recorder.exception())
        self._stop_event = None
        self._session.close()
