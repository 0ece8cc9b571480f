"""
Abstract base class for speech-to-text backends.

Backends receive a complete audio clip and an instruction prompt and
return the recognized text, raising ``TranscriptionError`` on failure.
"""

from abc import ABC, abstractmethod


class BaseTranscriber(ABC):
    """Interface that every speech-to-text backend must implement."""

    @abstractmethod
    async def transcribe(self, audio: bytes, mime_type: str, instruction: str) -> str:
        """Recognize speech in one audio clip.

        Args:
            audio: Encoded audio bytes (e.g. WAV or WebM).
            mime_type: MIME type of ``audio``.
            instruction: Prompt describing how to transcribe.

        Returns:
            The recognized text (may be empty).

        Raises:
            TranscriptionError: If the request fails.
        """
