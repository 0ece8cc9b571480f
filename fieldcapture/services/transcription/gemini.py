"""
Gemini speech-to-text backend.

Uses the Google Gen AI SDK (``google.genai``) to send the audio clip inline
together with the instruction prompt. Transient failures (timeouts, network
errors, 5xx) are retried with exponential backoff.
"""

import logging

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fieldcapture.core.config import get_settings
from fieldcapture.core.exceptions import TranscriptionError
from fieldcapture.services.transcription.base import BaseTranscriber

logger = logging.getLogger(__name__)


class GeminiTranscriber(BaseTranscriber):
    """Transcribes audio with a Gemini multimodal model.

    Args:
        api_key: Gemini API key (defaults to settings).
        model: Model name (defaults to settings).
    """

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.gemini_api_key
        self._model = model or settings.gemini_model
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        """Return the SDK client, creating it on first use."""
        if self._client is None:
            if not self._api_key:
                raise TranscriptionError("Gemini API key is not configured")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    async def _call_api(self, audio: bytes, mime_type: str, instruction: str) -> str:
        """Send one generate_content request.

        SDK exceptions are translated to ``ConnectionError`` / ``TimeoutError``
        for retry decisions; client errors (4xx) are not retried.
        """
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=[
                    types.Part.from_bytes(data=audio, mime_type=mime_type),
                    instruction,
                ],
            )
        except httpx.TimeoutException as exc:
            logger.warning("Gemini request timed out: %s", exc)
            raise TimeoutError(f"Gemini request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning("Gemini connection error: %s", exc)
            raise ConnectionError(f"Failed to connect to Gemini: {exc}") from exc
        except genai_errors.ServerError as exc:
            logger.warning("Gemini server error: %s", exc)
            raise ConnectionError(f"Gemini server error: {exc}") from exc
        except genai_errors.APIError as exc:
            raise TranscriptionError(f"Gemini rejected the request: {exc}") from exc
        return response.text or ""

    async def transcribe(self, audio: bytes, mime_type: str, instruction: str) -> str:
        """Recognize speech in one audio clip."""
        try:
            text = await self._call_api(audio, mime_type, instruction)
        except TranscriptionError:
            raise
        except Exception as exc:
            raise TranscriptionError(f"Gemini transcription failed: {exc}") from exc
        return text.strip()
