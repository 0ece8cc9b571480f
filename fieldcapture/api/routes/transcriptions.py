"""
Transcription REST endpoint.

Voice notes recorded by the client are relayed to the speech-to-text
backend. Service failures are returned as the fixed error text with a 200
so the client can append it to the text field as-is.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from fieldcapture.api.dependencies import get_relay
from fieldcapture.core.models import TranscriptionResponse
from fieldcapture.services.transcription import TranscriptionRelay

router = APIRouter(prefix="/transcriptions", tags=["transcriptions"])


@router.post("", response_model=TranscriptionResponse)
async def transcribe_audio(
    audio: UploadFile = File(...),
    relay: TranscriptionRelay = Depends(get_relay),
) -> TranscriptionResponse:
    """Transcribe one uploaded audio clip."""
    data = await audio.read()
    text = await relay.transcribe(data, audio.content_type or "audio/webm")
    return TranscriptionResponse(text=text)
