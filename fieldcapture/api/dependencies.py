"""
Service singletons injected into the routes.

Tests replace them through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fieldcapture.core.config import get_settings
from fieldcapture.services.media.local_devices import LocalMediaDevices
from fieldcapture.services.orchestrator import ReportSubmitter
from fieldcapture.services.transcription import TranscriptionRelay, create_transcriber


@lru_cache
def get_submitter() -> ReportSubmitter:
    return ReportSubmitter()


@lru_cache
def get_relay() -> TranscriptionRelay:
    settings = get_settings()
    return TranscriptionRelay(
        LocalMediaDevices(),
        create_transcriber(settings.transcription_provider),
    )
