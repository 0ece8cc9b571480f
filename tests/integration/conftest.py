"""Integration test fixtures for fieldcapture.

Provides an async HTTP client against a fresh application whose services
use the real renderer and assembler, a mock submission backend, and a
mock speech-to-text backend.
"""

import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from fieldcapture.api.app import create_app
from fieldcapture.api.dependencies import get_relay, get_submitter
from fieldcapture.services.orchestrator import ReportSubmitter
from fieldcapture.services.report import PillowPdfRenderer, ReportAssembler
from fieldcapture.services.submission import SubmissionTransport
from fieldcapture.services.transcription import TranscriptionRelay


class RecordingBackend:
    """Mock submission endpoint that keeps every received body."""

    def __init__(self) -> None:
        self.bodies: list[dict] = []
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content.decode("utf-8")))
        return httpx.Response(self.status_code, text="ok")


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def submitter(backend, tmp_path):
    """Real submission flow writing to a temporary exports directory."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return ReportSubmitter(
        assembler=ReportAssembler(renderer=PillowPdfRenderer(dpi=40), settle_delay=0),
        transport=SubmissionTransport(url="https://script.example.com/exec", client=client),
        exports_dir=tmp_path / "exports",
    )


@pytest.fixture
def relay(devices, mock_transcriber):
    return TranscriptionRelay(devices, mock_transcriber)


@pytest.fixture
def app(submitter, relay):
    """Create a fresh FastAPI application with test services injected."""
    app = create_app()
    app.dependency_overrides[get_submitter] = lambda: submitter
    app.dependency_overrides[get_relay] = lambda: relay
    return app


@pytest.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
