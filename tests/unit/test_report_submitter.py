"""Tests for ReportSubmitter (the end-to-end "save report" flow)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from fieldcapture.core.exceptions import (
    EncodingError,
    SubmissionInProgressError,
    TransportError,
)
from fieldcapture.core.models import (
    InspectionRecord,
    PayloadWarning,
    PayloadWarningCode,
    SubmissionPayload,
)
from fieldcapture.services.orchestrator import (
    MSG_NOT_CONFIGURED,
    MSG_SUBMITTED,
    MSG_TRANSPORT_FAILED,
    ReportSubmitter,
)
from fieldcapture.services.report.assembler import ReportAssembler
from fieldcapture.services.submission.transport import SubmissionTransport

DOCUMENT = b"%PDF-1.4 fake"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_assembler():
    """Assembler double returning a fixed document and payload."""
    assembler = MagicMock(spec=ReportAssembler)
    assembler.render = AsyncMock(return_value=DOCUMENT)
    assembler.document_filename.return_value = "Relatorio_Ana_07-03-2026.pdf"
    assembler.build_payload = AsyncMock(
        return_value=SubmissionPayload(folder_name="f", data={}, size_bytes=1234)
    )
    return assembler


@pytest.fixture
def mock_transport():
    transport = MagicMock(spec=SubmissionTransport)
    transport.configured = True
    transport.send = AsyncMock(return_value=None)
    return transport


@pytest.fixture
def submitter(mock_assembler, mock_transport, tmp_path):
    return ReportSubmitter(
        assembler=mock_assembler,
        transport=mock_transport,
        exports_dir=tmp_path / "exports",
        geolocation_timeout=0.05,
    )


@pytest.fixture
def record():
    return InspectionRecord(collaborator_name="Ana")


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestSubmit:
    """Verify outcomes of the submission flow."""

    async def test_success(self, submitter, mock_transport, record, tmp_path):
        result = await submitter.submit(record)

        assert result.transmitted is True
        assert result.message == MSG_SUBMITTED
        assert result.payload_size == 1234
        saved = tmp_path / "exports" / "Relatorio_Ana_07-03-2026.pdf"
        assert saved.read_bytes() == DOCUMENT
        assert result.document_path == str(saved.resolve())
        mock_transport.send.assert_awaited_once()

    async def test_transport_failure_keeps_local_pdf(self, submitter, mock_transport, record, tmp_path):
        mock_transport.send.side_effect = TransportError("HTTP 500")

        result = await submitter.submit(record)

        assert result.transmitted is False
        assert result.message == MSG_TRANSPORT_FAILED
        assert (tmp_path / "exports" / result.document_filename).exists()

    async def test_unconfigured_transport(self, submitter, mock_transport, record):
        mock_transport.configured = False

        result = await submitter.submit(record)

        assert result.transmitted is False
        assert result.message == MSG_NOT_CONFIGURED
        mock_transport.send.assert_not_awaited()

    async def test_render_failure_sends_nothing(self, submitter, mock_assembler, mock_transport, record):
        mock_assembler.render.side_effect = EncodingError("Falha na geração do PDF visual.")
        with pytest.raises(EncodingError):
            await submitter.submit(record)
        mock_transport.send.assert_not_awaited()
        assert not submitter.busy

    async def test_warnings_reported(self, submitter, mock_assembler, record):
        warning = PayloadWarning(
            code=PayloadWarningCode.oversize, message="muito grandes", blocking=True
        )
        mock_assembler.build_payload.return_value = SubmissionPayload(
            folder_name="f", data={}, warnings=[warning]
        )
        result = await submitter.submit(record)
        assert result.warnings == [warning]
        assert result.transmitted is True

    async def test_concurrent_submit_rejected(self, submitter, mock_transport, record):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_send(payload):
            started.set()
            await release.wait()

        mock_transport.send.side_effect = slow_send
        first = asyncio.create_task(submitter.submit(record))
        await started.wait()
        assert submitter.busy
        with pytest.raises(SubmissionInProgressError):
            await submitter.submit(record)
        release.set()
        assert (await first).transmitted is True


class TestResolveLocation:
    """Verify the geolocation fallback."""

    async def test_fills_coordinates(self, submitter, record):
        locator = AsyncMock(return_value=(-23.55, -46.63))
        resolved = await submitter.resolve_location(record, locator)
        assert resolved.latitude == "-23.55"
        assert resolved.longitude == "-46.63"

    async def test_failure_marks_error(self, submitter, record):
        locator = AsyncMock(side_effect=PermissionError("denied"))
        resolved = await submitter.resolve_location(record, locator)
        assert resolved.latitude == "Erro"
        assert resolved.longitude == "Erro"

    async def test_timeout_marks_error(self, submitter, record):
        async def never():
            await asyncio.sleep(10)

        resolved = await submitter.resolve_location(record, never)
        assert resolved.latitude == "Erro"

    async def test_existing_coordinates_kept(self, submitter):
        record = InspectionRecord(latitude="1.0", longitude="2.0")
        locator = AsyncMock()
        assert await submitter.resolve_location(record, locator) is record
        locator.assert_not_called()

    async def test_locator_used_by_submit(self, submitter, mock_assembler, record):
        await submitter.submit(record, locator=AsyncMock(return_value=(1.5, 2.5)))
        rendered = mock_assembler.render.await_args.args[0]
        assert rendered.latitude == "1.5"
