"""End-to-end report submission.

Runs the steps a field worker triggers with "save report":

1. Fill in missing coordinates from an optional locator.
2. Render the PDF and write it to the exports directory.
3. Assemble the submission payload.
4. Send it; a transport failure degrades to a local-only outcome.

Only one submission may run per ``ReportSubmitter`` at a time.

Usage::

    submitter = ReportSubmitter()
    result = await submitter.submit(record, locator=gps.locate)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from pathlib import Path

from fieldcapture.core.config import get_settings
from fieldcapture.core.exceptions import SubmissionInProgressError, TransportError
from fieldcapture.core.models import InspectionRecord, SubmissionResult
from fieldcapture.services.report.assembler import ReportAssembler
from fieldcapture.services.submission.transport import SubmissionTransport

logger = logging.getLogger(__name__)

Locator = Callable[[], Awaitable[tuple[float, float]]]

MSG_SUBMITTED = "Relatório salvo com sucesso."
MSG_TRANSPORT_FAILED = "Erro ao salvar dados online. O PDF foi gerado localmente."
MSG_NOT_CONFIGURED = "Envio online não configurado. O PDF foi gerado localmente."


class ReportSubmitter:
    """Coordinates rendering, local export, payload assembly and transport.

    Args:
        assembler: Report assembler.
        transport: Submission transport.
        exports_dir: Directory for the local PDF copy (default from settings).
        geolocation_timeout: Seconds to wait for the locator.
    """

    def __init__(
        self,
        assembler: ReportAssembler | None = None,
        transport: SubmissionTransport | None = None,
        exports_dir: str | Path | None = None,
        geolocation_timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._assembler = assembler or ReportAssembler()
        self._transport = transport or SubmissionTransport()
        self._exports_dir = Path(exports_dir or settings.exports_dir)
        self._geolocation_timeout = geolocation_timeout or settings.geolocation_timeout
        self._lock = asyncio.Lock()

    @property
    def exports_dir(self) -> Path:
        return self._exports_dir

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def submit(
        self,
        record: InspectionRecord,
        locator: Locator | None = None,
    ) -> SubmissionResult:
        """Run the full submission flow for one record.

        Raises:
            SubmissionInProgressError: Another submission is running.
            EncodingError: The document or a photo could not be encoded
                (nothing is sent).
        """
        if self._lock.locked():
            raise SubmissionInProgressError()
        async with self._lock:
            return await self._submit(record, locator)

    async def _submit(self, record: InspectionRecord, locator: Locator | None) -> SubmissionResult:
        record = await self.resolve_location(record, locator)
        today = date.today()

        document = await self._assembler.render(record)
        filename = self._assembler.document_filename(record, today)
        path = await asyncio.to_thread(self._save_document, filename, document)
        logger.info("Report document saved to %s", path)

        payload = await self._assembler.build_payload(record, document, day=today)
        result = SubmissionResult(
            document_filename=filename,
            document_path=str(path),
            transmitted=False,
            payload_size=payload.size_bytes,
            attachment_count=len(payload.files),
            warnings=payload.warnings,
        )

        if not self._transport.configured:
            logger.warning("Submission URL not configured; report kept locally")
            result.message = MSG_NOT_CONFIGURED
            return result

        try:
            await self._transport.send(payload)
        except TransportError as exc:
            logger.warning("Submission failed, report kept locally: %s", exc.detail)
            result.message = MSG_TRANSPORT_FAILED
            return result

        result.transmitted = True
        result.message = MSG_SUBMITTED
        return result

    async def resolve_location(
        self, record: InspectionRecord, locator: Locator | None
    ) -> InspectionRecord:
        """Return ``record`` with coordinates filled in when they are missing.

        A failing or slow locator marks both coordinates as ``"Erro"``.
        """
        if record.latitude or locator is None:
            return record
        try:
            latitude, longitude = await asyncio.wait_for(
                locator(), timeout=self._geolocation_timeout
            )
        except Exception as exc:
            logger.warning("Geolocation unavailable: %r", exc)
            return record.model_copy(update={"latitude": "Erro", "longitude": "Erro"})
        return record.model_copy(update={"latitude": str(latitude), "longitude": str(longitude)})

    def _save_document(self, filename: str, document: bytes) -> Path:
        self._exports_dir.mkdir(parents=True, exist_ok=True)
        path = self._exports_dir / filename
        path.write_bytes(document)
        return path.resolve()
