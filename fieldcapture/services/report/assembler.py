"""
Report assembly: document rendering and submission payload construction.

Payload rules, in order:

1. The rendered document is always the first attachment.
2. Each ``image/*`` artifact is transcoded and appended.
3. ``video/*`` artifacts are never attached (they stay on the device); a
   ``video_not_transmitted`` warning is recorded instead.
4. The serialized payload is measured; above the ceiling a blocking
   ``payload_oversize`` warning is attached but nothing is dropped.

The assembler performs no network I/O.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from datetime import date, datetime

from fieldcapture.core.config import get_settings
from fieldcapture.core.models import (
    Attachment,
    CaptureArtifact,
    InspectionRecord,
    PayloadWarning,
    PayloadWarningCode,
    SubmissionPayload,
)
from fieldcapture.services.imaging.transcoder import ImageTranscoder
from fieldcapture.services.report.layout import build_layout, format_datetime, format_resolved
from fieldcapture.services.report.naming import document_filename, media_filename
from fieldcapture.services.report.renderer import (
    BaseDocumentRenderer,
    PillowPdfRenderer,
    RenderSurface,
)

logger = logging.getLogger(__name__)

DOCUMENT_FIELD_TAG = "relatorio_completo"


@dataclass(frozen=True)
class MediaSlot:
    """A media artifact together with how it is named in the payload."""

    field_tag: str
    filename_prefix: str
    artifact: CaptureArtifact


def media_slots(record: InspectionRecord) -> list[MediaSlot]:
    """The record's evidence artifacts in payload order."""
    slots = []
    if record.photo_inspection is not None:
        slots.append(MediaSlot("foto_inspecao", "Registro_Inspecao", record.photo_inspection))
    if record.photo_resolution is not None:
        slots.append(MediaSlot("foto_resolucao", "Registro_Resolucao", record.photo_resolution))
    return slots


def record_data(record: InspectionRecord) -> dict[str, str]:
    """Flatten the record for the spreadsheet row; media fields are blanked."""
    return {
        "recordType": record.record_type.value,
        "collaboratorName": record.collaborator_name,
        "dateTime": format_datetime(record.date_time) if record.date_time else "",
        "collaboratorArea": record.collaborator_area,
        "unit": record.unit,
        "location": record.location,
        "description": record.description,
        "photoInspection": "",
        "immediateActionDescription": record.immediate_action_description,
        "isResolvedImmediately": format_resolved(record.is_resolved_immediately, unset="ND"),
        "photoResolution": "",
        "responsiblePerson": record.responsible_person,
        "resolutionDeadline": (
            record.resolution_deadline.isoformat() if record.resolution_deadline else ""
        ),
        "suggestions": record.suggestions,
        "latitude": record.latitude or "ND",
        "longitude": record.longitude or "ND",
    }


_default_surface = RenderSurface()


class ReportAssembler:
    """Renders inspection records and bundles them for submission.

    Args:
        renderer: Document renderer (default: Pillow PDF renderer).
        transcoder: Image transcoder for attached photos.
        surface: Shared render surface (default: module-level singleton).
        folder_name: Destination folder announced in the payload.
        ceiling_bytes: Serialized size above which a warning is raised.
        settle_delay: Seconds to wait after mounting before rendering.
    """

    def __init__(
        self,
        renderer: BaseDocumentRenderer | None = None,
        transcoder: ImageTranscoder | None = None,
        surface: RenderSurface | None = None,
        folder_name: str | None = None,
        ceiling_bytes: int | None = None,
        settle_delay: float | None = None,
    ) -> None:
        settings = get_settings()
        self._renderer = renderer or PillowPdfRenderer()
        self._transcoder = transcoder or ImageTranscoder()
        self._surface = surface or _default_surface
        self._folder_name = folder_name or settings.submission_folder_name
        self._ceiling = ceiling_bytes or settings.payload_ceiling_bytes
        self._settle_delay = (
            settings.render_settle_delay if settle_delay is None else settle_delay
        )

    @property
    def ceiling_bytes(self) -> int:
        return self._ceiling

    @staticmethod
    def document_filename(record: InspectionRecord, day: date | None = None) -> str:
        return document_filename(record.record_type, record.collaborator_name, day or date.today())

    async def render(self, record: InspectionRecord, generated_at: datetime | None = None) -> bytes:
        """Render the record into a PDF.

        Raises:
            EncodingError: If rendering fails.
        """
        layout = build_layout(record, generated_at or datetime.now())
        async with self._surface.mounted(layout):
            if self._settle_delay > 0:
                await asyncio.sleep(self._settle_delay)
            return await self._renderer.render(layout)

    async def build_payload(
        self,
        record: InspectionRecord,
        document: bytes,
        media: list[MediaSlot] | None = None,
        day: date | None = None,
    ) -> SubmissionPayload:
        """Assemble the submission payload for ``record``.

        Args:
            record: The record snapshot that was rendered.
            document: Bytes returned by ``render()``.
            media: Artifacts to consider (default: the record's evidence slots).
            day: Date used in attachment filenames (default: today).

        Raises:
            EncodingError: If a photo cannot be transcoded.
        """
        day = day or date.today()
        media = media_slots(record) if media is None else media
        files = [
            Attachment(
                filename=self.document_filename(record, day),
                mime_type=self._renderer.media_type,
                base64=base64.b64encode(document).decode("ascii"),
                field_tag=DOCUMENT_FIELD_TAG,
            )
        ]
        warnings: list[PayloadWarning] = []

        for slot in media:
            artifact = slot.artifact
            if artifact.is_image:
                data = await self._transcoder.transcode(artifact.data, artifact.mime_type)
                files.append(
                    Attachment(
                        filename=media_filename(slot.filename_prefix, record.collaborator_name, day),
                        mime_type=ImageTranscoder.mime_type,
                        base64=base64.b64encode(data).decode("ascii"),
                        field_tag=slot.field_tag,
                    )
                )
            elif artifact.is_video:
                logger.info(
                    "Video %s (%d bytes) kept local; not transmitted",
                    artifact.filename,
                    artifact.size,
                )
                warnings.append(
                    PayloadWarning(
                        code=PayloadWarningCode.video_not_transmitted,
                        message=(
                            f"Vídeo '{artifact.filename}' não foi enviado; "
                            "ele permanece apenas no dispositivo."
                        ),
                    )
                )
            else:
                logger.warning("Skipping attachment with unsupported type %s", artifact.mime_type)

        payload = SubmissionPayload(
            folder_name=self._folder_name,
            data=record_data(record),
            files=files,
            warnings=warnings,
        )
        payload.size_bytes = len(payload.serialize())
        logger.info("Payload size: %.2f MB", payload.size_bytes / 1024 / 1024)

        if payload.size_bytes > self._ceiling:
            logger.warning(
                "Payload of %d bytes exceeds the %d byte ceiling", payload.size_bytes, self._ceiling
            )
            payload.warnings.append(
                PayloadWarning(
                    code=PayloadWarningCode.oversize,
                    message=(
                        f"Atenção: Os arquivos são muito grandes (>{self._ceiling // (1024 * 1024)}MB) "
                        "e podem não ser salvos no Drive. O PDF foi gerado localmente."
                    ),
                    blocking=True,
                )
            )
        return payload
