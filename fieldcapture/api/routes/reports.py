"""
Report REST endpoints.

``POST /reports`` receives the form values and evidence uploads, runs the
submission flow and returns its outcome; ``GET /reports/{filename}`` serves
the locally generated PDF.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse
from pydantic import ValidationError

from fieldcapture.api.dependencies import get_submitter
from fieldcapture.core.exceptions import ReportNotFoundError
from fieldcapture.core.models import (
    CaptureArtifact,
    InspectionRecord,
    RecordType,
    SubmissionResult,
)
from fieldcapture.services.orchestrator import ReportSubmitter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


async def _to_artifact(upload: UploadFile | None) -> CaptureArtifact | None:
    """Convert an optional upload into a media artifact."""
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    if not data:
        return None
    return CaptureArtifact.from_upload(
        data, upload.content_type or "application/octet-stream", upload.filename
    )


@router.post("", response_model=SubmissionResult)
async def submit_report(
    record_type: RecordType = Form(RecordType.inspection),
    collaborator_name: str = Form(""),
    date_time: str = Form(""),
    collaborator_area: str = Form(""),
    unit: str = Form(""),
    location: str = Form(""),
    description: str = Form(""),
    immediate_action_description: str = Form(""),
    is_resolved_immediately: str = Form(""),
    responsible_person: str = Form(""),
    resolution_deadline: str = Form(""),
    suggestions: str = Form(""),
    latitude: str = Form(""),
    longitude: str = Form(""),
    photo_inspection: UploadFile | None = File(None),
    photo_resolution: UploadFile | None = File(None),
    submitter: ReportSubmitter = Depends(get_submitter),
) -> SubmissionResult:
    """Render, store and submit one inspection report."""
    inspection_media = await _to_artifact(photo_inspection)
    resolution_media = await _to_artifact(photo_resolution)
    try:
        record = InspectionRecord(
            record_type=record_type,
            collaborator_name=collaborator_name,
            date_time=date_time,
            collaborator_area=collaborator_area,
            unit=unit,
            location=location,
            description=description,
            photo_inspection=inspection_media,
            immediate_action_description=immediate_action_description,
            is_resolved_immediately=is_resolved_immediately,
            photo_resolution=resolution_media,
            responsible_person=responsible_person,
            resolution_deadline=resolution_deadline,
            suggestions=suggestions,
            latitude=latitude,
            longitude=longitude,
        )
    except ValidationError as exc:
        # Blank strings are accepted; anything else malformed is a 422
        raise RequestValidationError(exc.errors()) from exc
    return await submitter.submit(record)


@router.get("/{filename}")
async def download_report(
    filename: str,
    submitter: ReportSubmitter = Depends(get_submitter),
) -> FileResponse:
    """Download a generated report PDF by its filename."""
    if Path(filename).name != filename or not filename.endswith(".pdf"):
        raise ReportNotFoundError(filename)
    path = submitter.exports_dir / filename
    if not path.is_file():
        raise ReportNotFoundError(filename)
    return FileResponse(path, media_type="application/pdf", filename=filename)
