"""
Pydantic v2 models shared across the capture, report and API layers.
"""

import json
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fieldcapture.core.utils import timestamp_ms

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class FacingDirection(StrEnum):
    """Which physical camera is requested."""

    front = "front"  # user-facing
    back = "back"  # environment-facing

    def opposite(self) -> "FacingDirection":
        return FacingDirection.front if self is FacingDirection.back else FacingDirection.back


class CaptureMode(StrEnum):
    """What the capture surface produces when triggered."""

    photo = "photo"
    video = "video"


class CaptureState(StrEnum):
    """Possible states for a capture surface."""

    idle = "idle"
    previewing = "previewing"
    capturing_photo = "capturing-photo"
    recording_video = "recording-video"


class ArtifactKind(StrEnum):
    photo = "photo"
    video = "video"


class StreamConstraints(BaseModel):
    """Constraints passed to the device collaborator on acquisition."""

    model_config = ConfigDict(frozen=True)

    facing: FacingDirection = FacingDirection.back
    video: bool = True
    audio: bool = False


_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "video/webm": "webm",
    "video/mp4": "mp4",
    "video/x-motion-jpeg": "mjpeg",
}


class CaptureArtifact(BaseModel):
    """A finalized photo or video produced by a capture or an upload."""

    kind: ArtifactKind
    data: bytes
    mime_type: str
    filename: str
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def create(cls, kind: ArtifactKind, data: bytes, mime_type: str) -> "CaptureArtifact":
        """Build an artifact with a time-stamped filename (``foto_<ms>.jpg``)."""
        prefix = "foto" if kind is ArtifactKind.photo else "video"
        extension = _EXTENSIONS.get(mime_type, mime_type.rpartition("/")[2] or "bin")
        return cls(
            kind=kind,
            data=data,
            mime_type=mime_type,
            filename=f"{prefix}_{timestamp_ms()}.{extension}",
        )

    @classmethod
    def from_upload(cls, data: bytes, mime_type: str, filename: str | None = None) -> "CaptureArtifact":
        """Wrap a gallery upload; the kind follows the MIME type."""
        kind = ArtifactKind.video if mime_type.startswith("video/") else ArtifactKind.photo
        if not filename:
            return cls.create(kind, data, mime_type)
        return cls(kind=kind, data=data, mime_type=mime_type, filename=filename)


# ---------------------------------------------------------------------------
# Inspection record
# ---------------------------------------------------------------------------


class RecordType(StrEnum):
    """Report flavour; selects the document filename prefix."""

    inspection = "inspection"
    oac = "oac"


class InspectionRecord(BaseModel):
    """Snapshot of the form state supplied by the client."""

    record_type: RecordType = RecordType.inspection
    collaborator_name: str = ""
    date_time: datetime | None = None
    collaborator_area: str = ""
    unit: str = ""
    location: str = ""
    description: str = ""
    photo_inspection: CaptureArtifact | None = None
    immediate_action_description: str = ""
    is_resolved_immediately: bool | None = None  # None = not answered
    photo_resolution: CaptureArtifact | None = None
    responsible_person: str = ""
    resolution_deadline: date | None = None
    suggestions: str = ""
    latitude: str = ""
    longitude: str = ""

    @field_validator("date_time", "resolution_deadline", "is_resolved_immediately", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        # HTML forms send unanswered fields as empty strings
        if isinstance(value, str) and not value.strip():
            return None
        return value


# ---------------------------------------------------------------------------
# Submission payload
# ---------------------------------------------------------------------------


class Attachment(BaseModel):
    """One file inside the submission payload."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(serialization_alias="fileName")
    mime_type: str = Field(serialization_alias="mimeType")
    base64: str
    field_tag: str = Field(serialization_alias="fieldName")


class PayloadWarningCode(StrEnum):
    oversize = "payload_oversize"
    video_not_transmitted = "video_not_transmitted"


class PayloadWarning(BaseModel):
    """Non-fatal condition detected while assembling a payload."""

    code: PayloadWarningCode
    message: str
    blocking: bool = False  # True = the caller must show it before sending


class SubmissionPayload(BaseModel):
    """The request body sent to the submission backend plus local metadata."""

    folder_name: str
    data: dict[str, str]
    files: list[Attachment] = Field(default_factory=list)
    warnings: list[PayloadWarning] = Field(default_factory=list)
    size_bytes: int = 0

    def to_wire(self) -> dict:
        """Return the JSON-ready request body (metadata excluded)."""
        return {
            "folderName": self.folder_name,
            "data": self.data,
            "files": [f.model_dump(by_alias=True) for f in self.files],
        }

    def serialize(self) -> str:
        """Serialize the request body as JSON text (non-ASCII kept as-is)."""
        return json.dumps(self.to_wire(), ensure_ascii=False)

    @property
    def notes(self) -> list[str]:
        return [w.message for w in self.warnings]

    @property
    def is_oversize(self) -> bool:
        return any(w.code is PayloadWarningCode.oversize for w in self.warnings)

    @property
    def video_skipped(self) -> bool:
        return any(w.code is PayloadWarningCode.video_not_transmitted for w in self.warnings)


class SubmissionResult(BaseModel):
    """Outcome of the end-to-end submit flow."""

    document_filename: str
    document_path: str
    transmitted: bool
    payload_size: int
    attachment_count: int
    warnings: list[PayloadWarning] = Field(default_factory=list)
    message: str = ""


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


class TranscriptionResponse(BaseModel):
    """POST /transcriptions response."""

    text: str
