"""
fieldcapture exception hierarchy.

All application-specific exceptions inherit from FieldCaptureError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class FieldCaptureError(Exception):
    """Base exception for all fieldcapture errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "FIELDCAPTURE_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class AcquisitionError(FieldCaptureError):
    """Raised when a camera/microphone stream cannot be acquired.

    ``detail`` is a user-facing message; the session stays closed and the
    acquisition may be retried.
    """

    def __init__(
        self,
        detail: str = "Não foi possível acessar a câmera/microfone. Verifique as permissões.",
    ) -> None:
        super().__init__(detail=detail, code="ACQUISITION_ERROR", status_code=503)


class CaptureStateError(FieldCaptureError):
    """Raised when a capture operation is invalid in the current state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(
            detail=f"Cannot {operation} while capture is {state}",
            code="CAPTURE_STATE_ERROR",
            status_code=409,
        )


class CaptureCancelledError(FieldCaptureError):
    """Raised when a capture result arrives after its surface was closed."""

    def __init__(self, detail: str = "Capture was cancelled") -> None:
        super().__init__(detail=detail, code="CAPTURE_CANCELLED", status_code=409)


class EncodingError(FieldCaptureError):
    """Raised when rendering or transcoding fails."""

    def __init__(self, detail: str = "Encoding failed") -> None:
        super().__init__(detail=detail, code="ENCODING_ERROR", status_code=422)


class TranscriptionError(FieldCaptureError):
    """Raised by speech-to-text backends when a request fails."""

    def __init__(self, detail: str = "Transcription failed") -> None:
        super().__init__(detail=detail, code="TRANSCRIPTION_ERROR", status_code=502)


class TransportError(FieldCaptureError):
    """Raised when the report submission request fails."""

    def __init__(self, detail: str = "Submission failed") -> None:
        super().__init__(detail=detail, code="TRANSPORT_ERROR", status_code=502)


class SubmissionInProgressError(FieldCaptureError):
    """Raised when trying to submit while a submission is already running."""

    def __init__(self) -> None:
        super().__init__(
            detail="A submission is already in progress",
            code="SUBMISSION_IN_PROGRESS",
            status_code=409,
        )


class ReportNotFoundError(FieldCaptureError):
    """Raised when a generated report file does not exist."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            detail=f"Report not found: {filename}",
            code="REPORT_NOT_FOUND",
            status_code=404,
        )
