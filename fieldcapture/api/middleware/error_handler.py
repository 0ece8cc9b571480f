"""
Exception handlers producing the ``{detail, code, timestamp}`` error envelope.

Domain errors keep their own status codes. Upstream failures (speech
service, submission backend) are logged, client mistakes are not.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fieldcapture.core.exceptions import FieldCaptureError

logger = logging.getLogger(__name__)


def _envelope(
    status_code: int, detail: str, code: str, timestamp: str | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def _describe_validation(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into ``field: message`` pairs."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{field}: {error.get('msg', 'invalid')}" if field else error.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Attach the fieldcapture exception handlers to ``app``."""

    @app.exception_handler(FieldCaptureError)
    async def fieldcapture_error_handler(
        request: Request, exc: FieldCaptureError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(
                "%s %s failed [%s]: %s", request.method, request.url.path, exc.code, exc.detail
            )
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _envelope(422, _describe_validation(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Stack traces stay in the log
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
