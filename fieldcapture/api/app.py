"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn fieldcapture.api.app:app --reload``.
"""

from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fieldcapture import __version__
from fieldcapture.api.middleware.error_handler import register_error_handlers
from fieldcapture.api.routes import reports, transcriptions
from fieldcapture.core.config import get_settings
from fieldcapture.core.logging_config import configure_logging
from fieldcapture.core.models import HealthResponse


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="fieldcapture",
        description="Field inspection capture, report rendering and submission.",
        version=__version__,
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(reports.router, prefix="/api/v1")
    app.include_router(transcriptions.router, prefix="/api/v1")

    return app


app = create_app()
