"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """fieldcapture settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        transcription_provider: Speech-to-text backend ("gemini").
        submission_url: Endpoint receiving the assembled report payload.
        payload_ceiling_bytes: Serialized payload size above which a warning is raised.
        exports_dir: Where locally generated PDF reports are written.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Speech-to-text ---
    transcription_provider: str = "gemini"
    gemini_api_key: str = ""  # Required when transcription_provider="gemini"
    gemini_model: str = "gemini-2.5-flash"
    transcription_instruction: str = (
        "Transcreva o áudio a seguir exatamente como foi falado. "
        "Se houver ruído, ignore e foque na fala. Retorne apenas o texto transcrito."
    )
    # Inserted into the target text field instead of a transcription on failure
    transcription_error_text: str = "Erro na transcrição. Verifique sua conexão."

    # --- Submission ---
    submission_url: str = ""  # Empty = submissions are skipped (local PDF only)
    submission_folder_name: str = "inspeções Fagundes teste"
    submission_timeout: float = 60.0
    payload_ceiling_bytes: int = 45 * 1024 * 1024

    # --- Imaging ---
    transcode_max_dimension: int = 800  # Bounding box (px) for transmitted photos
    transcode_quality: int = 50  # JPEG quality for transmitted photos
    snapshot_quality: int = 80  # JPEG quality for camera snapshots

    # --- Document rendering ---
    render_dpi: int = 150
    render_settle_delay: float = 0.0  # Seconds to wait before invoking the renderer

    # --- Devices ---
    camera_back_index: int = 0
    camera_front_index: int = 1
    recording_fps: float = 15.0
    audio_sample_rate: int = 16000
    geolocation_timeout: float = 5.0

    # --- Application ---
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]  # Browser form clients
    exports_dir: str = "data/exports"  # Locally generated PDF reports


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
