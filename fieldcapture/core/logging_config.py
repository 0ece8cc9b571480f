"""Process-wide logging setup."""

import logging


def configure_logging(level: str = "INFO") -> None:
    """Apply a basic stream handler at ``level`` (no-op if already configured)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
