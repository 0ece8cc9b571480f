"""Shared utility functions for fieldcapture."""

import re
import time

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


def safe_filename_part(text: str, fallback: str = "Colaborador") -> str:
    """Replace every non-alphanumeric character with ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", text) or fallback


def timestamp_ms() -> int:
    """Milliseconds since the epoch, used to time-stamp artifact filenames."""
    return int(time.time() * 1000)
