"""
Media module - hardware streams, capture state machine and form media slots.
"""

from .capture import CaptureStateMachine
from .devices import MediaDevices, MediaStream
from .field import MediaField
from .session import MediaSession
from .timer import RecordingTimer, format_elapsed

__all__ = [
    "CaptureStateMachine",
    "MediaDevices",
    "MediaField",
    "MediaSession",
    "MediaStream",
    "RecordingTimer",
    "format_elapsed",
]
