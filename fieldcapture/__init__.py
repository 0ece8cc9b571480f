"""fieldcapture - media capture, transcoding and report submission pipeline."""

__version__ = "0.1.0"
