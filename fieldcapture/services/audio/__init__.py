"""
Audio module - PCM packaging utilities.
"""

from .processor import AudioProcessor

__all__ = ["AudioProcessor"]
