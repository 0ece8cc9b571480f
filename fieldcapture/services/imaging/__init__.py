"""
Imaging module - still image encoding and size-bounded transcoding.
"""

from .transcoder import ImageTranscoder, encode_jpeg, scaled_size

__all__ = ["ImageTranscoder", "encode_jpeg", "scaled_size"]
