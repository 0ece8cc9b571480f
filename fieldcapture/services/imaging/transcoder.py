"""Client-side image re-encoding.

Photos are downsampled to fit an 800x800 bounding box and re-encoded as
JPEG at quality 50 so that several of them fit in one submission payload
regardless of the camera resolution. Decoding and encoding are CPU-bound
and run via ``asyncio.to_thread()``.
"""

import asyncio
import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from fieldcapture.core.config import get_settings
from fieldcapture.core.exceptions import EncodingError

logger = logging.getLogger(__name__)


def scaled_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Fit ``width`` x ``height`` inside a ``max_dimension`` square.

    The scale factor is ``min(1, max_dimension / max(width, height))`` so
    images are never enlarged.
    """
    scale = min(1.0, max_dimension / max(width, height))
    return max(1, round(width * scale)), max(1, round(height * scale))


def encode_jpeg(image: Image.Image, quality: int, mirror: bool = False) -> bytes:
    """Encode ``image`` as JPEG, optionally flipped left-to-right."""
    if image.mode != "RGB":
        image = image.convert("RGB")
    if mirror:
        image = ImageOps.mirror(image)
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


class ImageTranscoder:
    """Downsamples and re-encodes still images to bound their encoded size.

    Args:
        max_dimension: Longest allowed side in pixels (default from settings).
        quality: JPEG quality 1-95 (default from settings).
    """

    mime_type = "image/jpeg"

    def __init__(self, max_dimension: int | None = None, quality: int | None = None) -> None:
        settings = get_settings()
        self._max_dimension = max_dimension or settings.transcode_max_dimension
        self._quality = quality or settings.transcode_quality

    def _transcode(self, data: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img = ImageOps.exif_transpose(img)
                size = scaled_size(img.width, img.height, self._max_dimension)
                if size != img.size:
                    img = img.resize(size, Image.Resampling.LANCZOS)
                return encode_jpeg(img, self._quality)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise EncodingError(f"Image transcoding failed: {exc}") from exc

    async def transcode(self, data: bytes, mime_type: str = "image/jpeg") -> bytes:
        """Return a size-bounded JPEG for images; other media is returned as-is.

        Video is never size-bounded here, so callers must gate on MIME type
        before using this for network submission.

        Raises:
            EncodingError: If the image cannot be decoded or re-encoded.
        """
        if not mime_type.startswith("image/"):
            return data
        result = await asyncio.to_thread(self._transcode, data)
        logger.debug(
            "Transcoded image %d -> %d bytes (max %dpx, q=%d)",
            len(data),
            len(result),
            self._max_dimension,
            self._quality,
        )
        return result
