"""
Image normalization.

Every uploaded image is decoded with Pillow and re-encoded as JPEG at a fixed
quality before it is written to blob storage, so the stored bytes never depend
on what the client claimed to send.
"""
import io
import logging

from PIL import Image

from posts.errors import CompressionFailed

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 25


def normalize_image(image_data: bytes, quality: int = DEFAULT_QUALITY) -> bytes:
    """Re-encode image bytes as JPEG at the given quality.

    Args:
        image_data: Raw image bytes in any format Pillow can decode
        quality: JPEG quality on Pillow's 1-95 scale

    Returns:
        JPEG bytes

    Raises:
        CompressionFailed: If the input cannot be decoded or encoded
    """
    try:
        img = Image.open(io.BytesIO(image_data))
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Could not decode image for normalization: {e}")
        raise CompressionFailed("Image compression failed") from e

    # JPEG has no alpha channel or palette
    if img.mode != 'RGB':
        img = img.convert('RGB')

    buffer = io.BytesIO()
    try:
        img.save(buffer, format='JPEG', quality=quality)
    except (OSError, ValueError) as e:
        logger.error(f"Could not encode image as JPEG: {e}")
        raise CompressionFailed("Image compression failed") from e

    compressed = buffer.getvalue()
    logger.debug(
        f"Normalized image from {len(image_data)} to {len(compressed)} bytes (quality={quality})"
    )
    return compressed


class ImageNormalizer:
    """Holds the configured quality so callers don't pass it around."""

    def __init__(self, quality: int = DEFAULT_QUALITY):
        self.quality = quality

    @classmethod
    def from_settings(cls, settings) -> "ImageNormalizer":
        return cls(quality=settings.quality)

    def normalize(self, image_data: bytes) -> bytes:
        return normalize_image(image_data, self.quality)
