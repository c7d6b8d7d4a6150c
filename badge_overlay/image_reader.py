"""
Image metadata reader for Badge Overlay.

Decodes a raster image buffer once and reports its pixel dimensions.
"""

from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from .constants import logger
from .errors import DecodeError
from .models import SourceImage

_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


def decode_source_image(data: bytes) -> SourceImage:
    """
    Decode a raw image buffer into a SourceImage.

    The pixel data is fully loaded here so truncated files fail now rather
    than halfway through compositing. Images carrying any transparency are
    normalized to RGBA, everything else to RGB.

    Raises:
        DecodeError: buffer is empty, not a supported format, or corrupt
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise DecodeError(f"Expected image bytes, got {type(data).__name__}")
    data = bytes(data)
    if not data:
        raise DecodeError("Image buffer is empty")

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            source_format = img.format
            has_alpha = img.mode in ('RGBA', 'LA', 'PA') or 'transparency' in img.info
            decoded = img.convert('RGBA' if has_alpha else 'RGB')
    except _DECODE_ERRORS as e:
        raise DecodeError(f"Unreadable image data ({len(data)} bytes): {e}") from e

    width, height = decoded.size
    logger.debug(f"IMAGE_DECODED format={source_format} size={width}x{height} mode={decoded.mode}")
    return SourceImage(
        data=data,
        image=decoded,
        width=width,
        height=height,
        format=source_format,
    )


def read_dimensions(data: bytes) -> Tuple[int, int]:
    """Return (width, height) in pixels for an encoded image buffer."""
    source = decode_source_image(data)
    return (source.width, source.height)
