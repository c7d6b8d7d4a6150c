"""
Badge compositor for Badge Overlay.

Rasterizes a RenderedBadge with Pillow and overlays it onto the decoded
source image, then encodes the result as PNG.
"""

from io import BytesIO
from typing import Tuple

from PIL import Image, ImageColor, ImageDraw

from .badge_renderer import RenderedBadge
from .constants import logger
from .errors import CompositeError
from .fonts import get_font
from .models import SourceImage

OUTPUT_FORMAT = 'PNG'


def _rgba(color: str, opacity: float = 1.0) -> Tuple[int, int, int, int]:
    r, g, b, a = ImageColor.getcolor(color, 'RGBA')
    return (r, g, b, int(round(a * opacity)))


def rasterize_badge(badge: RenderedBadge) -> Image.Image:
    """
    Draw the badge description into an RGBA image of the badge's size.

    Returns a fully transparent image for a zero-sized badge.
    """
    width, height = badge.width, badge.height
    canvas = Image.new('RGBA', (width, height), (0, 0, 0, 0))
    if width <= 0 or height <= 0:
        return canvas

    draw = ImageDraw.Draw(canvas)

    rect = badge.rect
    radius = min(rect.corner_radius, rect.width // 2, rect.height // 2)
    draw.rounded_rectangle(
        [(0, 0), (rect.width - 1, rect.height - 1)],
        radius=radius,
        fill=_rgba(rect.fill, rect.opacity),
    )

    label = badge.label
    if label.text:
        font = get_font(label.font_size)
        # Center on the ink box so the label sits in the middle both ways
        bbox = draw.textbbox((0, 0), label.text, font=font)
        text_width = bbox[2] - bbox[0]
        text_height = bbox[3] - bbox[1]
        x = (width - text_width) / 2 - bbox[0]
        y = (height - text_height) / 2 - bbox[1]
        draw.text((x, y), label.text, fill=_rgba(label.fill), font=font)

    return canvas


def composite_badge(source: SourceImage, badge: RenderedBadge, position: Tuple[int, int]) -> bytes:
    """
    Overlay the badge onto a copy of the source image and encode it as PNG.

    Args:
        source: Decoded source image (left untouched)
        badge: Badge description from render_badge()
        position: (x, y) of the badge's top-left corner

    Returns:
        Encoded PNG bytes. RGBA when the source had transparency, RGB otherwise.

    Raises:
        CompositeError: placement outside the image, or rasterize/encode failure
    """
    x, y = position
    if x < 0 or y < 0 or x + badge.width > source.width or y + badge.height > source.height:
        raise CompositeError(
            f"Badge {badge.width}x{badge.height} at ({x}, {y}) falls outside "
            f"image bounds {source.width}x{source.height}",
            stage='composite',
        )

    try:
        overlay = rasterize_badge(badge)
    except (OSError, ValueError, TypeError) as e:
        raise CompositeError(f"Failed to rasterize badge: {e}", stage='rasterize') from e

    try:
        img = source.image.convert('RGBA')
        if badge.width > 0 and badge.height > 0:
            img.alpha_composite(overlay, dest=(x, y))
        if not source.has_alpha:
            img = img.convert('RGB')
    except (OSError, ValueError) as e:
        raise CompositeError(f"Failed to overlay badge: {e}", stage='composite') from e

    buffer = BytesIO()
    try:
        img.save(buffer, OUTPUT_FORMAT)
    except (OSError, ValueError) as e:
        raise CompositeError(f"Failed to encode {OUTPUT_FORMAT}: {e}", stage='encode') from e

    encoded = buffer.getvalue()
    logger.debug(
        f"BADGE_COMPOSITED size={source.width}x{source.height} "
        f"badge={badge.width}x{badge.height}@({x},{y}) bytes={len(encoded)}"
    )
    return encoded
