"""
Label fitting for Badge Overlay.

Truncates a label so it fits its badge, using an average glyph width
estimate rather than real font metrics.
"""

import math

from .constants import AVERAGE_GLYPH_WIDTH_RATIO, ELLIPSIS


def max_chars_for(box_width: int, font_size: int) -> int:
    """Number of characters assumed to fit in box_width at font_size."""
    if box_width <= 0 or font_size <= 0:
        return 0
    return math.floor(box_width / (font_size * AVERAGE_GLYPH_WIDTH_RATIO))


def fit_text(text: str, box_width: int, font_size: int) -> str:
    """
    Return the label as it should be displayed in a box of box_width.

    Labels longer than the estimated capacity are cut and end with an
    ellipsis. When there is no room for any text before the ellipsis the
    ellipsis alone is returned if it fits, otherwise an empty string.
    Fitting an already fitted label returns it unchanged.
    """
    max_chars = max_chars_for(box_width, font_size)
    if len(text) <= max_chars:
        return text

    keep = max_chars - len(ELLIPSIS)
    if keep <= 0:
        return ELLIPSIS if max_chars >= len(ELLIPSIS) else ''
    return text[:keep] + ELLIPSIS
