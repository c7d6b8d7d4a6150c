"""
Font handling for Badge Overlay.

This module provides bold font resolution, fallbacks, and a per-size font
cache shared by the compositor threads.
"""

import threading
from pathlib import Path
from typing import Dict, List, Optional

from PIL import ImageFont

from .constants import (
    logger,
    BADGE_FONT_PATH,
    BADGE_STRICT_FONTS,
    BOLD_FONT_CANDIDATES,
    COMMON_FONT_PATHS,
    PREWARM_FONT_SIZES,
)

_font_cache: Dict[int, ImageFont.ImageFont] = {}
_font_lock = threading.Lock()


def resolve_font_path() -> Optional[str]:
    """Return the first available bold TrueType font, or None."""
    candidates: List[str] = []
    if BADGE_FONT_PATH:
        candidates.append(BADGE_FONT_PATH)
    candidates.extend(BOLD_FONT_CANDIDATES)

    for candidate in candidates:
        if candidate and Path(candidate).exists():
            return candidate
    return None


def validate_fonts_at_startup() -> Optional[str]:
    """
    Log font availability at startup.

    Returns the bold font path that will be used, or None when the Pillow
    default font is the only option. In strict mode a missing TrueType font
    is an error.
    """
    if BADGE_FONT_PATH and not Path(BADGE_FONT_PATH).exists():
        logger.warning(f"FONT_PATH_MISSING: {BADGE_FONT_PATH} (BADGE_FONT_PATH)")

    for font_dir in COMMON_FONT_PATHS:
        if Path(font_dir).exists():
            logger.debug(f"FONT_DIR_FOUND: {font_dir}")

    font_path = resolve_font_path()
    if font_path:
        logger.info(f"BADGE_FONT_OK: {font_path}")
        return font_path

    logger.warning("BADGE_FONT_MISSING: no bold TrueType font found, using Pillow default font")
    logger.warning("  To fix: install DejaVu Sans or set BADGE_FONT_PATH to a bold .ttf file")
    if BADGE_STRICT_FONTS:
        raise FileNotFoundError(
            "No bold TrueType font available. "
            "Set BADGE_FONT_PATH or BADGE_STRICT_FONTS=0 to use the default font."
        )
    return None


def _load_font(font_size: int) -> ImageFont.ImageFont:
    font_path = resolve_font_path()
    if font_path:
        try:
            return ImageFont.truetype(font_path, font_size)
        except OSError as e:
            logger.warning(f"FONT_LOAD_FAILED path={font_path} size={font_size} error={e}")
    logger.debug(f"FONT_FALLBACK size={font_size} font=default")
    return ImageFont.load_default(size=font_size)


def get_font(font_size: int) -> ImageFont.ImageFont:
    """
    Get a cached bold font instance for the given size.

    Fonts are expensive to load from disk, so instances are cached by size
    and shared across compositing threads.
    """
    font_size = max(1, int(font_size))
    with _font_lock:
        font = _font_cache.get(font_size)
        if font is None:
            font = _load_font(font_size)
            _font_cache[font_size] = font
        return font


def prewarm_fonts(sizes: Optional[List[int]] = None) -> None:
    """Load fonts for the given sizes ahead of a parallel batch."""
    for size in sizes or PREWARM_FONT_SIZES:
        get_font(size)


def clear_font_cache() -> None:
    with _font_lock:
        _font_cache.clear()
