"""
Constants and configuration for Badge Overlay.

This module contains the shared logger, badge layout constants, and
environment-based defaults used throughout the compositing pipeline.
"""

import logging
import os
import sys
from typing import Optional, TextIO

logger = logging.getLogger('BadgeOverlay')

LOG_FORMAT = '| %(levelname)-8s | %(message)s'


def configure_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> None:
    """Attach the log handler (stdout by default). Called once by process entry points."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(stream or sys.stdout)]
    )
    logger.setLevel(level)


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.environ.get(name, '').strip()
    if not raw:
        return None
    return float(raw)


# ============================================================================
# Output Configuration
# ============================================================================
DEFAULT_OUTPUT_DIR = os.environ.get('BADGE_OUTPUT_DIR', 'outputs')
DEFAULT_PUBLIC_URL_PREFIX = os.environ.get('BADGE_PUBLIC_URL_PREFIX', '/outputs')

ARTIFACT_PREFIX = 'badge-'
ARTIFACT_EXTENSION = '.png'

# ============================================================================
# Batch Configuration
# ============================================================================
MAX_BADGE_WORKERS = int(os.environ.get('BADGE_MAX_WORKERS', '4'))

# Whole-batch timeout in seconds; unset means no timeout
BATCH_TIMEOUT = _env_optional_float('BADGE_BATCH_TIMEOUT')

# ============================================================================
# Badge Style Defaults
# ============================================================================
DEFAULT_BACKGROUND_COLOR = '#FF6B35'  # Brand orange
DEFAULT_TEXT_COLOR = '#FFFFFF'
DEFAULT_CORNER_RADIUS = 12
BADGE_OPACITY = 0.95

# ============================================================================
# Layout Ratios (bottom-center default)
# ============================================================================
# Ratios are expressed in percent so geometry stays in integer arithmetic
BADGE_WIDTH_PERCENT = 80
BADGE_HEIGHT_PERCENT = 15
FONT_SIZE_PERCENT = 40
BADGE_MARGIN_PERCENT = 5

# ============================================================================
# Text Fitting
# ============================================================================
AVERAGE_GLYPH_WIDTH_RATIO = 0.6
ELLIPSIS = '...'

# ============================================================================
# Font Configuration
# ============================================================================
# BADGE_STRICT_FONTS: fail at startup if no TrueType bold font is available
BADGE_STRICT_FONTS = os.environ.get('BADGE_STRICT_FONTS', '0') == '1'

BADGE_FONT_PATH = os.environ.get('BADGE_FONT_PATH', '')

BOLD_FONT_CANDIDATES = [
    '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf',
    '/usr/share/fonts/TTF/DejaVuSans-Bold.ttf',
    '/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf',
    '/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf',
    '/Library/Fonts/Arial Bold.ttf',
    '/System/Library/Fonts/Supplemental/Arial Bold.ttf',
    'C:/Windows/Fonts/arialbd.ttf',
]

COMMON_FONT_PATHS = [
    '/usr/share/fonts',
    '/Library/Fonts',
    'C:/Windows/Fonts',
]

# Font sizes rendered before fanning out to workers
PREWARM_FONT_SIZES = [24, 40, 60]
