"""
Badge Overlay - Compositor Package

This package composites short text badges onto raster images, including:
- Image decoding and dimension lookup
- Pluggable badge layout policies
- Label fitting and vector badge rendering
- Pillow-based compositing and atomic PNG output
- Batch generation with per-label failure isolation
"""

from .constants import (
    logger,
    configure_logging,
    DEFAULT_OUTPUT_DIR,
    MAX_BADGE_WORKERS,
    BATCH_TIMEOUT,
)

from .errors import (
    BadgeError,
    DecodeError,
    CompositeError,
    PersistError,
    GenerationTimeout,
)

from .models import (
    BadgeStyle,
    BadgeGeometry,
    SourceImage,
    StoredArtifact,
    GenerationResult,
    GenerationFailure,
    BatchOutcome,
    is_success,
    summarize_outcomes,
)

from .image_reader import decode_source_image, read_dimensions

from .layout import (
    LayoutPolicy,
    AnchoredLayout,
    BottomCenterLayout,
    LAYOUT_PRESETS,
    get_layout_policy,
)

from .text_fit import fit_text, max_chars_for

from .badge_renderer import RenderedBadge, render_badge

from .compositor import composite_badge, rasterize_badge

from .output_writer import OutputWriter, StorageBackend

from .config import BadgeConfig, load_badge_config

from .generator import (
    BadgeGenerator,
    generate_badge,
    generate_badge_batch,
)

__all__ = [
    # Constants
    'logger',
    'configure_logging',
    'DEFAULT_OUTPUT_DIR',
    'MAX_BADGE_WORKERS',
    'BATCH_TIMEOUT',
    # Errors
    'BadgeError',
    'DecodeError',
    'CompositeError',
    'PersistError',
    'GenerationTimeout',
    # Models
    'BadgeStyle',
    'BadgeGeometry',
    'SourceImage',
    'StoredArtifact',
    'GenerationResult',
    'GenerationFailure',
    'BatchOutcome',
    'is_success',
    'summarize_outcomes',
    # Pipeline stages
    'decode_source_image',
    'read_dimensions',
    'LayoutPolicy',
    'AnchoredLayout',
    'BottomCenterLayout',
    'LAYOUT_PRESETS',
    'get_layout_policy',
    'fit_text',
    'max_chars_for',
    'RenderedBadge',
    'render_badge',
    'composite_badge',
    'rasterize_badge',
    'OutputWriter',
    'StorageBackend',
    # Config
    'BadgeConfig',
    'load_badge_config',
    # Generation
    'BadgeGenerator',
    'generate_badge',
    'generate_badge_batch',
]
