"""
Data model for Badge Overlay.

Value objects passed between pipeline stages. Everything here is immutable
once constructed; per-label work only ever creates new instances.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from PIL import Image, ImageColor

from .constants import (
    logger,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_TEXT_COLOR,
    DEFAULT_CORNER_RADIUS,
)


# Option keys accepted by BadgeStyle.from_options (camelCase kept for callers
# that still send the web form's names)
_STYLE_KEY_ALIASES = {
    'background_color': 'background_color',
    'backgroundColor': 'background_color',
    'bg_color': 'background_color',
    'bgColor': 'background_color',
    'text_color': 'text_color',
    'textColor': 'text_color',
    'corner_radius': 'corner_radius',
    'cornerRadius': 'corner_radius',
}


@dataclass(frozen=True)
class BadgeStyle:
    """Caller-supplied badge appearance, shared read-only across a batch."""

    background_color: str = DEFAULT_BACKGROUND_COLOR
    text_color: str = DEFAULT_TEXT_COLOR
    corner_radius: int = DEFAULT_CORNER_RADIUS

    def __post_init__(self):
        for name in ('background_color', 'text_color'):
            value = getattr(self, name)
            try:
                ImageColor.getrgb(value)
            except (ValueError, AttributeError, TypeError):
                raise ValueError(f"Invalid {name}: {value!r}") from None
        try:
            radius = int(self.corner_radius)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid corner_radius: {self.corner_radius!r}") from None
        if radius < 0:
            raise ValueError(f"corner_radius must be >= 0, got {radius}")
        object.__setattr__(self, 'corner_radius', radius)

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]]) -> 'BadgeStyle':
        """Build a style from a loose options mapping, ignoring unknown keys."""
        if not options:
            return cls()

        kwargs: Dict[str, Any] = {}
        for key, value in options.items():
            target = _STYLE_KEY_ALIASES.get(key)
            if target is None:
                logger.warning(f"STYLE_OPTION_IGNORED key={key}")
                continue
            if value is None:
                continue
            kwargs[target] = value
        return cls(**kwargs)

    def merged(self, options: Optional[Mapping[str, Any]]) -> 'BadgeStyle':
        """Return a copy with the given options applied on top of this style."""
        base = {
            'background_color': self.background_color,
            'text_color': self.text_color,
            'corner_radius': self.corner_radius,
        }
        if options:
            base.update((key, value) for key, value in options.items() if value is not None)
        return BadgeStyle.from_options(base)


@dataclass(frozen=True)
class BadgeGeometry:
    """Badge box size, font size and top-left anchor, all in pixels."""

    width: int
    height: int
    x: int
    y: int
    font_size: int

    @property
    def position(self):
        return (self.x, self.y)


@dataclass(frozen=True, eq=False)
class SourceImage:
    """
    A decoded source image.

    The decoded Pillow image is shared read-only between labels; the
    compositor always works on a copy.
    """

    data: bytes = field(repr=False)
    image: Image.Image = field(repr=False)
    width: int
    height: int
    format: Optional[str] = None

    @property
    def has_alpha(self) -> bool:
        return self.image.mode == 'RGBA'


@dataclass(frozen=True)
class StoredArtifact:
    """Where the output writer published an encoded badge image."""

    identifier: str
    locator: str
    filename: str
    url: str


@dataclass(frozen=True)
class GenerationResult:
    """One successfully generated badge image."""

    identifier: str
    locator: str
    width: int
    height: int
    filename: str = ''
    url: str = ''
    label: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': True,
            'label': self.label,
            'identifier': self.identifier,
            'locator': self.locator,
            'filename': self.filename,
            'url': self.url,
            'width': self.width,
            'height': self.height,
        }


@dataclass(frozen=True)
class GenerationFailure:
    """One label that failed at some pipeline stage."""

    label: Any
    error: str
    kind: str = 'BadgeError'
    stage: str = 'generate'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': False,
            'label': self.label,
            'error': self.error,
            'kind': self.kind,
            'stage': self.stage,
        }


Outcome = Union[GenerationResult, GenerationFailure]
BatchOutcome = List[Outcome]


def is_success(outcome: Outcome) -> bool:
    return isinstance(outcome, GenerationResult)


def summarize_outcomes(outcomes: BatchOutcome) -> Dict[str, int]:
    """Count successes and failures (by kind) in a batch outcome."""
    summary: Dict[str, int] = {'total': len(outcomes), 'succeeded': 0, 'failed': 0}
    for outcome in outcomes:
        if is_success(outcome):
            summary['succeeded'] += 1
        else:
            summary['failed'] += 1
            summary[outcome.kind] = summary.get(outcome.kind, 0) + 1
    return summary
