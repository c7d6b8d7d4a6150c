"""
Badge layout planning for Badge Overlay.

A layout policy turns image dimensions into badge geometry. The default
places the badge bottom-center at 80% x 15% of the image; other anchors
are presets of the same AnchoredLayout policy.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .constants import (
    BADGE_WIDTH_PERCENT,
    BADGE_HEIGHT_PERCENT,
    FONT_SIZE_PERCENT,
    BADGE_MARGIN_PERCENT,
)
from .models import BadgeGeometry

HORIZONTAL_ALIGNS = ('left', 'center', 'right')
VERTICAL_ALIGNS = ('top', 'center', 'bottom')


class LayoutPolicy(ABC):
    """Computes badge geometry as a function of image size."""

    name = 'custom'

    @abstractmethod
    def plan(self, image_width: int, image_height: int) -> BadgeGeometry:
        """Return the badge geometry for an image of the given size."""


def _ceil_percent(value: int, percent: int) -> int:
    return -(-value * percent // 100)


def calculate_position(
    overlay_width: int,
    overlay_height: int,
    image_width: int,
    image_height: int,
    position_config: Dict[str, Any]
) -> Tuple[int, int]:
    """
    Calculate the (x, y) top-left corner for an overlay.

    Positioning uses:
    - horizontal_align: left, center, right
    - vertical_align: top, center, bottom
    - horizontal_offset: pixels from align point
    - vertical_offset: pixels from align point

    The result is always clamped so the overlay lies inside the image.
    """
    h_align = position_config.get('horizontal_align', 'left')
    v_align = position_config.get('vertical_align', 'top')
    h_offset = position_config.get('horizontal_offset', 0)
    v_offset = position_config.get('vertical_offset', 0)

    if h_align == 'center':
        x = (image_width - overlay_width) // 2 + h_offset
    elif h_align == 'right':
        x = image_width - overlay_width - h_offset
    else:
        x = h_offset

    if v_align == 'center':
        y = (image_height - overlay_height) // 2 + v_offset
    elif v_align == 'bottom':
        y = image_height - overlay_height - v_offset
    else:
        y = v_offset

    x = max(0, min(x, image_width - overlay_width))
    y = max(0, min(y, image_height - overlay_height))

    return (x, y)


class AnchoredLayout(LayoutPolicy):
    """
    Badge sized as a percentage of the image and anchored to an edge,
    corner or the center.

    Margins apply only on the anchored edges: a horizontally centered badge
    gets no horizontal margin, a bottom-anchored one gets margin_percent of
    the image height below it.
    """

    def __init__(
        self,
        horizontal_align: str = 'center',
        vertical_align: str = 'bottom',
        width_percent: int = BADGE_WIDTH_PERCENT,
        height_percent: int = BADGE_HEIGHT_PERCENT,
        font_percent: int = FONT_SIZE_PERCENT,
        margin_percent: int = BADGE_MARGIN_PERCENT,
        name: Optional[str] = None,
    ):
        if horizontal_align not in HORIZONTAL_ALIGNS:
            raise ValueError(f"horizontal_align must be one of {HORIZONTAL_ALIGNS}, got {horizontal_align!r}")
        if vertical_align not in VERTICAL_ALIGNS:
            raise ValueError(f"vertical_align must be one of {VERTICAL_ALIGNS}, got {vertical_align!r}")
        for label, value in (
            ('width_percent', width_percent),
            ('height_percent', height_percent),
            ('font_percent', font_percent),
            ('margin_percent', margin_percent),
        ):
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 100:
                raise ValueError(f"{label} must be an integer between 0 and 100, got {value!r}")

        self.horizontal_align = horizontal_align
        self.vertical_align = vertical_align
        self.width_percent = width_percent
        self.height_percent = height_percent
        self.font_percent = font_percent
        self.margin_percent = margin_percent
        self.name = name or f"{vertical_align}_{horizontal_align}"

    def plan(self, image_width: int, image_height: int) -> BadgeGeometry:
        image_width = max(0, int(image_width))
        image_height = max(0, int(image_height))

        width = image_width * self.width_percent // 100
        height = image_height * self.height_percent // 100
        font_size = height * self.font_percent // 100

        h_offset = 0 if self.horizontal_align == 'center' else _ceil_percent(image_width, self.margin_percent)
        v_offset = 0 if self.vertical_align == 'center' else _ceil_percent(image_height, self.margin_percent)

        x, y = calculate_position(width, height, image_width, image_height, {
            'horizontal_align': self.horizontal_align,
            'vertical_align': self.vertical_align,
            'horizontal_offset': h_offset,
            'vertical_offset': v_offset,
        })

        return BadgeGeometry(width=width, height=height, x=x, y=y, font_size=font_size)

    def __repr__(self) -> str:
        return (
            f"AnchoredLayout({self.horizontal_align!r}, {self.vertical_align!r}, "
            f"width_percent={self.width_percent}, height_percent={self.height_percent})"
        )


class BottomCenterLayout(AnchoredLayout):
    """Default layout: 80% x 15% of the image, centered, 5% above the bottom."""

    def __init__(self):
        super().__init__('center', 'bottom', name='bottom_center')


LAYOUT_PRESETS: Dict[str, Dict[str, str]] = {
    'bottom_center': {'horizontal_align': 'center', 'vertical_align': 'bottom'},
    'top_center': {'horizontal_align': 'center', 'vertical_align': 'top'},
    'center': {'horizontal_align': 'center', 'vertical_align': 'center'},
    'top_left': {'horizontal_align': 'left', 'vertical_align': 'top'},
    'top_right': {'horizontal_align': 'right', 'vertical_align': 'top'},
    'bottom_left': {'horizontal_align': 'left', 'vertical_align': 'bottom'},
    'bottom_right': {'horizontal_align': 'right', 'vertical_align': 'bottom'},
}

_LAYOUT_KEYS = (
    'horizontal_align',
    'vertical_align',
    'width_percent',
    'height_percent',
    'font_percent',
    'margin_percent',
)


def get_layout_policy(value: Union[None, str, Mapping[str, Any], LayoutPolicy] = None) -> LayoutPolicy:
    """
    Resolve a layout policy from a preset name, a config mapping or an
    existing policy.

    A mapping may name a preset under 'anchor' and override any of the
    AnchoredLayout parameters.
    """
    if value is None:
        return BottomCenterLayout()
    if isinstance(value, LayoutPolicy):
        return value

    if isinstance(value, str):
        if value == 'bottom_center':
            return BottomCenterLayout()
        if value not in LAYOUT_PRESETS:
            raise ValueError(f"Unknown layout preset {value!r}; expected one of {sorted(LAYOUT_PRESETS)}")
        return AnchoredLayout(name=value, **LAYOUT_PRESETS[value])

    if isinstance(value, Mapping):
        params: Dict[str, Any] = {}
        anchor = value.get('anchor')
        if anchor is not None:
            if anchor not in LAYOUT_PRESETS:
                raise ValueError(f"Unknown layout anchor {anchor!r}; expected one of {sorted(LAYOUT_PRESETS)}")
            params.update(LAYOUT_PRESETS[anchor])
        for key in _LAYOUT_KEYS:
            if key in value:
                params[key] = value[key]
        unknown = set(value) - set(_LAYOUT_KEYS) - {'anchor'}
        if unknown:
            raise ValueError(f"Unknown layout option(s): {', '.join(sorted(unknown))}")
        return AnchoredLayout(name=anchor, **params)

    raise TypeError(f"Cannot build a layout policy from {type(value).__name__}")
