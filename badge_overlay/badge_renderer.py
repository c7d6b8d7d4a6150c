"""
Vector badge rendering for Badge Overlay.

Builds a markup-independent description of a badge (a rounded rectangle
and a centered label) that the compositor rasterizes. The same description
can be serialized to SVG for export or debugging.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from .constants import BADGE_OPACITY
from .models import BadgeGeometry, BadgeStyle

SVG_NAMESPACE = 'http://www.w3.org/2000/svg'
FONT_FAMILY = 'Arial, sans-serif'


@dataclass(frozen=True)
class BadgeRect:
    """Rounded background rectangle, anchored at the badge origin."""

    width: int
    height: int
    corner_radius: int
    fill: str
    opacity: float = BADGE_OPACITY


@dataclass(frozen=True)
class BadgeText:
    """Label centered horizontally and vertically within the rectangle."""

    text: str
    font_size: int
    fill: str
    bold: bool = True


@dataclass(frozen=True)
class RenderedBadge:
    width: int
    height: int
    rect: BadgeRect
    label: BadgeText

    def to_svg(self) -> str:
        """Serialize the badge as a standalone SVG document."""
        root = ET.Element('svg', {
            'xmlns': SVG_NAMESPACE,
            'width': str(self.width),
            'height': str(self.height),
            'viewBox': f"0 0 {self.width} {self.height}",
        })
        ET.SubElement(root, 'rect', {
            'x': '0',
            'y': '0',
            'width': str(self.rect.width),
            'height': str(self.rect.height),
            'rx': str(self.rect.corner_radius),
            'fill': self.rect.fill,
            'opacity': f"{self.rect.opacity:g}",
        })
        text = ET.SubElement(root, 'text', {
            'x': '50%',
            'y': '50%',
            'dominant-baseline': 'middle',
            'text-anchor': 'middle',
            'font-family': FONT_FAMILY,
            'font-size': str(self.label.font_size),
            'font-weight': 'bold' if self.label.bold else 'normal',
            'fill': self.label.fill,
        })
        text.text = self.label.text
        return ET.tostring(root, encoding='unicode')


def render_badge(geometry: BadgeGeometry, display_text: str, style: BadgeStyle) -> RenderedBadge:
    """Describe the badge for the given geometry, fitted label and style."""
    return RenderedBadge(
        width=geometry.width,
        height=geometry.height,
        rect=BadgeRect(
            width=geometry.width,
            height=geometry.height,
            corner_radius=style.corner_radius,
            fill=style.background_color,
        ),
        label=BadgeText(
            text=display_text,
            font_size=geometry.font_size,
            fill=style.text_color,
        ),
    )
