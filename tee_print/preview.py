"""
Interactive preview renderer

Renders the editor view at screen resolution:
- background: white
- garment: mockup at 90% of the container width, centered
- layers: placed inside the safe zone derived from the drawn mockup
- safe zone: optional dashed outline (not part of any export)

Uses the same placement geometry as the print render; pixels are not
expected to match the print raster, only the normalized placement.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from .compositor import LayerReport, compose_layers, composite_clipped, probe_sources
from .config import CompositorConfig
from .decoder import DecoderBase, PillowDecoder
from .errors import InvalidInput
from .geometry import Rect
from .layers import Layer
from .safe_zone import resolve_safe_zone

logger = logging.getLogger(__name__)

MOCKUP_WIDTH_FRACTION = 0.9
COLOR_BACKGROUND = "#FFFFFF"
COLOR_SAFE_ZONE = "#FF375F"


@dataclass
class PreviewResult:
    image: Image.Image
    zone: Rect
    garment_box: Optional[Rect]
    layers: List[LayerReport]

    def to_dict(self) -> dict:
        return {
            "width": self.image.width,
            "height": self.image.height,
            "zone": self.zone.to_dict(),
            "garment_box": self.garment_box.to_dict() if self.garment_box else None,
            "layers": [report.placement.to_dict() for report in self.layers],
        }


def mockup_box(mockup: Image.Image, container: Rect) -> Rect:
    """Where the garment mockup is drawn inside the container."""
    width = container.width * MOCKUP_WIDTH_FRACTION
    height = width * (mockup.height / mockup.width)
    return Rect(
        container.x + (container.width - width) / 2.0,
        container.y + (container.height - height) / 2.0,
        width,
        height,
    )


def draw_dashed_rect(draw: ImageDraw.ImageDraw, rect: Rect, color: str, width: int = 2, dash_length: int = 10, gap_length: int = 5):
    """Draw dashed rectangle"""
    x1, y1, x2, y2 = rect.x, rect.y, rect.right, rect.bottom

    x = x1
    while x < x2:
        draw.line([(x, y1), (min(x + dash_length, x2), y1)], fill=color, width=width)
        draw.line([(x, y2), (min(x + dash_length, x2), y2)], fill=color, width=width)
        x += dash_length + gap_length

    y = y1
    while y < y2:
        draw.line([(x1, y), (x1, min(y + dash_length, y2))], fill=color, width=width)
        draw.line([(x2, y), (x2, min(y + dash_length, y2))], fill=color, width=width)
        y += dash_length + gap_length


def render_preview(
    layers: Sequence[Layer],
    size: Tuple[int, int],
    side: str = "front",
    mockup: Optional[Image.Image] = None,
    decoder: Optional[DecoderBase] = None,
    config: Optional[CompositorConfig] = None,
    show_safe_zone: bool = False,
) -> PreviewResult:
    """
    Render the on-screen editor composite.

    Args:
        layers: Layers in draw order
        size: Container size (width, height) in screen pixels
        side: 'front' or 'back' (picks the safe-zone preset)
        mockup: Garment mockup image; without it the fallback zone is used
        decoder: Source decoder
        config: Compositor configuration
        show_safe_zone: Draw the zone outline on top

    Returns:
        PreviewResult with an RGB image of the requested size
    """
    config = config or CompositorConfig()
    decoder = decoder or PillowDecoder()
    width, height = int(size[0]), int(size[1])
    if width <= 0 or height <= 0:
        raise InvalidInput(f"Invalid preview size {width}x{height}", "size")

    container = Rect(0.0, 0.0, float(width), float(height))
    canvas = Image.new("RGBA", (width, height), COLOR_BACKGROUND)

    garment_box = None
    if mockup is not None:
        garment_box = mockup_box(mockup, container)
        tee = mockup.convert("RGBA").resize(
            (max(1, int(round(garment_box.width))), max(1, int(round(garment_box.height)))), Image.LANCZOS
        )
        composite_clipped(canvas, tee, *garment_box.center)

    zone = resolve_safe_zone(side, container, garment_box, config.presets, config.fallback_preset)

    probe_sources(layers, config, decoder)
    reports = compose_layers(canvas, zone, layers, config, decoder, config.canvas.dpi)

    if show_safe_zone:
        draw_dashed_rect(ImageDraw.Draw(canvas), zone, COLOR_SAFE_ZONE)

    logger.debug(f"Preview {width}x{height} side={side} zone={zone}")
    return PreviewResult(image=canvas.convert("RGB"), zone=zone, garment_box=garment_box, layers=reports)
