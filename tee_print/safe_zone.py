"""Safe-zone derivation and layer placement inside a zone.

The safe zone is the garment-relative rectangle (screen pixels) that all
layers must stay inside. Its 3:4 aspect matches the print canvas, so a
normalized position means the same thing on screen and in the print file.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import FALLBACK_PRESET, SAFE_ZONE_ASPECT, CompositorConfig, SafeZonePreset
from .errors import InvalidInput
from .geometry import (
    Rect,
    clamp_center_to_bounds,
    denormalize,
    is_degenerate,
    normalize,
    rotated_half_extents,
    round_half_up,
)
from .layers import ImageLayer, Layer, TextLayer, with_placement
from .text import font_size_px, resolve_font, text_box_size

logger = logging.getLogger(__name__)

SIDES = ("front", "back")


@dataclass(frozen=True)
class Placement:
    """A layer resolved to pixel space inside some area."""

    center_x: float
    center_y: float
    width: float
    height: float
    half_w: float
    half_h: float
    clamped: bool
    degenerate: bool
    font_px: Optional[int] = None

    def to_dict(self) -> dict:
        payload = {
            "center_x": self.center_x,
            "center_y": self.center_y,
            "width": self.width,
            "height": self.height,
            "half_w": self.half_w,
            "half_h": self.half_h,
            "clamped": self.clamped,
            "degenerate": self.degenerate,
        }
        if self.font_px is not None:
            payload["font_px"] = self.font_px
        return payload


def derive_safe_zone(garment_box: Rect, preset: SafeZonePreset) -> Rect:
    """Safe zone for a garment box and calibration preset.

    Width comes from the preset, height is locked to 4/3 of it. If the
    rectangle overflows the garment box on the right or bottom it is shrunk
    (height-constrained first, then width-constrained) keeping 3:4.

    Args:
        garment_box: Mockup bounding box as laid out on screen
        preset: Per-side calibration fractions

    Returns:
        Rect fully inside garment_box
    """
    width = garment_box.width * preset.width_fraction
    height = width * SAFE_ZONE_ASPECT

    x = garment_box.x + preset.left_fraction * garment_box.width
    y = garment_box.y + preset.top_fraction * garment_box.height
    x = min(max(x, garment_box.x), garment_box.right)
    y = min(max(y, garment_box.y), garment_box.bottom)

    available_w = garment_box.right - x
    available_h = garment_box.bottom - y

    if height > available_h:
        height = available_h
        width = height / SAFE_ZONE_ASPECT
    if width > available_w:
        width = available_w
        height = width * SAFE_ZONE_ASPECT

    if width <= 0 or height <= 0:
        logger.warning(f"Safe zone collapsed for box {garment_box} and preset {preset}")
        return Rect(x, y, 0.0, 0.0)
    return Rect(x, y, width, height)


def fallback_safe_zone(container: Rect, preset: SafeZonePreset = FALLBACK_PRESET) -> Rect:
    """Zone used before the mockup has loaded, proportional to the container."""
    return derive_safe_zone(container, preset)


def resolve_safe_zone(
    side: str,
    container: Rect,
    garment_box: Optional[Rect] = None,
    presets: Optional[Dict[str, SafeZonePreset]] = None,
    fallback_preset: SafeZonePreset = FALLBACK_PRESET,
) -> Rect:
    """Pick the zone for a side: calibrated if the mockup box is known."""
    presets = presets if presets is not None else CompositorConfig().presets
    if side not in presets:
        raise InvalidInput(f"Unknown side: {side}", "side")
    if garment_box is None or garment_box.width <= 0 or garment_box.height <= 0:
        return fallback_safe_zone(container, fallback_preset)
    return derive_safe_zone(garment_box, presets[side])


def layer_pixel_size(
    layer: Layer,
    area: Rect,
    config: Optional[CompositorConfig] = None,
    round_px: bool = False,
) -> Tuple[float, float, Optional[int]]:
    """Unrotated pixel size of a layer inside area.

    Returns:
        Tuple of (width, height, font_px); font_px is None for images
    """
    config = config or CompositorConfig()
    if isinstance(layer, ImageLayer):
        if layer.intrinsic_ratio is None or layer.intrinsic_ratio <= 0:
            raise InvalidInput("image layer needs an intrinsic ratio", "intrinsicRatio")
        width = layer.placement.width_fraction * area.width
        if round_px:
            width = float(max(1, round_half_up(width)))
            height = float(max(1, round_half_up(width * layer.intrinsic_ratio)))
        else:
            height = width * layer.intrinsic_ratio
        return width, height, None

    if isinstance(layer, TextLayer):
        font_px = font_size_px(area.width, layer.scale_percent, config.text_base_percent)
        font = resolve_font(layer.font_family, font_px)
        width, height = text_box_size(layer.text, font, font_px, area.width)
        return width, height, font_px

    raise InvalidInput(f"Unsupported layer: {type(layer).__name__}", "type")


def place_layer(
    layer: Layer,
    area: Rect,
    config: Optional[CompositorConfig] = None,
    size: Optional[Tuple[float, float, Optional[int]]] = None,
) -> Placement:
    """Resolve a layer's normalized placement to clamped pixel coordinates.

    Degenerate layouts (layer larger than the area) are centered and
    reported, never raised.
    """
    config = config or CompositorConfig()
    width, height, font_px = size if size is not None else layer_pixel_size(layer, area, config)
    spec = layer.placement

    requested_x, requested_y = denormalize(spec.center_x, spec.center_y, area)
    half_w, half_h = rotated_half_extents(width, height, spec.rotation_degrees)
    degenerate = is_degenerate(half_w, half_h, area)
    x, y = clamp_center_to_bounds(
        requested_x, requested_y, half_w, half_h, area, symmetric_y=config.symmetric_vertical_clamp
    )
    moved = abs(x - requested_x) > 1e-9 or abs(y - requested_y) > 1e-9
    return Placement(
        center_x=x,
        center_y=y,
        width=width,
        height=height,
        half_w=half_w,
        half_h=half_h,
        clamped=degenerate or moved,
        degenerate=degenerate,
        font_px=font_px,
    )


def reapply_layout(layers: List[Layer], zone: Rect, config: Optional[CompositorConfig] = None) -> List[Layer]:
    """Re-clamp layers after the zone changed (mockup loaded, resize).

    Normalized coordinates are reapplied against the new zone, so layers stay
    where they were relative to the print area; only layers that no longer
    fit get pulled inside.
    """
    updated = []
    for layer in layers:
        placement = place_layer(layer, zone, config)
        if placement.clamped:
            nx, ny = normalize(placement.center_x, placement.center_y, zone)
            layer = with_placement(layer, center_x=nx, center_y=ny)
        updated.append(layer)
    return updated
