"""Editor gesture transitions.

Each pointer/wheel event in the editor becomes one discrete, pure
transition: apply_gesture(layer, gesture, zone) -> new layer. The event
loop that produces gestures lives in the UI; the math lives here so the
preview and the print render agree on where things are.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Union

from .config import (
    MAX_IMAGE_WIDTH_FRACTION,
    MAX_INTERACTIVE_ROTATION_DEG,
    MAX_TEXT_SCALE_PCT,
    MIN_IMAGE_WIDTH_FRACTION,
    MIN_TEXT_SCALE_PCT,
    ROTATION_MAGNET_DEG,
    ROTATION_SNAP_DEG,
    WHEEL_STEP_FRACTION,
    CompositorConfig,
)
from .errors import InvalidInput
from .geometry import Guide, Rect, clamp_value, normalize, round_half_up, snap_to_guides
from .layers import ImageLayer, Layer, with_placement
from .safe_zone import place_layer
from .validators import parse_bool, pick, safe_float


@dataclass(frozen=True)
class Drag:
    dx: float
    dy: float


@dataclass(frozen=True)
class Scale:
    """Pinch or scale-handle: factor relative to the current size."""

    factor: float


@dataclass(frozen=True)
class Wheel:
    delta_y: float


@dataclass(frozen=True)
class Rotate:
    delta_degrees: float
    snap: bool = False  # shift held: hard snap to 15 degree steps


@dataclass(frozen=True)
class SetOpacity:
    percent: float


@dataclass(frozen=True)
class Recenter:
    pass


Gesture = Union[Drag, Scale, Wheel, Rotate, SetOpacity, Recenter]


@dataclass(frozen=True)
class GestureResult:
    layer: Layer
    guides: List[Guide] = field(default_factory=list)
    clamped: bool = False

    def to_dict(self) -> dict:
        return {
            "layer": self.layer.to_dict(),
            "guides": [guide._asdict() for guide in self.guides],
            "clamped": self.clamped,
        }


def snap_rotation(angle_degrees: float, hard_snap: bool = False) -> int:
    """Rotation after a rotate-handle move.

    Hard snap rounds to the nearest 15 degree step; otherwise the angle is
    pulled to a step only within the magnet range. The result is rounded
    and limited to the interactive range.
    """
    nearest = round_half_up(angle_degrees / ROTATION_SNAP_DEG) * ROTATION_SNAP_DEG
    if hard_snap or abs(nearest - angle_degrees) <= ROTATION_MAGNET_DEG:
        angle_degrees = nearest
    limit = MAX_INTERACTIVE_ROTATION_DEG
    return int(clamp_value(round_half_up(angle_degrees), -limit, limit))


def _resize(layer: Layer, factor: float) -> Layer:
    if factor <= 0:
        raise InvalidInput("scale factor must be positive", "factor")
    if isinstance(layer, ImageLayer):
        fraction = clamp_value(
            layer.placement.width_fraction * factor, MIN_IMAGE_WIDTH_FRACTION, MAX_IMAGE_WIDTH_FRACTION
        )
        return with_placement(layer, width_fraction=fraction)
    scale = clamp_value(round_half_up(layer.scale_percent * factor), MIN_TEXT_SCALE_PCT, MAX_TEXT_SCALE_PCT)
    return replace(layer, scale_percent=scale)


def _wheel(layer: Layer, delta_y: float) -> Layer:
    if delta_y == 0:
        return layer
    if isinstance(layer, ImageLayer):
        step = -WHEEL_STEP_FRACTION if delta_y > 0 else WHEEL_STEP_FRACTION
        fraction = clamp_value(
            layer.placement.width_fraction + step, MIN_IMAGE_WIDTH_FRACTION, MAX_IMAGE_WIDTH_FRACTION
        )
        return with_placement(layer, width_fraction=fraction)
    step = -3 if delta_y > 0 else 3
    return replace(layer, scale_percent=clamp_value(layer.scale_percent + step, MIN_TEXT_SCALE_PCT, MAX_TEXT_SCALE_PCT))


def _settle(layer: Layer, zone: Rect, config: CompositorConfig, dx: float = 0.0, dy: float = 0.0) -> GestureResult:
    """Move by (dx, dy) zone pixels, clamp and snap, and renormalize."""
    moved = layer
    if dx or dy:
        spec = layer.placement
        nx = spec.center_x + (dx / zone.width if zone.width else 0.0)
        ny = spec.center_y + (dy / zone.height if zone.height else 0.0)
        moved = with_placement(layer, center_x=nx, center_y=ny)
    placement = place_layer(moved, zone, config)
    x, y, guides = placement.center_x, placement.center_y, []
    if not placement.degenerate:
        x, y, guides = snap_to_guides(x, y, placement.half_w, placement.half_h, zone, config.snap_px)
    nx, ny = normalize(x, y, zone)
    return GestureResult(with_placement(moved, center_x=nx, center_y=ny), guides, placement.clamped)


def apply_gesture(layer: Layer, gesture: Gesture, zone: Rect, config: Optional[CompositorConfig] = None) -> GestureResult:
    """Apply one gesture to a layer inside the safe zone.

    Args:
        layer: Current layer (image layers need intrinsic_ratio)
        gesture: Drag / Scale / Wheel / Rotate / SetOpacity / Recenter
        zone: On-screen safe zone in pixels
        config: Compositor configuration

    Returns:
        GestureResult with the new layer, fired guides and clamp flag
    """
    config = config or CompositorConfig()
    if isinstance(gesture, Drag):
        return _settle(layer, zone, config, gesture.dx, gesture.dy)
    if isinstance(gesture, Scale):
        return _settle(_resize(layer, gesture.factor), zone, config)
    if isinstance(gesture, Wheel):
        return _settle(_wheel(layer, gesture.delta_y), zone, config)
    if isinstance(gesture, Rotate):
        angle = snap_rotation(layer.placement.rotation_degrees + gesture.delta_degrees, gesture.snap)
        return _settle(with_placement(layer, rotation_degrees=float(angle)), zone, config)
    if isinstance(gesture, SetOpacity):
        opacity = int(clamp_value(round_half_up(gesture.percent), 0, 100))
        return GestureResult(with_placement(layer, opacity_percent=opacity))
    if isinstance(gesture, Recenter):
        return _settle(with_placement(layer, center_x=0.5, center_y=0.5), zone, config)
    raise InvalidInput(f"Unknown gesture: {type(gesture).__name__}", "gesture")


def parse_gesture(data: Any) -> Gesture:
    """Build a Gesture from a JSON payload ({"type": "drag", "dx": 4, ...})."""
    if not isinstance(data, dict):
        raise InvalidInput("gesture must be an object", "gesture")
    kind = str(data.get("type") or "").strip().lower()
    if kind == "drag":
        return Drag(safe_float(data.get("dx"), "dx", default=0.0), safe_float(data.get("dy"), "dy", default=0.0))
    if kind in ("scale", "pinch"):
        return Scale(safe_float(data.get("factor"), "factor"))
    if kind == "wheel":
        return Wheel(safe_float(pick(data, "deltaY", "delta_y"), "deltaY"))
    if kind == "rotate":
        return Rotate(
            safe_float(pick(data, "deltaDegrees", "delta_degrees"), "deltaDegrees"),
            parse_bool(data.get("snap")),
        )
    if kind == "opacity":
        return SetOpacity(safe_float(data.get("percent"), "percent"))
    if kind == "recenter":
        return Recenter()
    raise InvalidInput(f"Unknown gesture type: {kind or '(missing)'}", "type")
