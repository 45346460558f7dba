"""Safe-zone and gesture endpoints: thin JSON wrappers over tee_print."""

from typing import Any, Optional

from tee_print.config import CompositorConfig
from tee_print.errors import InvalidInput
from tee_print.geometry import Rect
from tee_print.gestures import apply_gesture, parse_gesture
from tee_print.layers import parse_layer
from tee_print.safe_zone import resolve_safe_zone
from tee_print.validators import pick, safe_float


def parse_rect(data: Any, field: str) -> Rect:
    """Rect from {"x", "y", "width", "height"} (w/h shorthand accepted)."""
    if not isinstance(data, dict):
        raise InvalidInput(f"{field} must be an object", field)
    width = safe_float(pick(data, "width", "w"), f"{field}.width")
    height = safe_float(pick(data, "height", "h"), f"{field}.height")
    if width < 0 or height < 0:
        raise InvalidInput(f"{field} must have a non-negative size", field)
    return Rect(
        safe_float(data.get("x"), f"{field}.x", default=0.0),
        safe_float(data.get("y"), f"{field}.y", default=0.0),
        width,
        height,
    )


class LayoutService:
    """Zone and gesture math for the editor."""

    @staticmethod
    def safe_zone(data: dict, config: Optional[CompositorConfig] = None) -> dict:
        """Resolve the zone for {side, container, garmentBox?}."""
        config = config or CompositorConfig()
        side = str(data.get("side") or "front").strip().lower()
        container = parse_rect(data.get("container"), "container")
        garment = pick(data, "garmentBox", "garment_box")
        garment_box = parse_rect(garment, "garmentBox") if garment is not None else None
        zone = resolve_safe_zone(side, container, garment_box, config.presets, config.fallback_preset)
        return {
            "side": side,
            "zone": zone.to_dict(),
            "calibrated": garment_box is not None and garment_box.width > 0 and garment_box.height > 0,
        }

    @staticmethod
    def gesture(data: dict, config: Optional[CompositorConfig] = None) -> dict:
        """Apply {gesture} to {layer} inside {zone}."""
        layer = parse_layer(data.get("layer"))
        gesture = parse_gesture(data.get("gesture"))
        zone = parse_rect(data.get("zone"), "zone")
        result = apply_gesture(layer, gesture, zone, config)
        return result.to_dict()
