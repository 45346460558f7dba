"""Pure geometry helpers shared by the print render and the editor.

Keep pure functions here for easy testing and reuse. Both the interactive
preview and the authoritative print render call into this module, so any
placement they compute agrees by construction.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import List, NamedTuple, Tuple


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in some pixel space (y grows downward)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def contains(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class Guide(NamedTuple):
    """A snap line that fired. Position is the line to highlight."""

    name: str
    axis: str
    position: float


# Exact cos/sin for whole quarter turns
_QUARTER_TURNS = {0: (1.0, 0.0), 1: (0.0, 1.0), 2: (-1.0, 0.0), 3: (0.0, -1.0)}


def _cos_sin(angle_degrees: float) -> Tuple[float, float]:
    quarter = angle_degrees / 90.0
    if quarter == int(quarter):
        return _QUARTER_TURNS[int(quarter) % 4]
    theta = math.radians(angle_degrees)
    return math.cos(theta), math.sin(theta)


def clamp_value(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching browser Math.round."""
    return int(math.floor(value + 0.5))


def wrap_degrees(angle_degrees: float) -> float:
    """Wrap an angle into [-180, 180]."""
    if -180.0 <= angle_degrees <= 180.0:
        return angle_degrees
    wrapped = math.fmod(angle_degrees + 180.0, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    return wrapped - 180.0


def rotated_half_extents(width: float, height: float, angle_degrees: float) -> Tuple[float, float]:
    """Half-size of the axis-aligned box around a rotated rectangle.

    Args:
        width: Rectangle width
        height: Rectangle height
        angle_degrees: Rotation about the rectangle center

    Returns:
        Tuple of (half_width, half_height)
    """
    cos_t, sin_t = _cos_sin(angle_degrees)
    cos_t, sin_t = abs(cos_t), abs(sin_t)
    half_w = 0.5 * (cos_t * width + sin_t * height)
    half_h = 0.5 * (sin_t * width + cos_t * height)
    return half_w, half_h


def is_degenerate(half_w: float, half_h: float, bounds: Rect) -> bool:
    """True when a layer cannot fit inside bounds at any position."""
    return 2.0 * half_w > bounds.width or 2.0 * half_h > bounds.height


def clamp_center_to_bounds(
    center_x: float,
    center_y: float,
    half_w: float,
    half_h: float,
    bounds: Rect,
    symmetric_y: bool = False,
) -> Tuple[float, float]:
    """Pull a layer center inside bounds.

    A layer that cannot fit anywhere is centered in the bounds. The vertical
    upper bound is bounds.bottom unless symmetric_y is set, in which case it
    is bounds.bottom - half_h like the horizontal clamp.

    Returns:
        Tuple of (x, y)
    """
    if is_degenerate(half_w, half_h, bounds):
        return bounds.center

    x = clamp_value(center_x, bounds.x + half_w, bounds.right - half_w)
    max_y = bounds.bottom - half_h if symmetric_y else bounds.bottom
    y = clamp_value(center_y, bounds.y + half_h, max_y)
    return x, y


def _snap_axis(
    value: float,
    start: float,
    length: float,
    half: float,
    snap_px: float,
    names: Tuple[str, str, str],
    axis: str,
) -> Tuple[float, List[Guide]]:
    center = start + length / 2.0
    # (target, highlighted line, name); earlier entries win ties
    candidates = [
        (center, center, names[0]),
        (start + half, start, names[1]),
        (start + length - half, start + length, names[2]),
    ]
    best = None
    for target, line, name in candidates:
        distance = abs(value - target)
        if distance <= snap_px and (best is None or distance < best[0]):
            best = (distance, target, line, name)
    if best is None:
        return value, []
    return best[1], [Guide(best[3], axis, best[2])]


def snap_to_guides(
    x: float,
    y: float,
    half_w: float,
    half_h: float,
    bounds: Rect,
    snap_px: float,
) -> Tuple[float, float, List[Guide]]:
    """Snap a center to the bounds' center lines or inner edges.

    Per axis the nearest candidate within snap_px wins, so snapping an
    already snapped point returns it unchanged.

    Returns:
        Tuple of (x, y, guides_fired)
    """
    sx, guides_x = _snap_axis(
        x, bounds.x, bounds.width, half_w, snap_px, ("center_x", "left", "right"), "x"
    )
    sy, guides_y = _snap_axis(
        y, bounds.y, bounds.height, half_h, snap_px, ("center_y", "top", "bottom"), "y"
    )
    return sx, sy, guides_x + guides_y


def normalize(x: float, y: float, bounds: Rect) -> Tuple[float, float]:
    """Map a point in bounds' pixel space to [0,1]x[0,1]."""
    nx = (x - bounds.x) / bounds.width if bounds.width else 0.5
    ny = (y - bounds.y) / bounds.height if bounds.height else 0.5
    return nx, ny


def denormalize(nx: float, ny: float, bounds: Rect) -> Tuple[float, float]:
    """Inverse of normalize()."""
    return bounds.x + nx * bounds.width, bounds.y + ny * bounds.height
