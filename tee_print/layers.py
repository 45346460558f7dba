"""Layer model: a strict tagged union validated at the boundary.

Job records and UI payloads arrive as loose dicts with optional fields.
parse_layer() turns them into ImageLayer / TextLayer or raises InvalidInput,
so geometry code never sees missing fields.
"""

from __future__ import annotations
import base64
import binascii
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

from .config import (
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_FONT,
    DEFAULT_TEXT_SCALE_PCT,
    MAX_TEXT_CHARS,
    MAX_TEXT_SCALE_PCT,
    MIN_TEXT_SCALE_PCT,
)
from .errors import InvalidInput, ResourceExceeded
from .geometry import wrap_degrees
from .validators import pick, safe_float, safe_int

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]*)(?P<params>(;[\w=.-]+)*?);base64,(?P<data>.*)$", re.S)


@dataclass(frozen=True)
class PlacementSpec:
    """Where a layer sits inside the normalized print area.

    center_x/center_y are fractions of the print-area width/height,
    width_fraction is the image width as a fraction of the print-area width
    (text layers size from TextLayer.scale_percent instead).
    """

    center_x: float = 0.5
    center_y: float = 0.5
    width_fraction: float = 0.4
    rotation_degrees: float = 0.0
    opacity_percent: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "centerX": self.center_x,
            "centerY": self.center_y,
            "widthFraction": self.width_fraction,
            "rotationDegrees": self.rotation_degrees,
            "opacityPercent": self.opacity_percent,
        }


@dataclass(frozen=True)
class ImageLayer:
    """Raster layer. Source is inline bytes or a URL the caller resolves."""

    placement: PlacementSpec
    data: Optional[bytes] = field(default=None, repr=False)
    url: Optional[str] = None
    intrinsic_ratio: Optional[float] = None  # height / width

    kind = "image"

    def with_data(self, data: bytes) -> "ImageLayer":
        return replace(self, data=data)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.kind, "placement": self.placement.to_dict()}
        if self.url:
            payload["src"] = self.url
        if self.intrinsic_ratio is not None:
            payload["intrinsicRatio"] = self.intrinsic_ratio
        return payload


@dataclass(frozen=True)
class TextLayer:
    """Text layer drawn centered at its placement point."""

    placement: PlacementSpec
    text: str
    font_family: str = DEFAULT_TEXT_FONT
    fill_color: str = DEFAULT_TEXT_COLOR
    scale_percent: float = DEFAULT_TEXT_SCALE_PCT

    kind = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "placement": self.placement.to_dict(),
            "text": self.text,
            "fontFamily": self.font_family,
            "fillColor": self.fill_color,
            "scalePercent": self.scale_percent,
        }


Layer = Union[ImageLayer, TextLayer]


def with_placement(layer: Layer, **changes: Any) -> Layer:
    """Copy of layer with PlacementSpec fields replaced."""
    return replace(layer, placement=replace(layer.placement, **changes))


def parse_placement(data: Any, require_width: bool = True) -> PlacementSpec:
    """Validate a placement dict.

    Centers are clamped into [0,1], opacity into [0,100] and rotation is
    wrapped into [-180,180]. A zero or negative width is rejected.
    """
    if not isinstance(data, dict):
        raise InvalidInput("placement must be an object", "placement")

    center_x = safe_float(pick(data, "centerX", "center_x"), "centerX", 0.0, 1.0)
    center_y = safe_float(pick(data, "centerY", "center_y"), "centerY", 0.0, 1.0)
    raw_width = pick(data, "widthFraction", "width_fraction")
    if raw_width is None and not require_width:
        width_fraction = PlacementSpec.width_fraction
    else:
        width_fraction = safe_float(raw_width, "widthFraction")
        if width_fraction <= 0:
            raise InvalidInput("widthFraction must be positive", "widthFraction")
        width_fraction = min(width_fraction, 1.0)
    rotation = safe_float(pick(data, "rotationDegrees", "rotation_degrees"), "rotationDegrees", default=0.0)
    opacity = safe_int(pick(data, "opacityPercent", "opacity_percent"), "opacityPercent", 0, 100, default=100)

    return PlacementSpec(
        center_x=center_x,
        center_y=center_y,
        width_fraction=width_fraction,
        rotation_degrees=wrap_degrees(rotation),
        opacity_percent=opacity,
    )


def decode_data_url(value: str) -> bytes:
    """Decode a base64 data: URL into raw bytes."""
    match = _DATA_URL_RE.match(value.strip())
    if not match:
        raise InvalidInput("Image data URL must be base64 encoded", "src")
    try:
        return base64.b64decode(match.group("data"), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInput("Image data URL is not valid base64", "src") from exc


def parse_layer(data: Any) -> Layer:
    """Build a Layer from a loose dict.

    Args:
        data: {"type": "image"|"text", "placement": {...}, ...}

    Returns:
        ImageLayer or TextLayer

    Raises:
        InvalidInput: Unknown type or missing required fields
    """
    if not isinstance(data, dict):
        raise InvalidInput("layer must be an object", "layer")

    layer_type = str(data.get("type") or "").strip().lower()
    placement_data = data.get("placement")
    if placement_data is None:
        raise InvalidInput("placement is required", "placement")

    if layer_type == "image":
        placement = parse_placement(placement_data)
        src = pick(data, "src", "url", "imageUrl")
        image_bytes = data.get("data")
        url = None
        if isinstance(image_bytes, str):
            image_bytes = decode_data_url(image_bytes)
        elif image_bytes is not None and not isinstance(image_bytes, (bytes, bytearray)):
            raise InvalidInput("data must be bytes or a data URL", "data")
        if isinstance(src, str) and src:
            if src.startswith("data:"):
                image_bytes = decode_data_url(src)
            elif re.match(r"^https?://", src, re.I):
                url = src
            else:
                raise InvalidInput("src must be an http(s) URL or data URL", "src")
        if image_bytes is None and url is None:
            raise InvalidInput("image layer requires src or data", "src")
        ratio = pick(data, "intrinsicRatio", "intrinsic_ratio")
        intrinsic_ratio = None
        if ratio is not None:
            intrinsic_ratio = safe_float(ratio, "intrinsicRatio")
            if intrinsic_ratio <= 0:
                raise InvalidInput("intrinsicRatio must be positive", "intrinsicRatio")
        return ImageLayer(
            placement=placement,
            data=bytes(image_bytes) if image_bytes is not None else None,
            url=url,
            intrinsic_ratio=intrinsic_ratio,
        )

    if layer_type == "text":
        placement = parse_placement(placement_data, require_width=False)
        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise InvalidInput("text layer requires non-empty text", "text")
        if len(text) > MAX_TEXT_CHARS:
            raise ResourceExceeded(
                "characters", len(text), MAX_TEXT_CHARS, f"Text too long: {len(text)} characters (max {MAX_TEXT_CHARS})"
            )
        scale = safe_float(
            pick(data, "scalePercent", "scale_percent"),
            "scalePercent",
            max_value=float(MAX_TEXT_SCALE_PCT),
            default=float(DEFAULT_TEXT_SCALE_PCT),
        )
        if scale <= 0:
            raise InvalidInput("scalePercent must be positive", "scalePercent")
        scale = max(scale, float(MIN_TEXT_SCALE_PCT))
        return TextLayer(
            placement=placement,
            text=text,
            font_family=str(pick(data, "fontFamily", "font_family") or DEFAULT_TEXT_FONT),
            fill_color=str(pick(data, "fillColor", "fill_color", "color") or DEFAULT_TEXT_COLOR),
            scale_percent=scale,
        )

    raise InvalidInput(f"Unknown layer type: {layer_type or '(missing)'}", "type")


def parse_layers(items: Any) -> List[Layer]:
    """Validate a non-empty list of layers, preserving draw order."""
    if not isinstance(items, list) or not items:
        raise InvalidInput("layers must be a non-empty list", "layers")
    return [parse_layer(item) for item in items]
