"""Print-file compositor.

Turns a list of layers (normalized placements plus image/text content) into
an RGBA raster at the print canvas's exact pixel size on a transparent
background. Pure function of its inputs: persistence is the caller's job.

Steps:
  1. probe every image source and enforce guardrails (no pixel work yet)
  2. per layer, in draw order: size, clamp, resize/draw, opacity, rotate
  3. composite into the canvas, clipped to its bounds
"""

from __future__ import annotations
import io
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

import numpy as np
from PIL import Image, ImageColor, ImageDraw

from .config import CompositorConfig, PrintCanvas
from .csv_logger import RenderCSVLogger, timed
from .decoder import DecoderBase, PillowDecoder, check_guardrails
from .errors import InvalidInput
from .geometry import Rect, round_half_up
from .layers import ImageLayer, Layer, TextLayer
from .quality import QualityReport, assess_quality, worst_quality
from .safe_zone import Placement, layer_pixel_size, place_layer
from .text import resolve_font

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class LayerReport:
    index: int
    kind: str
    placement: Placement
    quality: Optional[QualityReport] = None
    source_size: Optional[tuple] = None

    def to_dict(self) -> dict:
        payload = {"index": self.index, "kind": self.kind, "placement": self.placement.to_dict()}
        if self.quality is not None:
            payload["quality"] = self.quality.to_dict()
        if self.source_size is not None:
            payload["source_size"] = list(self.source_size)
        return payload


@dataclass
class RenderResult:
    image: Image.Image
    quality: QualityReport
    layers: List[LayerReport]

    def to_dict(self) -> dict:
        return {
            "width": self.image.width,
            "height": self.image.height,
            "quality": self.quality.to_dict(),
            "layers": [report.to_dict() for report in self.layers],
        }


def _apply_opacity(tile: Image.Image, opacity_percent: int) -> Image.Image:
    if opacity_percent >= 100:
        return tile
    alpha = np.array(tile.getchannel("A"), dtype=np.float32)
    alpha = np.clip(np.round(alpha * (opacity_percent / 100.0)), 0, 255).astype(np.uint8)
    tile = tile.copy()
    tile.putalpha(Image.fromarray(alpha))
    return tile


def _rotate(tile: Image.Image, rotation_degrees: float) -> Image.Image:
    # Positive degrees turn clockwise on screen; Pillow turns counter-clockwise
    if rotation_degrees % 360 == 0:
        return tile
    return tile.rotate(-rotation_degrees, resample=Image.BICUBIC, expand=True, fillcolor=TRANSPARENT)


def composite_clipped(target: Image.Image, tile: Image.Image, center_x: float, center_y: float) -> int:
    """Alpha-composite tile centered at a point; returns pixels written."""
    left = round_half_up(center_x - tile.width / 2.0)
    top = round_half_up(center_y - tile.height / 2.0)
    x0, y0 = max(left, 0), max(top, 0)
    x1, y1 = min(left + tile.width, target.width), min(top + tile.height, target.height)
    if x1 <= x0 or y1 <= y0:
        return 0
    if (x0, y0, x1, y1) != (left, top, left + tile.width, top + tile.height):
        tile = tile.crop((x0 - left, y0 - top, x1 - left, y1 - top))
    target.alpha_composite(tile, dest=(x0, y0))
    return (x1 - x0) * (y1 - y0)


def _parse_color(value: str) -> tuple:
    try:
        return ImageColor.getrgb(value)[:3]
    except ValueError as exc:
        raise InvalidInput(f"Invalid fill color: {value}", "fillColor") from exc


def render_text_tile(layer: TextLayer, font_px: int, box_width: float, box_height: float) -> Image.Image:
    """Draw a text layer into its own transparent tile, centered.

    The tile is the text box, which is never wider than the print area;
    text running past it is cut at the box edges.
    """
    font = resolve_font(layer.font_family, font_px)
    _left, top, _right, bottom = font.getbbox(layer.text, anchor="mm")
    width = max(1, int(round(box_width)))
    height = max(int(round(box_height)), int(bottom - top) + 2)
    tile = Image.new("RGBA", (width, height), TRANSPARENT)
    draw = ImageDraw.Draw(tile)
    draw.text((width / 2.0, height / 2.0), layer.text, fill=_parse_color(layer.fill_color) + (255,), font=font, anchor="mm")
    return tile


def probe_sources(layers: Sequence[Layer], config: CompositorConfig, decoder: DecoderBase, csv_logger: Optional[RenderCSVLogger] = None) -> None:
    """Enforce guardrails on every image source before any pixel work."""
    for index, layer in enumerate(layers):
        if not isinstance(layer, ImageLayer):
            continue
        if not layer.data:
            raise InvalidInput(f"Layer {index}: image source has no data", "src")
        with timed(csv_logger, "probe", "header", index):
            width, height = decoder.probe(layer.data)
            check_guardrails(width, height, config)


def compose_layers(
    target: Image.Image,
    area: Rect,
    layers: Sequence[Layer],
    config: CompositorConfig,
    decoder: DecoderBase,
    print_dpi: int,
    csv_logger: Optional[RenderCSVLogger] = None,
) -> List[LayerReport]:
    """Draw layers in order into target, placed inside area.

    The print render passes the whole canvas as area; the preview passes the
    on-screen safe zone. Sources must already have passed probe_sources().
    """
    reports = []
    for index, layer in enumerate(layers):
        spec = layer.placement
        if isinstance(layer, ImageLayer):
            with timed(csv_logger, "decode", "source", index) as info:
                source = decoder.decode(layer.data)
                info["pixels"] = source.width * source.height
            sized = replace(layer, intrinsic_ratio=source.height / source.width)
            size = layer_pixel_size(sized, area, config, round_px=True)
            placement = place_layer(sized, area, config, size)
            target_size = (int(size[0]), int(size[1]))
            with timed(csv_logger, "resize", f"{source.width}x{source.height}->{target_size[0]}x{target_size[1]}", index) as info:
                tile = decoder.resize(source, target_size)
                info["pixels"] = target_size[0] * target_size[1]
            quality = assess_quality(
                source.width,
                target_size[0],
                print_dpi,
                config.ppi_ok,
                config.ppi_warn,
                clamped=placement.clamped,
            )
            report = LayerReport(index, layer.kind, placement, quality, (source.width, source.height))
        elif isinstance(layer, TextLayer):
            size = layer_pixel_size(layer, area, config)
            placement = place_layer(layer, area, config, size)
            with timed(csv_logger, "text", f"{placement.font_px}px", index) as info:
                tile = render_text_tile(layer, placement.font_px, placement.width, placement.height)
                info["pixels"] = tile.width * tile.height
            report = LayerReport(index, layer.kind, placement)
        else:
            raise InvalidInput(f"Layer {index}: unsupported layer type", "type")

        tile = _apply_opacity(tile, spec.opacity_percent)
        with timed(csv_logger, "rotate", f"{spec.rotation_degrees:g}deg", index) as info:
            tile = _rotate(tile, spec.rotation_degrees)
            info["pixels"] = tile.width * tile.height
        with timed(csv_logger, "composite", f"at {placement.center_x:.1f},{placement.center_y:.1f}", index) as info:
            info["pixels"] = composite_clipped(target, tile, placement.center_x, placement.center_y)
            if placement.clamped:
                info["status"] = "CLAMPED"

        if placement.degenerate:
            logger.info(f"Layer {index} ({layer.kind}) does not fit the print area; centered")
        reports.append(report)
    return reports


def render_print_file(
    layers: Sequence[Layer],
    canvas: Optional[PrintCanvas] = None,
    config: Optional[CompositorConfig] = None,
    decoder: Optional[DecoderBase] = None,
    csv_logger: Optional[RenderCSVLogger] = None,
) -> RenderResult:
    """Render the authoritative print raster.

    Args:
        layers: Layers in draw order (images before text in the editor)
        canvas: Print canvas (defaults to config.canvas)
        config: Compositor configuration
        decoder: Source decoder (PillowDecoder by default)
        csv_logger: Optional per-phase timing log

    Returns:
        RenderResult with an RGBA image of exactly canvas.size

    Raises:
        InvalidInput: Missing/undecodable source or malformed layer
        ResourceExceeded: Source beyond configured guardrails
    """
    config = config or CompositorConfig()
    canvas = canvas or config.canvas
    decoder = decoder or PillowDecoder()
    if not layers:
        raise InvalidInput("At least one layer is required", "layers")

    probe_sources(layers, config, decoder, csv_logger)

    image = Image.new("RGBA", canvas.size, TRANSPARENT)
    reports = compose_layers(image, canvas.bounds, layers, config, decoder, canvas.dpi, csv_logger)

    quality = worst_quality(
        [r.quality for r in reports if r.quality is not None],
        clamped=any(r.placement.clamped for r in reports),
    )
    logger.info(
        f"Rendered {len(reports)} layer(s) onto {canvas.width_px}x{canvas.height_px} canvas "
        f"(ppi={quality.effective_ppi}, status={quality.status}, clamped={quality.clamped})"
    )
    return RenderResult(image=image, quality=quality, layers=reports)


def encode_png(image: Image.Image, dpi: int) -> bytes:
    """PNG bytes with the physical DPI recorded."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG", dpi=(dpi, dpi))
    return buffer.getvalue()
