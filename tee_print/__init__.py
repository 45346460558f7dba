"""Tee print compositor

Places artwork layers inside a garment safe zone and renders the
print-ready raster (3600x4800 px at 300 DPI by default), plus the editor
helpers that share its geometry: gestures, undo history and preview.
"""

from .compositor import RenderResult, encode_png, render_print_file
from .config import CompositorConfig, PrintCanvas, SafeZonePreset
from .errors import CompositorError, InvalidInput, ResourceExceeded
from .geometry import Rect
from .layers import ImageLayer, PlacementSpec, TextLayer, parse_layer, parse_layers
from .preview import render_preview
from .quality import QualityReport
from .safe_zone import derive_safe_zone, resolve_safe_zone

__all__ = [
    "CompositorConfig",
    "CompositorError",
    "ImageLayer",
    "InvalidInput",
    "PlacementSpec",
    "PrintCanvas",
    "QualityReport",
    "Rect",
    "RenderResult",
    "ResourceExceeded",
    "SafeZonePreset",
    "TextLayer",
    "derive_safe_zone",
    "encode_png",
    "parse_layer",
    "parse_layers",
    "render_preview",
    "render_print_file",
    "resolve_safe_zone",
]
__version__ = "0.1.0"
