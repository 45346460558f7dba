"""Static compositor configuration.

Canvas, safe-zone presets, thresholds and guardrails are immutable and read
at call time. Callers that need different values build their own
CompositorConfig.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict

from .geometry import Rect


# Print canvas: 12" x 16" at 300 DPI
PRINT_WIDTH_PX = 3600
PRINT_HEIGHT_PX = 4800
PRINT_DPI = 300

# Safe zone aspect (width:height) matches the canvas
SAFE_ZONE_ASPECT = PRINT_HEIGHT_PX / PRINT_WIDTH_PX

# Quality thresholds (effective PPI)
PPI_OK = 300
PPI_WARN = 200

# Source guardrails
MAX_SOURCE_DIMENSION = 12000
MAX_SOURCE_PIXELS = 64_000_000

# Editor behavior
SNAP_PX = 8.0
ROTATION_SNAP_DEG = 15.0
ROTATION_MAGNET_DEG = 4.0
MAX_INTERACTIVE_ROTATION_DEG = 45.0
MIN_IMAGE_WIDTH_FRACTION = 0.1
MAX_IMAGE_WIDTH_FRACTION = 1.0
WHEEL_STEP_FRACTION = 0.03
MIN_TEXT_SCALE_PCT = 10
MAX_TEXT_SCALE_PCT = 300
MAX_TEXT_CHARS = 500

# Text: base font size as a percent of the print-area width
TEXT_BASE_PERCENT = 12.0
TEXT_MIN_FONT_PX = 12
TEXT_LINE_HEIGHT = 1.2
TEXT_PADDING_PX = 12
TEXT_MIN_BOX_WIDTH_PX = 40
TEXT_MIN_BOX_HEIGHT_PX = 24

DEFAULT_TEXT_FONT = "DejaVu Sans"
DEFAULT_TEXT_COLOR = "#111111"
DEFAULT_TEXT_SCALE_PCT = 60


@dataclass(frozen=True)
class PrintCanvas:
    """Fixed physical output target."""

    width_px: int = PRINT_WIDTH_PX
    height_px: int = PRINT_HEIGHT_PX
    dpi: int = PRINT_DPI

    @property
    def size(self) -> tuple[int, int]:
        return (self.width_px, self.height_px)

    @property
    def bounds(self) -> Rect:
        return Rect(0.0, 0.0, float(self.width_px), float(self.height_px))

    @property
    def width_inches(self) -> float:
        return self.width_px / self.dpi

    @property
    def height_inches(self) -> float:
        return self.height_px / self.dpi

    def to_dict(self) -> dict:
        return {
            "width_px": self.width_px,
            "height_px": self.height_px,
            "dpi": self.dpi,
            "width_in": self.width_inches,
            "height_in": self.height_inches,
        }


@dataclass(frozen=True)
class SafeZonePreset:
    """Safe-zone calibration as fractions of the garment mockup box."""

    left_fraction: float
    top_fraction: float
    width_fraction: float

    def to_dict(self) -> dict:
        return {
            "left_fraction": self.left_fraction,
            "top_fraction": self.top_fraction,
            "width_fraction": self.width_fraction,
        }


# Per-side calibration against the garment mockup bounding box
DEFAULT_PRESETS: Dict[str, SafeZonePreset] = {
    "front": SafeZonePreset(left_fraction=0.3, top_fraction=0.2, width_fraction=0.4),
    "back": SafeZonePreset(left_fraction=0.29, top_fraction=0.16, width_fraction=0.42),
}

# Used against the container before the mockup has loaded
FALLBACK_PRESET = SafeZonePreset(left_fraction=0.175, top_fraction=0.115, width_fraction=0.65)


@dataclass(frozen=True)
class CompositorConfig:
    """Configuration surface supplied by the caller."""

    canvas: PrintCanvas = field(default_factory=PrintCanvas)
    presets: Dict[str, SafeZonePreset] = field(default_factory=lambda: dict(DEFAULT_PRESETS))
    fallback_preset: SafeZonePreset = FALLBACK_PRESET
    ppi_ok: int = PPI_OK
    ppi_warn: int = PPI_WARN
    max_source_dimension: int = MAX_SOURCE_DIMENSION
    max_source_pixels: int = MAX_SOURCE_PIXELS
    snap_px: float = SNAP_PX
    text_base_percent: float = TEXT_BASE_PERCENT
    symmetric_vertical_clamp: bool = False

    def to_dict(self) -> dict:
        return {
            "canvas": self.canvas.to_dict(),
            "presets": {side: preset.to_dict() for side, preset in self.presets.items()},
            "fallback_preset": self.fallback_preset.to_dict(),
            "ppi": {"ok": self.ppi_ok, "warn": self.ppi_warn},
            "guardrails": {
                "max_source_dimension": self.max_source_dimension,
                "max_source_pixels": self.max_source_pixels,
            },
            "snap_px": self.snap_px,
            "text_base_percent": self.text_base_percent,
            "symmetric_vertical_clamp": self.symmetric_vertical_clamp,
        }
