"""Text layer font resolution and measurement."""

from __future__ import annotations
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from PIL import ImageFont

from .config import (
    TEXT_LINE_HEIGHT,
    TEXT_MIN_BOX_HEIGHT_PX,
    TEXT_MIN_BOX_WIDTH_PX,
    TEXT_MIN_FONT_PX,
    TEXT_PADDING_PX,
)
from .errors import InvalidInput
from .geometry import round_half_up

logger = logging.getLogger(__name__)

FONT_DIRS = [
    Path("/usr/share/fonts/truetype/dejavu"),
    Path("/usr/share/fonts/TTF"),
    Path("/usr/share/fonts/dejavu"),
]

# Family name (lowercase) -> TrueType file
FONT_FILES = {
    "dejavu sans": "DejaVuSans-Bold.ttf",
    "dejavu serif": "DejaVuSerif-Bold.ttf",
    "dejavu sans mono": "DejaVuSansMono-Bold.ttf",
    "sans-serif": "DejaVuSans-Bold.ttf",
    "serif": "DejaVuSerif-Bold.ttf",
    "monospace": "DejaVuSansMono-Bold.ttf",
}


def _font_dirs() -> list[Path]:
    override = os.getenv("TEE_PRINT_FONT_DIR")
    if override:
        return [Path(override)] + FONT_DIRS
    return FONT_DIRS


def _find_font_file(font_family: str) -> Path | None:
    for family in font_family.split(","):
        name = family.strip().strip("'\"").lower()
        filename = FONT_FILES.get(name)
        if not filename:
            continue
        for directory in _font_dirs():
            candidate = directory / filename
            if candidate.exists():
                return candidate
    return None


@lru_cache(maxsize=64)
def resolve_font(font_family: str, size_px: int) -> ImageFont.FreeTypeFont:
    """Load the first available family from a CSS-style family list.

    Falls back to Pillow's built-in scalable font when none is installed.

    Raises:
        InvalidInput: FreeType cannot load any font at size_px
    """
    path = _find_font_file(font_family)
    if path is not None:
        try:
            return ImageFont.truetype(str(path), size_px)
        except OSError:
            logger.warning(f"Font {path} unreadable at {size_px}px; falling back to default.")
    else:
        logger.debug(f"No font file for {font_family!r}; using default font.")
    try:
        return ImageFont.load_default(size=size_px)
    except OSError as exc:
        raise InvalidInput(f"Cannot load font {font_family!r} at {size_px}px: {exc}", "fontFamily") from exc


def font_size_px(reference_width: float, scale_percent: float, base_percent: float, min_px: int = TEXT_MIN_FONT_PX) -> int:
    """Font size for a text layer.

    reference_width is the print-area width the layer lives in (the canvas
    for print, the safe zone on screen).
    """
    base = reference_width * base_percent / 100.0
    return max(min_px, round_half_up(base * scale_percent / 100.0))


def text_box_size(
    text: str,
    font: ImageFont.FreeTypeFont,
    font_px: int,
    max_width: float,
    padding: float = TEXT_PADDING_PX,
    min_width: float = TEXT_MIN_BOX_WIDTH_PX,
    min_height: float = TEXT_MIN_BOX_HEIGHT_PX,
) -> Tuple[float, float]:
    """Bounding box used to clamp a text layer.

    Width is the measured advance plus padding, limited to the area width;
    height is one line at TEXT_LINE_HEIGHT.
    """
    left, _top, right, _bottom = font.getbbox(text)
    width = min(max(min_width, round_half_up(right - left + padding)), max_width)
    height = max(min_height, round_half_up(font_px * TEXT_LINE_HEIGHT))
    return float(width), float(height)
