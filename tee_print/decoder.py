"""Source decoder abstractions (Pillow + Mock)

Keep this small and explicit. PillowDecoder wraps Pillow. Probing reads only
the image header so guardrails run before any pixels are decoded, resized
or rotated. Tests swap in a decoder that records what was invoked.
"""

from __future__ import annotations
import io
import logging
import threading
import warnings
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from .config import CompositorConfig
from .errors import InvalidInput, ResourceExceeded

logger = logging.getLogger(__name__)

# Image.MAX_IMAGE_PIXELS is process-wide; probes swap it one at a time
_PROBE_LOCK = threading.Lock()


class DecoderBase:
    def probe(self, data: bytes) -> Tuple[int, int]:  # returns (width, height)
        raise NotImplementedError

    def decode(self, data: bytes) -> Image.Image:
        raise NotImplementedError

    def resize(self, image: Image.Image, size: Tuple[int, int]) -> Image.Image:
        raise NotImplementedError


class PillowDecoder(DecoderBase):
    def probe(self, data: bytes) -> Tuple[int, int]:
        """Header size only. Pillow's own bomb check is off here so the
        configured guardrails report the real dimensions."""
        if not data:
            raise InvalidInput("Image source is empty", "src")
        with _PROBE_LOCK, warnings.catch_warnings():
            warnings.simplefilter("ignore", Image.DecompressionBombWarning)
            previous = Image.MAX_IMAGE_PIXELS
            Image.MAX_IMAGE_PIXELS = None
            try:
                with Image.open(io.BytesIO(data)) as img:
                    return img.size
            except (UnidentifiedImageError, OSError) as exc:
                raise InvalidInput(f"Could not read image: {exc}", "src") from exc
            finally:
                Image.MAX_IMAGE_PIXELS = previous

    def decode(self, data: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise InvalidInput(f"Could not decode image: {exc}", "src") from exc
        img = ImageOps.exif_transpose(img)
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return img

    def resize(self, image: Image.Image, size: Tuple[int, int]) -> Image.Image:
        if image.size == tuple(size):
            return image
        return image.resize(size, Image.LANCZOS)


class MockDecoder(DecoderBase):
    """Decoder for tests: reports a fixed size and records calls.

    decode() returns a solid RGBA image of the reported size unless an
    explicit image is supplied.
    """

    def __init__(self, size: Tuple[int, int] = (100, 100), image: Image.Image | None = None, color=(255, 0, 0, 255)):
        self.size = size
        self.image = image
        self.color = color
        self.probe_calls = 0
        self.decode_calls = 0
        self.resize_calls = []

    def probe(self, data: bytes) -> Tuple[int, int]:
        self.probe_calls += 1
        if self.image is not None:
            return self.image.size
        return self.size

    def decode(self, data: bytes) -> Image.Image:
        self.decode_calls += 1
        if self.image is not None:
            return self.image.convert("RGBA")
        return Image.new("RGBA", self.size, self.color)

    def resize(self, image: Image.Image, size: Tuple[int, int]) -> Image.Image:
        self.resize_calls.append(tuple(size))
        return image.resize(size, Image.NEAREST)


def check_guardrails(width: int, height: int, config: CompositorConfig) -> None:
    """Reject sources too large to process.

    Raises:
        InvalidInput: Zero or negative dimensions
        ResourceExceeded: A side or the pixel count exceeds the limits
    """
    if width <= 0 or height <= 0:
        raise InvalidInput(f"Image has invalid size {width}x{height}", "src")
    longest = max(width, height)
    if longest > config.max_source_dimension:
        raise ResourceExceeded(
            "dimension",
            longest,
            config.max_source_dimension,
            f"Image too large: {width}x{height}px (max side {config.max_source_dimension}px)",
        )
    pixels = width * height
    if pixels > config.max_source_pixels:
        raise ResourceExceeded(
            "pixels",
            pixels,
            config.max_source_pixels,
            f"Image too large: {pixels} pixels (max {config.max_source_pixels})",
        )
