"""On-screen preview rendering for the editor."""

import base64
import io
import logging
from typing import List, Optional, Tuple

from PIL import Image

from tee_print.config import CompositorConfig
from tee_print.decoder import PillowDecoder, check_guardrails
from tee_print.layers import Layer
from tee_print.preview import render_preview


logger = logging.getLogger(__name__)


class PreviewService:
    """Preview rendering helpers"""

    @staticmethod
    def image_to_base64(img: Image.Image, image_format: str = "PNG") -> str:
        """Convert PIL Image to base64 data URL.

        Args:
            img: PIL Image to convert
            image_format: 'PNG' or 'JPEG'

        Returns:
            Base64 data URL string
        """
        buffer = io.BytesIO()
        img.save(buffer, format=image_format)
        img_base64 = base64.b64encode(buffer.getvalue()).decode()
        return f"data:image/{image_format.lower()};base64,{img_base64}"

    @staticmethod
    def load_mockup(data: Optional[bytes], config: CompositorConfig) -> Optional[Image.Image]:
        """Decode a garment mockup under the same guardrails as layer sources."""
        if not data:
            return None
        decoder = PillowDecoder()
        width, height = decoder.probe(data)
        check_guardrails(width, height, config)
        return decoder.decode(data)

    @staticmethod
    def render(
        layers: List[Layer],
        size: Tuple[int, int],
        side: str = "front",
        mockup: Optional[bytes] = None,
        config: Optional[CompositorConfig] = None,
        show_safe_zone: bool = False,
        image_format: str = "PNG",
    ) -> dict:
        """Render the preview and package it for JSON."""
        config = config or CompositorConfig()
        result = render_preview(
            layers,
            size,
            side=side,
            mockup=PreviewService.load_mockup(mockup, config),
            config=config,
            show_safe_zone=show_safe_zone,
        )
        payload = result.to_dict()
        payload["preview"] = PreviewService.image_to_base64(result.image, image_format)
        logger.debug(f"Preview {size[0]}x{size[1]} {image_format} for {len(layers)} layer(s)")
        return payload
