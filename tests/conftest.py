import base64
import io

import pytest
from PIL import Image

from tee_print.config import CompositorConfig, PrintCanvas


def png_bytes(size=(100, 50), color=(255, 0, 0, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def data_url(data: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(data).decode()


@pytest.fixture
def small_config():
    """360x480 canvas: same 3:4 geometry as the print canvas, far fewer pixels."""
    return CompositorConfig(canvas=PrintCanvas(360, 480, 300))
