import pytest
from PIL import Image

from tee_print.decoder import MockDecoder
from tee_print.errors import InvalidInput
from tee_print.geometry import Rect
from tee_print.layers import ImageLayer, PlacementSpec
from tee_print.preview import mockup_box, render_preview


def _layer():
    return ImageLayer(PlacementSpec(0.5, 0.5, 0.5), data=b"source")


def test_preview_without_mockup_uses_fallback_zone():
    result = render_preview([_layer()], (400, 500), decoder=MockDecoder((100, 100)))
    assert result.image.size == (400, 500)
    assert result.image.mode == "RGB"
    assert result.garment_box is None
    assert result.zone.x == pytest.approx(70)
    assert result.zone.width == pytest.approx(260)
    # Layer drawn at the zone center
    cx, cy = result.zone.center
    assert result.image.getpixel((int(cx), int(cy))) == (255, 0, 0)
    assert result.image.getpixel((2, 2)) == (255, 255, 255)


def test_preview_with_mockup_derives_zone():
    mockup = Image.new("RGBA", (200, 240), (200, 200, 200, 255))
    result = render_preview([_layer()], (400, 500), side="front", mockup=mockup, decoder=MockDecoder((100, 100)))
    box = result.garment_box
    assert (box.x, box.y, box.width, box.height) == pytest.approx((20, 34, 360, 432))
    assert result.zone.x == pytest.approx(20 + 0.3 * 360)
    assert result.zone.width == pytest.approx(0.4 * 360)
    assert result.image.getpixel((25, 40)) == (200, 200, 200)


def test_preview_and_print_agree_on_normalized_placement():
    layer = ImageLayer(PlacementSpec(0.0, 0.3, 0.5), data=b"source")
    result = render_preview([layer], (400, 500), decoder=MockDecoder((100, 100)))
    placement = result.layers[0].placement
    zone = result.zone
    # Pulled in by half its width, same as on the print canvas
    assert (placement.center_x - zone.x) / zone.width == pytest.approx(0.25, abs=0.01)


def test_preview_safe_zone_outline():
    result = render_preview([_layer()], (400, 500), decoder=MockDecoder((10, 10)), show_safe_zone=True)
    zone = result.zone
    corner = result.image.crop((int(zone.x) - 2, int(zone.y) - 2, int(zone.x) + 10, int(zone.y) + 3))
    assert any(color != (255, 255, 255) for _, color in corner.getcolors())


def test_preview_invalid_size():
    with pytest.raises(InvalidInput):
        render_preview([_layer()], (0, 500), decoder=MockDecoder())


def test_mockup_box_is_centered():
    box = mockup_box(Image.new("RGB", (100, 100)), Rect(0, 0, 500, 600))
    assert (box.x, box.y, box.width, box.height) == pytest.approx((25, 75, 450, 450))


def test_preview_to_dict():
    payload = render_preview([_layer()], (300, 400), decoder=MockDecoder()).to_dict()
    assert payload["width"] == 300
    assert set(payload["zone"]) == {"x", "y", "width", "height"}
    assert payload["layers"][0]["clamped"] is False
