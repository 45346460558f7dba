import pytest

from tee_print.config import MAX_TEXT_CHARS
from tee_print.errors import InvalidInput, ResourceExceeded
from tee_print.layers import ImageLayer, TextLayer, decode_data_url, parse_layer, parse_layers

from conftest import data_url, png_bytes


def _image(**placement):
    base = {"centerX": 0.5, "centerY": 0.5, "widthFraction": 0.4}
    base.update(placement)
    return {"type": "image", "src": "https://cdn.example.com/art.png", "placement": base}


def test_parse_image_layer_url():
    layer = parse_layer(_image(rotationDegrees=30, opacityPercent=80))
    assert isinstance(layer, ImageLayer)
    assert layer.url == "https://cdn.example.com/art.png"
    assert layer.data is None
    assert layer.placement.rotation_degrees == 30
    assert layer.placement.opacity_percent == 80


def test_parse_image_layer_data_url():
    raw = png_bytes((4, 4))
    layer = parse_layer({"type": "image", "src": data_url(raw), "placement": {"center_x": 0.2, "center_y": 0.7, "width_fraction": 0.3}})
    assert layer.data == raw
    assert layer.url is None
    assert layer.placement.center_x == pytest.approx(0.2)


def test_parse_text_layer_defaults():
    layer = parse_layer({"type": "text", "text": "Team 2024", "placement": {"centerX": 0.5, "centerY": 0.8}})
    assert isinstance(layer, TextLayer)
    assert layer.scale_percent == 60
    assert layer.font_family == "DejaVu Sans"
    assert layer.fill_color == "#111111"


@pytest.mark.parametrize("raw,expected", [(100000, 300), (1000000, 300), (1, 10), (150, 150)])
def test_text_scale_is_bounded(raw, expected):
    layer = parse_layer({"type": "text", "text": "HI", "scalePercent": raw, "placement": {"centerX": 0.5, "centerY": 0.5}})
    assert layer.scale_percent == expected


def test_text_length_guardrail():
    payload = {"type": "text", "text": "W" * (MAX_TEXT_CHARS + 1), "placement": {"centerX": 0.5, "centerY": 0.5}}
    with pytest.raises(ResourceExceeded) as excinfo:
        parse_layer(payload)
    assert excinfo.value.limit_kind == "characters"
    assert excinfo.value.value == MAX_TEXT_CHARS + 1
    assert excinfo.value.limit == MAX_TEXT_CHARS

    payload["text"] = "W" * MAX_TEXT_CHARS
    assert len(parse_layer(payload).text) == MAX_TEXT_CHARS


def test_fields_are_bounded():
    layer = parse_layer(_image(centerX=1.5, centerY=-2, widthFraction=3, rotationDegrees=370, opacityPercent=150))
    spec = layer.placement
    assert (spec.center_x, spec.center_y) == (1.0, 0.0)
    assert spec.width_fraction == 1.0
    assert spec.rotation_degrees == pytest.approx(10)
    assert spec.opacity_percent == 100


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"type": "image", "src": "https://x/y.png"},
        {"type": "video", "placement": {"centerX": 0.5, "centerY": 0.5}},
        _image(widthFraction=0),
        _image(widthFraction=-0.2),
        {"type": "image", "placement": {"centerX": 0.5, "centerY": 0.5, "widthFraction": 0.4}},
        {"type": "image", "src": "/etc/passwd", "placement": {"centerX": 0.5, "centerY": 0.5, "widthFraction": 0.4}},
        {"type": "image", "src": "https://x/y.png", "placement": {"centerY": 0.5, "widthFraction": 0.4}},
        {"type": "text", "text": "   ", "placement": {"centerX": 0.5, "centerY": 0.5}},
        {"type": "text", "text": "hi", "scalePercent": 0, "placement": {"centerX": 0.5, "centerY": 0.5}},
    ],
)
def test_invalid_layers(payload):
    with pytest.raises(InvalidInput):
        parse_layer(payload)


def test_invalid_input_is_value_error():
    with pytest.raises(ValueError):
        parse_layer({"type": "image"})


def test_parse_layers_keeps_order():
    layers = parse_layers([_image(), {"type": "text", "text": "A", "placement": {"centerX": 0.5, "centerY": 0.5}}])
    assert [layer.kind for layer in layers] == ["image", "text"]


def test_parse_layers_rejects_empty():
    with pytest.raises(InvalidInput):
        parse_layers([])


def test_decode_data_url_rejects_plain_text():
    with pytest.raises(InvalidInput):
        decode_data_url("data:text/plain,hello")
