"""Flask API tests (test client, no network)."""

import base64
import io

import pytest
from PIL import Image

from tee_print.config import CompositorConfig, PrintCanvas
from tee_print.errors import ResourceExceeded
from tee_server import main

from conftest import data_url, png_bytes


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(main, "DATA_DIR", tmp_path)
    small = CompositorConfig(canvas=PrintCanvas(360, 480, 300))
    monkeypatch.setattr(main.ServerConstants, "compositor_config", lambda: small)
    main.app.config["TESTING"] = True
    return main.app.test_client()


def _image_layer(src, **placement):
    spec = {"centerX": 0.5, "centerY": 0.5, "widthFraction": 0.4}
    spec.update(placement)
    return {"type": "image", "src": src, "placement": spec}


def test_print_config(client):
    response = client.get("/api/print/config")
    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["canvas"]["width_px"] == 360
    assert set(data["presets"]) == {"front", "back"}
    assert data["operation_mode"] == "silent"


def test_safe_zone_endpoint(client):
    response = client.post("/api/layout/safe-zone", json={
        "side": "front",
        "container": {"x": 0, "y": 0, "width": 400, "height": 500},
        "garmentBox": {"x": 0, "y": 0, "width": 1000, "height": 1200},
    })
    data = response.get_json()
    assert response.status_code == 200
    assert data["calibrated"] is True
    assert data["zone"]["x"] == pytest.approx(300)


def test_safe_zone_endpoint_fallback(client):
    response = client.post("/api/layout/safe-zone", json={"side": "back", "container": {"width": 400, "height": 500}})
    data = response.get_json()
    assert data["calibrated"] is False
    assert data["zone"]["width"] == pytest.approx(260)


def test_safe_zone_unknown_side(client):
    response = client.post("/api/layout/safe-zone", json={"side": "sleeve", "container": {"width": 1, "height": 1}})
    assert response.status_code == 400
    assert response.get_json()["field"] == "side"


def test_gesture_endpoint(client):
    response = client.post("/api/layout/gesture", json={
        "layer": {**_image_layer("https://cdn.example.com/a.png"), "intrinsicRatio": 1.0},
        "gesture": {"type": "drag", "dx": 100, "dy": 0},
        "zone": {"x": 0, "y": 0, "width": 300, "height": 400},
    })
    data = response.get_json()
    assert response.status_code == 200
    assert data["clamped"] is True
    assert data["layer"]["placement"]["centerX"] == pytest.approx(0.8)
    assert data["guides"][0]["name"] == "right"


def test_invalid_json_payload(client):
    response = client.post("/api/print-file", data="nope", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_print_file_with_data_url(client, tmp_path):
    response = client.post("/api/print-file", json={"layers": [_image_layer(data_url(png_bytes((144, 72))))]})
    data = response.get_json()
    assert response.status_code == 200, data
    assert data["url"] == f"/api/print-file/{data['fileName']}"
    assert data["quality"]["effective_ppi"] == 300
    assert (tmp_path / data["fileName"]).exists()
    assert "metadataFile" not in data

    served = client.get(data["url"])
    assert served.status_code == 200
    with Image.open(io.BytesIO(served.data)) as img:
        assert img.size == (360, 480)


def test_print_file_fetches_urls(client, monkeypatch):
    fetched = []

    def fake_fetch(url):
        fetched.append(url)
        return png_bytes((72, 72))

    monkeypatch.setattr(main.source_service, "fetch", fake_fetch)
    response = client.post("/api/print-file", json={"layers": [
        _image_layer("https://cdn.example.com/art.png"),
        {"type": "text", "text": "TEAM", "placement": {"centerX": 0.5, "centerY": 0.9}},
    ]})
    data = response.get_json()
    assert response.status_code == 200, data
    assert fetched == ["https://cdn.example.com/art.png"]
    assert data["quality"]["status"] == "low"
    assert [layer["kind"] for layer in data["layers"]] == ["image", "text"]


def test_print_file_verbose_mode(client, tmp_path):
    response = client.post(
        "/api/print-file",
        json={"layers": [_image_layer(data_url(png_bytes()))]},
        headers={"X-Tee-Operation-Mode": "verbose"},
    )
    data = response.get_json()
    assert data["operation_mode"] == "verbose"
    assert (tmp_path / data["metadataFile"]).exists()
    assert (tmp_path / data["csvFile"]).read_text().startswith("render_start,")


def test_print_file_guardrail_is_413(client, monkeypatch):
    def too_big(url):
        raise ResourceExceeded("bytes", 50_000_000, 40_000_000)

    monkeypatch.setattr(main.source_service, "fetch", too_big)
    response = client.post("/api/print-file", json={"layers": [_image_layer("https://cdn.example.com/huge.png")]})
    data = response.get_json()
    assert response.status_code == 413
    assert data["kind"] == "resource_exceeded"
    assert data["limit_kind"] == "bytes"
    assert data["value"] == 50_000_000


def test_print_file_dimension_guardrail(client, monkeypatch):
    small = CompositorConfig(canvas=PrintCanvas(360, 480, 300), max_source_dimension=50)
    monkeypatch.setattr(main.ServerConstants, "compositor_config", lambda: small)
    response = client.post("/api/print-file", json={"layers": [_image_layer(data_url(png_bytes((100, 10))))]})
    assert response.status_code == 413
    assert response.get_json()["limit_kind"] == "dimension"


def test_print_file_oversized_text_scale_is_clamped(client):
    response = client.post("/api/print-file", json={"layers": [
        {"type": "text", "text": "HI", "scalePercent": 1000000, "placement": {"centerX": 0.5, "centerY": 0.5}},
    ]})
    data = response.get_json()
    assert response.status_code == 200, data
    # 360 * 12% * 300% = 129.6
    assert data["layers"][0]["placement"]["font_px"] == 130


def test_print_file_long_text_is_413(client):
    response = client.post("/api/print-file", json={"layers": [
        {"type": "text", "text": "W" * 2000, "placement": {"centerX": 0.5, "centerY": 0.5}},
    ]})
    data = response.get_json()
    assert response.status_code == 413
    assert data["limit_kind"] == "characters"
    assert data["value"] == 2000


def test_print_file_undecodable_is_400(client):
    bogus = "data:image/png;base64," + base64.b64encode(b"not a png").decode()
    response = client.post("/api/print-file", json={"layers": [_image_layer(bogus)]})
    assert response.status_code == 400
    assert response.get_json()["kind"] == "invalid_input"


def test_serve_rejects_other_names(client):
    assert client.get("/api/print-file/secret.txt").status_code == 400
    assert client.get("/api/print-file/print_20240101_000000_000000.png").status_code == 404


def test_preview_endpoint(client):
    response = client.post("/api/preview", json={
        "layers": [_image_layer(data_url(png_bytes((50, 50))))],
        "size": {"width": 400, "height": 500},
        "side": "front",
        "mockup": data_url(png_bytes((200, 240), (220, 220, 220, 255))),
        "format": "jpeg",
    })
    data = response.get_json()
    assert response.status_code == 200, data
    assert data["preview"].startswith("data:image/jpeg;base64,")
    assert data["garment_box"]["width"] == pytest.approx(360)
    raw = base64.b64decode(data["preview"].split(",", 1)[1])
    with Image.open(io.BytesIO(raw)) as img:
        assert img.size == (400, 500)


def test_preview_rejects_bad_format(client):
    response = client.post("/api/preview", json={
        "layers": [_image_layer(data_url(png_bytes()))],
        "size": {"width": 100, "height": 100},
        "format": "gif",
    })
    assert response.status_code == 400


def test_unknown_api_route_is_json(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.get_json()["success"] is False
