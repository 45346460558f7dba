import json

from PIL import Image

from tee_print import cli

from conftest import png_bytes


def test_safe_zone_command(capsys):
    code = cli.main(["safe-zone", "--side", "front", "--box", "0", "0", "1000", "1200"])
    assert code == 0
    zone = json.loads(capsys.readouterr().out)
    assert zone["x"] == 300
    assert zone["width"] == 400


def test_render_command(tmp_path, capsys):
    image_path = tmp_path / "art.png"
    image_path.write_bytes(png_bytes((1440, 1440)))
    layers_path = tmp_path / "layers.json"
    layers_path.write_text(json.dumps({"layers": [
        {"type": "image", "placement": {"centerX": 0.5, "centerY": 0.5, "widthFraction": 0.4}},
    ]}))
    out_path = tmp_path / "print.png"

    code = cli.main(["render", str(layers_path), "--image", str(image_path), "--out", str(out_path)])
    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["quality"] == {"effective_ppi": 300, "status": "ok", "clamped": False}
    with Image.open(out_path) as img:
        assert img.size == (3600, 4800)
        assert img.mode == "RGBA"


def test_render_command_reports_errors(tmp_path, capsys):
    layers_path = tmp_path / "layers.json"
    layers_path.write_text(json.dumps([{"type": "image", "placement": {"centerX": 0.5, "centerY": 0.5, "widthFraction": 0.4}}]))
    code = cli.main(["render", str(layers_path), "--out", str(tmp_path / "out.png")])
    assert code == 2
    error = json.loads(capsys.readouterr().err)
    assert error["error"]["kind"] == "invalid_input"


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
