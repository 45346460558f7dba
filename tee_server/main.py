"""
Flask app for the tee print compositor

JSON API used by the storefront editor and the order pipeline.
Access at http://<host>:8080
"""

from flask import Flask, request, jsonify, send_from_directory
from werkzeug.exceptions import HTTPException
from pathlib import Path
import logging
import re

from tee_print.errors import CompositorError, InvalidInput, ResourceExceeded
from tee_print.layers import decode_data_url, parse_layers
from tee_print.validators import parse_bool, pick, safe_int

from .constants import ServerConstants
from .services import LayoutService, PreviewService, RenderService, SourceService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)


@app.errorhandler(Exception)
def handle_unexpected_error(err):
    """Ensure API endpoints always return JSON, even for unhandled failures."""
    if request.path.startswith("/api/"):
        status = 500
        message = str(err) or "Internal Server Error"
        if isinstance(err, HTTPException):
            status = err.code or 500
            message = err.description or message
        if status >= 500:
            logger.exception("Unhandled API error on %s: %s", request.path, err)
        return jsonify({"success": False, "error": message}), status

    if isinstance(err, HTTPException):
        return err
    logger.exception("Unhandled web error on %s: %s", request.path, err)
    return "Internal Server Error", 500


# Operation mode: silent (default) / verbose
# Verbose keeps a metadata JSON and a render-timing CSV next to each print file.
# Request-scoped (client may override per request via header/query).
VALID_MODES = {'silent', 'verbose'}
DEFAULT_MODE = 'silent'

DATA_DIR = ServerConstants.DATA_DIR
PRINT_FILE_RE = re.compile(r"^print_\d{8}_\d{6}_\d{6}\.(png|json|csv)$")

source_service = SourceService(ServerConstants.MAX_FETCH_BYTES, ServerConstants.FETCH_TIMEOUT_S)
render_service = RenderService(ServerConstants.MAX_CONCURRENT_RENDERS)

logger.info(f"=== Tee Print Startup Configuration ===")
logger.info(f"Data dir: {DATA_DIR}")
logger.info(f"Max source: {ServerConstants.MAX_SOURCE_DIMENSION}px / {ServerConstants.MAX_SOURCE_PIXELS} pixels")
logger.info(f"Max fetch: {ServerConstants.MAX_FETCH_BYTES} bytes, timeout {ServerConstants.FETCH_TIMEOUT_S}s")
logger.info(f"Concurrent renders: {render_service.max_concurrent}")
logger.info(f"Operation mode default: {DEFAULT_MODE}")
logger.info(f"=======================================")


def get_operation_mode():
    """Get request-scoped operation mode."""
    requested = request.headers.get("X-Tee-Operation-Mode") or request.args.get("operation_mode")
    if isinstance(requested, str) and requested in VALID_MODES:
        return requested
    return DEFAULT_MODE


def _json_payload() -> dict:
    """Return JSON object payload or raise InvalidInput."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput("Invalid JSON payload")
    return data


def _error_response(err: CompositorError):
    """Map compositor errors to JSON: 413 for guardrails, 400 otherwise."""
    status = 413 if isinstance(err, ResourceExceeded) else 400
    body = {"success": False, "error": str(err)}
    body.update({k: v for k, v in err.to_dict().items() if k != "error"})
    return jsonify(body), status


def _public_url(file_name: str) -> str:
    path = f"/api/print-file/{file_name}"
    if ServerConstants.PUBLIC_BASE_URL:
        return f"{ServerConstants.PUBLIC_BASE_URL}{path}"
    return path


def _source_bytes(value) -> bytes | None:
    """Inline data URL or http(s) URL to bytes (None if absent)."""
    if not value:
        return None
    if not isinstance(value, str):
        raise InvalidInput("mockup must be a URL or data URL", "mockup")
    if value.startswith("data:"):
        return decode_data_url(value)
    if not re.match(r"^https?://", value, re.I):
        raise InvalidInput("mockup must be an http(s) URL or data URL", "mockup")
    return source_service.fetch(value)


@app.route("/api/print/config", methods=["GET"])
def print_config():
    """Canvas, presets, thresholds and guardrails the editor should use."""
    config = ServerConstants.compositor_config()
    return jsonify({
        "success": True,
        **config.to_dict(),
        "max_fetch_bytes": ServerConstants.MAX_FETCH_BYTES,
        "operation_mode": get_operation_mode(),
        "valid_modes": sorted(VALID_MODES),
    })


@app.route("/api/layout/safe-zone", methods=["POST"])
def layout_safe_zone():
    """Resolve the safe zone for a side.

    Input:
        side: 'front' | 'back'
        container: {x, y, width, height} editor container in screen px
        garmentBox: {x, y, width, height} drawn mockup box (optional)
    """
    try:
        data = _json_payload()
        result = LayoutService.safe_zone(data, ServerConstants.compositor_config())
        return jsonify({"success": True, **result})
    except CompositorError as e:
        return _error_response(e)


@app.route("/api/layout/gesture", methods=["POST"])
def layout_gesture():
    """Apply one editor gesture.

    Input:
        layer: layer dict (image layers need intrinsicRatio)
        gesture: {type: drag|scale|wheel|rotate|opacity|recenter, ...}
        zone: {x, y, width, height} safe zone in screen px

    Output:
        layer, guides, clamped
    """
    try:
        data = _json_payload()
        result = LayoutService.gesture(data, ServerConstants.compositor_config())
        return jsonify({"success": True, **result})
    except CompositorError as e:
        return _error_response(e)


@app.route("/api/preview", methods=["POST"])
def preview():
    """Render the on-screen editor preview

    Input:
        layers: list of layer dicts
        size: {width, height} container size in screen px
        side: 'front' | 'back'
        mockup: garment mockup URL or data URL (optional)
        showSafeZone: draw the zone outline (optional)
        format: 'png' (default) | 'jpeg'

    Output:
        preview: base64 data URL
        zone, garment_box, layers
    """
    try:
        data = _json_payload()
        size = data.get("size") or {}
        if not isinstance(size, dict):
            raise InvalidInput("size must be an object", "size")
        limit = ServerConstants.MAX_PREVIEW_DIMENSION
        width = safe_int(size.get("width"), "size.width", 1, limit)
        height = safe_int(size.get("height"), "size.height", 1, limit)
        image_format = str(data.get("format") or "png").strip().upper()
        if image_format == "JPG":
            image_format = "JPEG"
        if image_format not in ("PNG", "JPEG"):
            raise InvalidInput(f"Unsupported preview format: {image_format}", "format")

        config = ServerConstants.compositor_config()
        layers = source_service.resolve_layers(parse_layers(data.get("layers")))
        result = PreviewService.render(
            layers,
            (width, height),
            side=str(data.get("side") or "front").strip().lower(),
            mockup=_source_bytes(pick(data, "mockup", "mockupUrl")),
            config=config,
            show_safe_zone=parse_bool(pick(data, "showSafeZone", "show_safe_zone")),
            image_format=image_format,
        )
        return jsonify({"success": True, **result})
    except CompositorError as e:
        return _error_response(e)
    except OSError as e:
        logger.error(f"Preview generation failed: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@app.route("/api/print-file", methods=["POST"])
def print_file():
    """Render and store the print file for an order

    Input:
        layers: list of layer dicts (image src by http(s) URL or data URL)

    Output:
        url, fileName, quality, layers
    """
    try:
        data = _json_payload()
        mode = get_operation_mode()
        layers = source_service.resolve_layers(parse_layers(data.get("layers")))
        result = render_service.render_to_file(
            layers,
            DATA_DIR,
            config=ServerConstants.compositor_config(),
            verbose=(mode == "verbose"),
        )
        response = {
            "success": True,
            "url": _public_url(result["file_name"]),
            "fileName": result["file_name"],
            "quality": result["quality"],
            "layers": result["layers"],
            "operation_mode": mode,
        }
        if mode == "verbose":
            response["metadataFile"] = Path(result["metadata_path"]).name
            response["csvFile"] = Path(result["csv_path"]).name
        return jsonify(response)
    except CompositorError as e:
        return _error_response(e)
    except OSError as e:
        logger.error(f"Print file render failed: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@app.route("/api/print-file/<name>", methods=["GET"])
def serve_print_file(name):
    """Serve a stored print file (or its verbose-mode metadata/CSV)"""
    # Security: only names this service generates, no directory traversal
    if not PRINT_FILE_RE.match(name):
        return jsonify({"success": False, "error": "Invalid filename"}), 400
    if not (DATA_DIR / name).exists():
        return jsonify({"success": False, "error": "Print file not found"}), 404
    return send_from_directory(str(DATA_DIR), name)


def main():
    app.run(host="0.0.0.0", port=8080)


if __name__ == "__main__":
    main()
