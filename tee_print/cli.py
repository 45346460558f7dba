#!/usr/bin/env python3
"""Thin CLI around the compositor.

Wraps library calls and turns errors into exit codes:
0 ok, 2 invalid input or resource exceeded.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .compositor import encode_png, render_print_file
from .config import CompositorConfig
from .csv_logger import RenderCSVLogger
from .errors import CompositorError, InvalidInput
from .geometry import Rect
from .layers import parse_layers
from .safe_zone import SIDES, resolve_safe_zone

logger = logging.getLogger(__name__)


def _load_layer_dicts(layers_path: str, image_paths: list) -> list:
    """Read the layers JSON and attach --image files to image layers.

    Image layers without inline data take the --image files in order.
    """
    try:
        document = json.loads(Path(layers_path).read_text())
    except (OSError, ValueError) as exc:
        raise InvalidInput(f"Cannot read layers file {layers_path}: {exc}", "layers") from exc
    items = document.get("layers") if isinstance(document, dict) else document
    if not isinstance(items, list):
        raise InvalidInput("layers file must hold a list or {\"layers\": [...]}", "layers")

    pending = list(image_paths or [])
    for item in items:
        if not isinstance(item, dict) or item.get("type") != "image":
            continue
        src = item.get("src")
        if item.get("data") or (isinstance(src, str) and src.startswith("data:")):
            continue
        if not pending:
            raise InvalidInput("more image layers than --image files", "image")
        path = pending.pop(0)
        try:
            item["data"] = Path(path).read_bytes()
        except OSError as exc:
            raise InvalidInput(f"Cannot read image {path}: {exc}", "image") from exc
    if pending:
        logger.warning(f"{len(pending)} unused --image file(s)")
    return items


def _render(args) -> int:
    config = CompositorConfig(symmetric_vertical_clamp=args.symmetric_clamp)
    layers = parse_layers(_load_layer_dicts(args.layers, args.image))
    csv_logger = RenderCSVLogger(args.csv) if args.csv else None
    try:
        result = render_print_file(layers, config=config, csv_logger=csv_logger)
    finally:
        if csv_logger:
            csv_logger.close()
    Path(args.out).write_bytes(encode_png(result.image, config.canvas.dpi))
    print(json.dumps({"out": args.out, **result.to_dict()}, indent=2))
    return 0


def _safe_zone(args) -> int:
    box = Rect(*args.box)
    zone = resolve_safe_zone(args.side, box, box)
    print(json.dumps(zone.to_dict(), indent=2))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="tee-print", description="Tee print compositor")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p = sub.add_parser("render", help="render the print PNG from a layers file")
    p.add_argument("layers", help="JSON list of layers (or {\"layers\": [...]})")
    p.add_argument("--image", action="append", default=[], help="source image for the next image layer")
    p.add_argument("--out", required=True, help="output PNG path")
    p.add_argument("--csv", help="write per-phase render timings to this CSV")
    p.add_argument("--symmetric-clamp", action="store_true", help="clamp bottom edge like the top edge")

    p = sub.add_parser("safe-zone", help="derive the safe zone for a garment box")
    p.add_argument("--side", choices=SIDES, default="front")
    p.add_argument("--box", type=float, nargs=4, metavar=("X", "Y", "W", "H"), required=True)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    handlers = {"render": _render, "safe-zone": _safe_zone}
    if args.cmd not in handlers:
        parser.print_help()
        return 1

    try:
        return handlers[args.cmd](args)
    except CompositorError as e:
        print(json.dumps({"success": False, "error": e.to_dict()}), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
