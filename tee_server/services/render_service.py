"""Print-file rendering and storage."""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from tee_print.compositor import encode_png, render_print_file
from tee_print.config import CompositorConfig
from tee_print.csv_logger import RenderCSVLogger
from tee_print.layers import Layer

logger = logging.getLogger(__name__)


def file_timestamp() -> str:
    """Filesystem-safe timestamp with microsecond precision."""
    return datetime.now().strftime("%Y%m%d_%H%M%S_%f")


def iso_timestamp() -> str:
    """ISO-8601 UTC timestamp for API/metadata payloads."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RenderService:
    """Renders print files and stores them in the data directory.

    Renders are bounded by a semaphore: a 4800px LANCZOS resize of a large
    source holds hundreds of MB, so only a few may run at once.
    """

    def __init__(self, max_concurrent: int = 2):
        self.max_concurrent = max(1, int(max_concurrent))
        self._slots = threading.BoundedSemaphore(self.max_concurrent)

    def render_to_file(
        self,
        layers: List[Layer],
        data_dir: Path,
        config: Optional[CompositorConfig] = None,
        verbose: bool = False,
    ) -> dict:
        """
        Render layers and write print_<timestamp>.png into data_dir.

        Args:
            layers: Layers with image bytes already attached
            data_dir: Output directory
            config: Compositor configuration
            verbose: Also keep a metadata JSON and a render-timing CSV

        Returns:
            Dict with file_name, path, quality, layers (+ csv/metadata paths)
        """
        config = config or CompositorConfig()
        data_dir.mkdir(parents=True, exist_ok=True)
        stem = f"print_{file_timestamp()}"
        png_path = data_dir / f"{stem}.png"
        csv_path = data_dir / f"{stem}.csv" if verbose else None

        with self._slots:
            csv_logger = RenderCSVLogger(str(csv_path)) if csv_path else None
            try:
                result = render_print_file(layers, config=config, csv_logger=csv_logger)
            finally:
                if csv_logger:
                    csv_logger.close()
            png_path.write_bytes(encode_png(result.image, config.canvas.dpi))

        summary = result.to_dict()
        response = {
            "file_name": png_path.name,
            "path": str(png_path),
            "quality": summary["quality"],
            "layers": summary["layers"],
        }
        if verbose:
            metadata_path = data_dir / f"{stem}.json"
            metadata = {
                "created_at": iso_timestamp(),
                "file_name": png_path.name,
                "canvas": config.canvas.to_dict(),
                "config": config.to_dict(),
                "input_layers": [layer.to_dict() for layer in layers],
                **summary,
            }
            metadata_path.write_text(json.dumps(metadata, indent=2))
            response["metadata_path"] = str(metadata_path)
            response["csv_path"] = str(csv_path)

        logger.info(
            f"Stored {png_path.name} ({summary['width']}x{summary['height']}, "
            f"status={summary['quality']['status']})"
        )
        return response
