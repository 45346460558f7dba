"""CSV logging for render phases.

Provides RenderCSVLogger for tracking how long each render step took and
how many pixels it touched, so slow uploads can be traced after the fact.
"""

from __future__ import annotations
import csv
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

CSV_HEADERS = [
    "render_start",
    "timestamp",
    "elapsed_s",
    "phase",
    "operation",
    "duration_ms",
    "pixels_processed",
    "cumulative_pixels",
    "layer_index",
    "status",
]


class RenderCSVLogger:
    """Logs render operations to a CSV file with timing and pixel counts.

    Usage:
        with RenderCSVLogger("path/to/render.csv") as log:
            log.log_operation(phase="resize", operation="LANCZOS 1440x1440",
                              duration_ms=85.1, pixels_processed=2073600)
    """

    def __init__(self, csv_path: str):
        """Initialize CSV logger.

        Args:
            csv_path: Path to CSV file (will be created/overwritten)
        """
        self.csv_path = Path(csv_path)
        self.csv_file = open(self.csv_path, "w", newline="")
        self.csv_writer = csv.writer(self.csv_file)
        self.csv_writer.writerow(CSV_HEADERS)

        self.start_time = time.time()
        self.render_start_str = datetime.fromtimestamp(self.start_time).strftime(
            "%Y-%m-%d %H:%M:%S"
        )
        self.cumulative_pixels = 0

    def log_operation(
        self,
        phase: str,
        operation: str,
        duration_ms: float,
        pixels_processed: int = 0,
        layer_index: Optional[int] = None,
        status: str = "OK",
    ):
        """Log a render operation.

        Args:
            phase: Render phase (probe, decode, resize, rotate, composite, ...)
            operation: Specific operation description
            duration_ms: Operation duration in milliseconds
            pixels_processed: Output pixels produced by this operation
            layer_index: Index of the layer in draw order, if any
            status: OK, CLAMPED, ERROR, ...
        """
        self.cumulative_pixels += pixels_processed
        elapsed_s = time.time() - self.start_time
        now_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        self.csv_writer.writerow(
            [
                self.render_start_str,
                now_str,
                f"{elapsed_s:.3f}",
                phase,
                operation,
                f"{duration_ms:.1f}",
                pixels_processed,
                self.cumulative_pixels,
                layer_index if layer_index is not None else "",
                status,
            ]
        )
        self.csv_file.flush()

    def close(self):
        """Close CSV file."""
        if self.csv_file and not self.csv_file.closed:
            self.csv_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


@contextmanager
def timed(csv_logger: Optional[RenderCSVLogger], phase: str, operation: str, layer_index: Optional[int] = None) -> Iterator[dict]:
    """Time a block and log it if a logger is attached.

    The yielded dict may be updated with 'pixels' and 'status'.
    """
    info = {"pixels": 0, "status": "OK"}
    started = time.perf_counter()
    try:
        yield info
    except Exception:
        info["status"] = "ERROR"
        raise
    finally:
        if csv_logger is not None:
            csv_logger.log_operation(
                phase=phase,
                operation=operation,
                duration_ms=(time.perf_counter() - started) * 1000.0,
                pixels_processed=info["pixels"],
                layer_index=layer_index,
                status=info["status"],
            )
