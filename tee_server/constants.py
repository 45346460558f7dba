"""Server configuration read from the environment, with compositor defaults."""

import os
from pathlib import Path

from tee_print.config import MAX_SOURCE_DIMENSION, MAX_SOURCE_PIXELS, CompositorConfig
from tee_print.validators import parse_bool


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


class ServerConstants:
    """Single source of truth for service limits and storage."""

    # Storage for rendered print files (and verbose-mode logs)
    DATA_DIR = Path(os.getenv("TEE_PRINT_DATA_DIR", str(Path(__file__).parents[1] / "data")))
    PUBLIC_BASE_URL = os.getenv("TEE_PRINT_PUBLIC_BASE_URL", "").rstrip("/")

    # Source guardrails
    MAX_SOURCE_DIMENSION = _env_int("TEE_PRINT_MAX_SOURCE_DIMENSION", MAX_SOURCE_DIMENSION)
    MAX_SOURCE_PIXELS = _env_int("TEE_PRINT_MAX_SOURCE_PIXELS", MAX_SOURCE_PIXELS)
    MAX_FETCH_BYTES = _env_int("TEE_PRINT_MAX_FETCH_BYTES", 40 * 1024 * 1024)
    FETCH_TIMEOUT_S = _env_float("TEE_PRINT_FETCH_TIMEOUT", 15.0)

    # Large resizes hold a lot of memory; bound how many run at once
    MAX_CONCURRENT_RENDERS = _env_int("TEE_PRINT_MAX_CONCURRENT_RENDERS", 2)

    SYMMETRIC_VERTICAL_CLAMP = parse_bool(os.getenv("TEE_PRINT_SYMMETRIC_CLAMP"), default=False)

    # Preview limits (screen pixels)
    MAX_PREVIEW_DIMENSION = 4096

    @classmethod
    def compositor_config(cls) -> CompositorConfig:
        return CompositorConfig(
            max_source_dimension=cls.MAX_SOURCE_DIMENSION,
            max_source_pixels=cls.MAX_SOURCE_PIXELS,
            symmetric_vertical_clamp=cls.SYMMETRIC_VERTICAL_CLAMP,
        )
