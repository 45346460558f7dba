"""Print quality diagnostics (effective PPI).

Advisory only: low-PPI prints are still produced, the status is surfaced
to the caller for UI warnings and order metadata.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional

from .config import PPI_OK, PPI_WARN, PRINT_DPI
from .errors import InvalidInput
from .geometry import round_half_up

STATUS_OK = "ok"
STATUS_WARN = "warn"
STATUS_LOW = "low"


@dataclass(frozen=True)
class QualityReport:
    effective_ppi: Optional[int]
    status: str
    clamped: bool = False

    def to_dict(self) -> dict:
        return {"effective_ppi": self.effective_ppi, "status": self.status, "clamped": self.clamped}


def effective_ppi(source_width: int, output_width: int, print_dpi: int = PRINT_DPI) -> int:
    """Pixels per inch of the source as rendered at output_width."""
    if source_width <= 0:
        raise InvalidInput("source width must be positive", "source_width")
    if output_width <= 0:
        raise InvalidInput("output width must be positive", "output_width")
    return round_half_up(source_width * print_dpi / output_width)


def classify_ppi(ppi: int, ok_ppi: int = PPI_OK, warn_ppi: int = PPI_WARN) -> str:
    if ppi >= ok_ppi:
        return STATUS_OK
    if ppi >= warn_ppi:
        return STATUS_WARN
    return STATUS_LOW


def assess_quality(
    source_width: int,
    output_width: int,
    print_dpi: int = PRINT_DPI,
    ok_ppi: int = PPI_OK,
    warn_ppi: int = PPI_WARN,
    clamped: bool = False,
) -> QualityReport:
    ppi = effective_ppi(source_width, output_width, print_dpi)
    return QualityReport(effective_ppi=ppi, status=classify_ppi(ppi, ok_ppi, warn_ppi), clamped=clamped)


def worst_quality(reports: Iterable[QualityReport], clamped: bool = False) -> QualityReport:
    """Lowest-PPI report; clamped is true if any layer was pulled inside."""
    worst = None
    for report in reports:
        clamped = clamped or report.clamped
        if report.effective_ppi is None:
            continue
        if worst is None or report.effective_ppi < worst.effective_ppi:
            worst = report
    if worst is None:
        return QualityReport(effective_ppi=None, status=STATUS_OK, clamped=clamped)
    return QualityReport(effective_ppi=worst.effective_ppi, status=worst.status, clamped=clamped)
