import pytest

from tee_print.errors import InvalidInput
from tee_print.quality import QualityReport, assess_quality, classify_ppi, effective_ppi, worst_quality


def test_effective_ppi_formula():
    assert effective_ppi(1440, 1440) == 300
    assert effective_ppi(1000, 1440) == 208
    assert effective_ppi(4000, 1440) == 833


def test_ppi_strictly_decreasing():
    values = [effective_ppi(2000, width) for width in range(200, 3601, 200)]
    assert all(a > b for a, b in zip(values, values[1:]))


@pytest.mark.parametrize(
    "ppi,status",
    [(1000, "ok"), (300, "ok"), (299, "warn"), (200, "warn"), (199, "low"), (1, "low")],
)
def test_status_thresholds(ppi, status):
    assert classify_ppi(ppi) == status


def test_status_changes_at_thresholds():
    statuses = [assess_quality(1440, width).status for width in range(1000, 3000)]
    assert statuses[0] == "ok" and statuses[-1] == "low"
    # ok -> warn -> low, each exactly once
    changes = [(a, b) for a, b in zip(statuses, statuses[1:]) if a != b]
    assert changes == [("ok", "warn"), ("warn", "low")]


def test_invalid_widths():
    with pytest.raises(InvalidInput):
        effective_ppi(0, 100)
    with pytest.raises(InvalidInput):
        effective_ppi(100, 0)


def test_worst_quality():
    reports = [QualityReport(450, "ok"), QualityReport(210, "warn", clamped=True), QualityReport(320, "ok")]
    worst = worst_quality(reports)
    assert worst.effective_ppi == 210
    assert worst.status == "warn"
    assert worst.clamped


def test_worst_quality_without_images():
    report = worst_quality([], clamped=True)
    assert report.effective_ppi is None
    assert report.status == "ok"
    assert report.clamped
