"""Report configuration and percentage policy."""

from __future__ import annotations

import math
from dataclasses import dataclass

from linecov.models import CoverageStatus

ROUNDING_MODES = ("round", "truncate")


@dataclass
class ReportConfig:
    """Settings for one report-generation run."""

    output_dir: str = "coverage-html"
    threshold: float = 0.9  # fraction, 0.9 == 90%
    empty_percentage: float = 1.0  # used when there are no executable lines
    percent_decimals: int = 2
    rounding: str = "round"
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {self.threshold!r}")
        if not 0.0 <= self.empty_percentage <= 1.0:
            raise ValueError(
                f"empty_percentage must be between 0 and 1, got {self.empty_percentage!r}"
            )
        if self.percent_decimals < 0:
            raise ValueError(f"percent_decimals must be >= 0, got {self.percent_decimals!r}")
        if self.rounding not in ROUNDING_MODES:
            raise ValueError(
                f"rounding must be one of {', '.join(ROUNDING_MODES)}, got {self.rounding!r}"
            )


def coverage_percentage(covered: int, total: int, empty: float = 1.0) -> float:
    """Covered fraction, defaulting to ``empty`` when there is nothing to cover."""
    return covered / total if total > 0 else empty


def format_percentage(value: float, decimals: int = 2, rounding: str = "round") -> str:
    """Format a fraction as a percentage string, e.g. ``0.5`` -> ``"50.00%"``."""
    pct = value * 100.0
    if rounding == "truncate":
        scale = 10**decimals
        # round first to drop float noise such as 0.29 * 100 == 28.999999999999996
        pct = math.floor(round(pct * scale, 6)) / scale
    elif rounding != "round":
        raise ValueError(f"unknown rounding mode {rounding!r}")
    return f"{pct:.{decimals}f}%"


def status_for(percentage: float, threshold: float) -> CoverageStatus:
    """PASS when the percentage meets or exceeds the threshold."""
    return CoverageStatus.PASS if percentage >= threshold else CoverageStatus.FAIL
