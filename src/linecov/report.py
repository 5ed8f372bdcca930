"""Report driving sequence and the renderer protocol it calls into."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from linecov.classifier import summarize_file
from linecov.config import ReportConfig, coverage_percentage, status_for
from linecov.models import (
    CoverageStatus,
    FileSummary,
    HitLookup,
    Instruction,
    InstrumentationResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportOutcome:
    """Grand totals of a run and whether they meet the threshold."""

    lines: int
    covered_lines: int
    percentage: float
    threshold: float
    status: CoverageStatus

    @property
    def passed(self) -> bool:
        return self.status is CoverageStatus.PASS


class ReportRenderer(Protocol):
    """Operations a report format implements, called in this order:

    ``start`` once, ``write_file_summary`` for every file,
    ``write_detailed`` for every file, then ``finish`` once.
    """

    def start(self) -> None: ...

    def write_file_summary(
        self, source_path: str, summary: FileSummary, status: CoverageStatus
    ) -> None: ...

    def write_detailed(
        self,
        source_path: str,
        source_lines: Sequence[str],
        instructions: Sequence[Instruction],
        hits: HitLookup,
    ) -> None: ...

    def finish(self, outcome: ReportOutcome) -> Any: ...


def read_source_lines(source_root: str, relative_path: str, encoding: str = "utf-8") -> list[str]:
    """Read a source file as a list of lines without line terminators."""
    with open(os.path.join(source_root, relative_path), encoding=encoding) as f:
        # Only \n, \r and \r\n end a line; \x0c and \u2028 stay inside it.
        return [line.rstrip("\n") for line in f]


def generate_report(
    result: InstrumentationResult,
    hits: HitLookup,
    renderer: ReportRenderer,
    config: ReportConfig,
) -> ReportOutcome:
    """Drive ``renderer`` over every file of ``result`` and return the totals.

    Files are visited in ``result.files`` order.  I/O errors propagate;
    pages written before a failure stay on disk.
    """
    renderer.start()

    total_lines = 0
    total_covered = 0
    for path, source_file in result.files.items():
        summary = summarize_file(source_file.instructions, hits, config.empty_percentage)
        total_lines += summary.lines
        total_covered += summary.covered_lines
        renderer.write_file_summary(path, summary, status_for(summary.percentage, config.threshold))

    for path, source_file in result.files.items():
        source_lines = read_source_lines(result.source_path, path, config.encoding)
        renderer.write_detailed(path, source_lines, source_file.instructions, hits)

    percentage = coverage_percentage(total_covered, total_lines, config.empty_percentage)
    outcome = ReportOutcome(
        lines=total_lines,
        covered_lines=total_covered,
        percentage=percentage,
        threshold=config.threshold,
        status=status_for(percentage, config.threshold),
    )
    renderer.finish(outcome)
    logger.info(
        "coverage report for %d files: %d/%d lines, %s",
        len(result.files),
        total_covered,
        total_lines,
        outcome.status.value,
    )
    return outcome
