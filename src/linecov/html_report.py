"""HTML report generation: annotated source pages and the summary index."""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from linecov.classifier import classify_lines
from linecov.config import ReportConfig, coverage_percentage, format_percentage, status_for
from linecov.models import (
    CoverageStatus,
    FileSummary,
    HitLookup,
    Instruction,
    LineAnnotation,
    LineStatus,
)
from linecov.paths import INDEX_NAME, index_href, resolve_artifact
from linecov.report import ReportOutcome

logger = logging.getLogger(__name__)

BG_COVERED = "background-color: #D2EACE;"
BG_UNCOVERED = "background-color: #EACECC;"
BG_NON_EXECUTABLE = "background-color: #EEF4ED;"

_LINE_STYLES: dict[LineStatus, str] = {
    LineStatus.COVERED: BG_COVERED,
    LineStatus.UNCOVERED: BG_UNCOVERED,
    LineStatus.NON_EXECUTABLE: BG_NON_EXECUTABLE,
}

_STATUS_STYLES: dict[CoverageStatus, str] = {
    CoverageStatus.PASS: BG_COVERED,
    CoverageStatus.FAIL: BG_UNCOVERED,
}


def status_style(status: CoverageStatus | str) -> str:
    """Background style for a pass/fail status.

    Anything that is not a CoverageStatus member raises ValueError.
    """
    return _STATUS_STYLES[CoverageStatus(status)]


def _escape_attr(value: str) -> str:
    return html.escape(value, quote=True)


def _source_line(line: str, annotation: LineAnnotation) -> str:
    style = "white-space: pre;" + _LINE_STYLES[annotation.status]
    test_names = ", ".join(t.display for t in annotation.tests)

    if annotation.tests:
        tooltip = f"Covered by tests: {test_names} for {annotation.hit_count}"
        icon = (
            '<span style="cursor: pointer; margin-right: 5px;" '
            f'title="{_escape_attr(tooltip)}">&#9432;</span>'
        )
    else:
        icon = '<span style="margin-right: 5px;">&nbsp;</span>'

    # An empty div collapses, so blank lines get a non-breaking space.
    text = html.escape(line, quote=False) if line else "&nbsp;"
    return f'<div style="{style}" title="{_escape_attr(test_names)}">{icon}{text}</div>'


def render_source_page(
    source_path: str,
    source_lines: Sequence[str],
    annotations: Sequence[LineAnnotation],
) -> str:
    """Render the annotated page for one source file.

    Identical inputs always give identical output; the page carries no
    timestamp.  Lines without an annotation render as non-executable.
    """
    by_line = {a.lineno: a for a in annotations}
    out: list[str] = [
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{html.escape(source_path)}</title>",
        "</head>",
        '<body style="font-family: monospace;">',
    ]
    for lineno, line in enumerate(source_lines, start=1):
        annotation = by_line.get(lineno) or LineAnnotation(lineno, LineStatus.NON_EXECUTABLE)
        out.append(_source_line(line, annotation))
    out.append("</body>")
    out.append("</html>")
    return "\n".join(out) + "\n"


def _write(path: Path, content: str, encoding: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding=encoding, newline="\n") as f:
        f.write(content)


def write_source_page(
    output_dir: str | Path,
    source_path: str,
    source_lines: Sequence[str],
    annotations: Sequence[LineAnnotation],
    encoding: str = "utf-8",
) -> Path:
    """Write the annotated page for ``source_path``, replacing any previous one."""
    target = resolve_artifact(output_dir, source_path)
    _write(target, render_source_page(source_path, source_lines, annotations), encoding)
    logger.debug("wrote source page %s for %s", target, source_path)
    return target


@dataclass(frozen=True)
class SummaryRow:
    """One file entry of the summary index."""

    name: str
    href: str
    lines: int
    covered_lines: int
    percentage: float
    status: CoverageStatus


class SummaryAggregator:
    """Accumulates per-file totals and writes the summary index.

    Rows keep the order in which files were added.
    """

    def __init__(self, config: ReportConfig) -> None:
        self.config = config
        self.rows: list[SummaryRow] = []

    def add_file(
        self,
        source_path: str,
        summary: FileSummary,
        status: CoverageStatus | None = None,
    ) -> None:
        if status is None:
            status = status_for(summary.percentage, self.config.threshold)
        self.rows.append(
            SummaryRow(
                name=source_path,
                href=index_href(source_path),
                lines=summary.lines,
                covered_lines=summary.covered_lines,
                percentage=summary.percentage,
                status=CoverageStatus(status),
            )
        )

    def totals(self) -> FileSummary:
        lines = sum(r.lines for r in self.rows)
        covered = sum(r.covered_lines for r in self.rows)
        return FileSummary(
            lines=lines,
            covered_lines=covered,
            percentage=coverage_percentage(covered, lines, self.config.empty_percentage),
        )

    def _pct(self, value: float) -> str:
        return format_percentage(value, self.config.percent_decimals, self.config.rounding)

    def render(self, threshold: float, generated_at: datetime | None = None) -> str:
        """Render the index page with grand totals and one row per file."""
        if generated_at is None:
            generated_at = datetime.now(timezone.utc)
        totals = self.totals()
        overall = status_for(totals.percentage, threshold)

        out: list[str] = [
            "<html>",
            "<head>",
            '<meta charset="utf-8">',
            "<title>Coverage Summary</title>",
            "</head>",
            '<body style="font-family: sans-serif;">',
            "<h1>Summary</h1>",
            '<table border="1" cellpadding="5">',
            f"<tr><th>Generated on</th><td>{generated_at.isoformat(timespec='seconds')}</td></tr>",
            f"<tr><th>Lines</th><td>{totals.lines}</td></tr>",
            f"<tr><th>Covered Lines</th><td>{totals.covered_lines}</td></tr>",
            f"<tr><th>Threshold</th><td>{self._pct(threshold)}</td></tr>",
            f'<tr><th>Percentage</th><td style="{status_style(overall)}">'
            f"{self._pct(totals.percentage)}</td></tr>",
            "</table>",
            "<h1>Coverage</h1>",
            '<table border="1" cellpadding="5">',
            "<tr>",
            "<th>File</th>",
            "<th>Lines</th>",
            "<th>Covered Lines</th>",
            "<th>Percentage</th>",
            "</tr>",
        ]
        for row in self.rows:
            out.append("<tr>")
            out.append(f'<td><a href="{_escape_attr(row.href)}">{html.escape(row.name)}</a></td>')
            out.append(f"<td>{row.lines}</td>")
            out.append(f"<td>{row.covered_lines}</td>")
            out.append(f'<td style="{status_style(row.status)}">{self._pct(row.percentage)}</td>')
            out.append("</tr>")
        out.append("</table>")
        out.append("</body>")
        out.append("</html>")
        return "\n".join(out) + "\n"

    def flush(self, threshold: float, generated_at: datetime | None = None) -> Path:
        """Write ``index.html`` into the output directory and reset the rows."""
        output_dir = Path(self.config.output_dir)
        target = output_dir / INDEX_NAME
        content = self.render(threshold, generated_at)
        totals = self.totals()
        _write(target, content, self.config.encoding)
        logger.info(
            "wrote summary %s: %d/%d lines covered (%s)",
            target,
            totals.covered_lines,
            totals.lines,
            self._pct(totals.percentage),
        )
        self.rows = []
        return target


class HtmlReport:
    """ReportRenderer producing one page per source file plus an index."""

    def __init__(self, config: ReportConfig, generated_at: datetime | None = None) -> None:
        self.config = config
        self.generated_at = generated_at
        self.summary = SummaryAggregator(config)
        self.pages: list[Path] = []

    def start(self) -> None:
        Path(self.config.output_dir).mkdir(parents=True, exist_ok=True)

    def write_file_summary(
        self, source_path: str, summary: FileSummary, status: CoverageStatus
    ) -> None:
        self.summary.add_file(source_path, summary, status)

    def write_detailed(
        self,
        source_path: str,
        source_lines: Sequence[str],
        instructions: Sequence[Instruction],
        hits: HitLookup,
    ) -> None:
        annotations = classify_lines(source_lines, instructions, hits)
        page = write_source_page(
            self.config.output_dir,
            source_path,
            source_lines,
            annotations,
            encoding=self.config.encoding,
        )
        self.pages.append(page)

    def finish(self, outcome: ReportOutcome) -> Path:
        return self.summary.flush(outcome.threshold, self.generated_at)
