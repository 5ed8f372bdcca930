"""Per-line coverage classification from instruction hits."""

from __future__ import annotations

from typing import Iterable, Sequence

from linecov.config import coverage_percentage
from linecov.models import (
    FileSummary,
    HitLookup,
    Instruction,
    LineAnnotation,
    LineStatus,
    TestMethod,
)


def _line_sets(
    instructions: Iterable[Instruction], hits: HitLookup
) -> tuple[set[int], set[int]]:
    """Split the lines spanned by instructions into (covered, uncovered).

    A line lands in both sets when a hit and a missed instruction span it.
    """
    covered: set[int] = set()
    uncovered: set[int] = set()
    for instruction in instructions:
        if hits.is_hit(instruction.id):
            covered.update(instruction.lines)
        else:
            uncovered.update(instruction.lines)
    return covered, uncovered


def classify_lines(
    source_lines: Sequence[str],
    instructions: Sequence[Instruction],
    hits: HitLookup,
) -> list[LineAnnotation]:
    """Annotate every source line with its status, hit count and tests.

    Returns exactly one annotation per entry of ``source_lines`` (line numbers
    start at 1).  Instruction lines past the end of the source are ignored,
    so a file edited after instrumentation still renders.
    """
    covered, uncovered = _line_sets(instructions, hits)

    by_line: dict[int, list[Instruction]] = {}
    for instruction in instructions:
        for lineno in instruction.lines:
            by_line.setdefault(lineno, []).append(instruction)

    annotations: list[LineAnnotation] = []
    for lineno in range(1, len(source_lines) + 1):
        if lineno in covered:
            status = LineStatus.COVERED
        elif lineno in uncovered:
            status = LineStatus.UNCOVERED
        else:
            status = LineStatus.NON_EXECUTABLE

        spanning = by_line.get(lineno, [])
        count = sum(hits.hit_count(i.id) for i in spanning)

        # Dedupe on (class, method); the first occurrence wins.
        seen: dict[tuple[str, str], TestMethod] = {}
        for instruction in spanning:
            for test in hits.test_methods(instruction.id):
                seen.setdefault(test.key, test)

        annotations.append(
            LineAnnotation(
                lineno=lineno,
                status=status,
                hit_count=count,
                tests=tuple(seen.values()),
            )
        )
    return annotations


def summarize_file(
    instructions: Sequence[Instruction],
    hits: HitLookup,
    empty_percentage: float = 1.0,
) -> FileSummary:
    """Count distinct executable and covered lines of one file."""
    covered, uncovered = _line_sets(instructions, hits)
    total = len(covered | uncovered)
    return FileSummary(
        lines=total,
        covered_lines=len(covered),
        percentage=coverage_percentage(len(covered), total, empty_percentage),
    )
