"""Data models for coverage reporting."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol, Sequence


@dataclass(frozen=True)
class Instruction:
    """An instrumented unit of code mapped to a span of source lines."""

    id: int
    start_line: int
    end_line: int
    start_column: int = 0
    end_column: int = 0

    @property
    def lines(self) -> tuple[int, ...]:
        return tuple(range(self.start_line, max(self.start_line, self.end_line) + 1))


@dataclass(frozen=True)
class SourceFile:
    """A source file and the instructions mapped into it."""

    path: str  # relative to InstrumentationResult.source_path
    instructions: tuple[Instruction, ...] = ()


@dataclass
class InstrumentationResult:
    """All instrumented files of one run, keyed by relative path."""

    source_path: str
    files: dict[str, SourceFile] = field(default_factory=dict)

    def add_file(self, source_file: SourceFile) -> None:
        self.files[source_file.path] = source_file


@dataclass(frozen=True)
class TestMethod:
    """A test that executed an instruction, with its own hit counter."""

    __test__ = False  # keep pytest from collecting this class

    class_name: str
    method_name: str
    counter: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.class_name, self.method_name)

    @property
    def display(self) -> str:
        return f"{self.class_name}.{self.method_name} ({self.counter})"


class HitLookup(Protocol):
    """Read-only view of the hits recorded for a run."""

    def is_hit(self, instruction_id: int) -> bool: ...

    def hit_count(self, instruction_id: int) -> int: ...

    def test_methods(self, instruction_id: int) -> Sequence[TestMethod]: ...


@dataclass
class Hits:
    """In-memory HitLookup keyed by instruction id."""

    counts: dict[int, int] = field(default_factory=dict)
    tests: dict[int, list[TestMethod]] = field(default_factory=dict)

    def record(self, instruction_id: int, count: int = 1, test: TestMethod | None = None) -> None:
        self.counts[instruction_id] = self.counts.get(instruction_id, 0) + count
        if test is None:
            return
        methods = self.tests.setdefault(instruction_id, [])
        for idx, existing in enumerate(methods):
            if existing.key == test.key:
                methods[idx] = TestMethod(
                    existing.class_name,
                    existing.method_name,
                    existing.counter + test.counter,
                )
                return
        methods.append(test)

    def is_hit(self, instruction_id: int) -> bool:
        return self.counts.get(instruction_id, 0) > 0

    def hit_count(self, instruction_id: int) -> int:
        return self.counts.get(instruction_id, 0)

    def test_methods(self, instruction_id: int) -> Sequence[TestMethod]:
        return tuple(self.tests.get(instruction_id, ()))


class LineStatus(enum.Enum):
    COVERED = "covered"
    UNCOVERED = "uncovered"
    NON_EXECUTABLE = "non-executable"


@dataclass(frozen=True)
class LineAnnotation:
    """Coverage of one physical source line.  Recomputed on every render."""

    lineno: int
    status: LineStatus
    hit_count: int = 0
    tests: tuple[TestMethod, ...] = ()


@dataclass(frozen=True)
class FileSummary:
    """Aggregate line coverage for a single file."""

    lines: int
    covered_lines: int
    percentage: float  # fraction in [0, 1]


class CoverageStatus(enum.Enum):
    PASS = "pass"
    FAIL = "fail"
