"""Load instrumentation and hit data from JSON documents."""

from __future__ import annotations

import json
import logging
from typing import Any

from linecov.models import Hits, Instruction, InstrumentationResult, SourceFile, TestMethod

logger = logging.getLogger(__name__)


def _instruction(data: dict[str, Any]) -> Instruction:
    start_line = int(data["start_line"])
    return Instruction(
        id=int(data["id"]),
        start_line=start_line,
        end_line=int(data.get("end_line", start_line)),
        start_column=int(data.get("start_column", 0)),
        end_column=int(data.get("end_column", 0)),
    )


def parse_instrumentation(data: dict[str, Any]) -> InstrumentationResult:
    """Build an InstrumentationResult from its JSON-decoded form."""
    result = InstrumentationResult(source_path=data["source_path"])
    for path, file_data in data["files"].items():
        instructions = tuple(_instruction(i) for i in file_data.get("instructions", []))
        result.add_file(SourceFile(path=path, instructions=instructions))
    return result


def parse_hits(data: dict[str, Any]) -> Hits:
    """Build a Hits lookup from its JSON-decoded form."""
    hits = Hits()
    for key, entry in data.items():
        instruction_id = int(key)
        tests = [
            TestMethod(t["class_name"], t["method_name"], int(t.get("counter", 0)))
            for t in entry.get("tests", [])
        ]
        # A test credited with an instruction executed it at least once.
        count = max(int(entry.get("count", 0)), sum(t.counter for t in tests), 1 if tests else 0)
        hits.record(instruction_id, count)
        for test in tests:
            hits.record(instruction_id, 0, test)
    return hits


def load_instrumentation(path: str) -> InstrumentationResult:
    with open(path, encoding="utf-8") as f:
        result = parse_instrumentation(json.load(f))
    logger.debug("loaded %d instrumented files from %s", len(result.files), path)
    return result


def load_hits(path: str) -> Hits:
    with open(path, encoding="utf-8") as f:
        hits = parse_hits(json.load(f))
    logger.debug("loaded hits for %d instructions from %s", len(hits.counts), path)
    return hits
