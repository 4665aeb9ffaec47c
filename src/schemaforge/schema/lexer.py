"""Line splitter for the schema DSL.

Turns raw text into logical lines: comments and blank lines are dropped,
indentation is classified against the first meaningful line, and nested
lines ending in a comma are joined with the lines that follow them.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from schemaforge.exceptions import ParseFailure

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class LogicalLine:
    """One logical line ready for the grammar matchers."""

    number: int  # 1-based physical line number where the logical line ends
    text: str  # stripped, continuation lines joined with ", "
    top_level: bool


def is_skippable(line: str) -> bool:
    """Blank lines and `#` comment lines carry no declarations."""
    stripped = line.strip()
    return stripped == "" or stripped.startswith("#")


def indent_of(line: str) -> int:
    """Number of leading whitespace characters."""
    return len(line) - len(line.lstrip())


def logical_lines(text: str) -> Iterator[LogicalLine]:
    """Yield the logical lines of a schema document.

    The indentation baseline is the indent of the first non-skippable line.
    Lines at the baseline are top-level; any other indent is nested. A nested
    line with a trailing comma is buffered until a nested line without one.

    Raises:
        ParseFailure: If a continuation is cut off by a top-level line or by
            the end of the document
    """
    baseline: int | None = None
    buffer: list[str] = []
    buffer_end = 0

    for number, line in enumerate(_LINE_BREAK.split(text), start=1):
        if is_skippable(line):
            continue

        indent = indent_of(line)
        if baseline is None:
            baseline = indent

        stripped = line.strip()
        if indent == baseline:
            if buffer:
                raise ParseFailure(buffer_end, ", ".join(buffer) + ",")
            yield LogicalLine(number, stripped, top_level=True)
            continue

        buffer_end = number
        if stripped.endswith(","):
            buffer.append(stripped[:-1].rstrip())
            continue

        buffer.append(stripped)
        yield LogicalLine(number, ", ".join(buffer), top_level=False)
        buffer = []

    if buffer:
        raise ParseFailure(buffer_end, ", ".join(buffer) + ",")
