"""Source positions and ranges shared by tokens, comments, and tree nodes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class TextPointer:
    """Source position, 1-based line and 0-based offset within the line."""

    line: int
    line_offset: int

    def __str__(self) -> str:
        return f"{self.line}:{self.line_offset}"


@dataclass(frozen=True, slots=True)
class TextRange:
    """Source range from start to end pointer (end exclusive)."""

    start: TextPointer
    end: TextPointer

    @classmethod
    def of(cls, start_line: int, start_offset: int, end_line: int, end_offset: int) -> TextRange:
        return cls(TextPointer(start_line, start_offset), TextPointer(end_line, end_offset))

    def is_inside(self, other: TextRange) -> bool:
        """Return True if this range lies within *other* (bounds included)."""
        return self.start >= other.start and self.end <= other.end

    def overlaps(self, other: TextRange) -> bool:
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return (
            f"TextRange[{self.start.line}, {self.start.line_offset}, "
            f"{self.end.line}, {self.end.line_offset}]"
        )


def merge(ranges: Iterable[TextRange]) -> TextRange:
    """Return the smallest range covering every range in *ranges*.

    Raises ValueError when *ranges* is empty.
    """
    items = list(ranges)
    if not items:
        raise ValueError("Can't merge 0 ranges")
    start = min(r.start for r in items)
    end = max(r.end for r in items)
    return TextRange(start, end)


def range_of_text(line: int, line_offset: int, text: str) -> TextRange:
    """Compute the range covered by *text* when it starts at (line, line_offset)."""
    lines = text.split("\n")
    if len(lines) == 1:
        return TextRange.of(line, line_offset, line, line_offset + len(text))
    # \r\n endings leave a trailing \r on every line but the last
    return TextRange.of(line, line_offset, line + len(lines) - 1, len(lines[-1]))
