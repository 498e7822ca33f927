"""Error types with formatted source context."""

from __future__ import annotations

from polyast.ranges import TextPointer


class ParseError(Exception):
    """Raised when a front end cannot build a tree for one file.

    ``position`` is optional: some failures (an empty file, a tree that does
    not reproduce its source) have no single location.
    """

    def __init__(
        self,
        message: str,
        position: TextPointer | None = None,
        source: str | None = None,
        filename: str | None = None,
    ) -> None:
        self.message = message
        self.position = position
        self.source = source
        self.filename = filename
        super().__init__(self.format(filename or "input.slang"))

    def format(self, filename: str = "input.slang") -> str:
        if self.position is None:
            return f"error: {self.message}\n  --> {filename}"
        if self.source is None:
            return f"error: {self.message}\n  --> {filename}:{self.position}"

        lines = self.source.splitlines(keepends=True)
        line_idx = self.position.line - 1
        col = self.position.line_offset + 1

        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\n").rstrip("\r")
        else:
            source_line = ""

        pad = " " * (col - 1)

        line_num = str(self.position.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"error: {self.message}\n"
            f"{' ' * gutter_width}--> {filename}:{self.position.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}^"
        )


class VerificationError(AssertionError):
    """Raised by the fixture verifier when expected and actual issues differ."""
