"""Contract between language front ends and the analysis core."""

from __future__ import annotations

from typing import Protocol

from polyast.tree import TopLevel


class ASTConverter(Protocol):
    """Turns the text of one file into a TopLevel tree.

    Implementations raise polyast.errors.ParseError on syntax errors and
    release any external resources in terminate().
    """

    def parse(self, content: str, filename: str | None = None) -> TopLevel: ...

    def terminate(self) -> None: ...
