"""Language-agnostic syntax trees, metadata indexing, and check dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polyast.checks import Check, Issue

__version__ = "0.1.0"


def analyze(
    source: str,
    checks: list[Check] | None = None,
    filename: str = "input.slang",
) -> list[Issue]:
    """Parse SLang source and run *checks* (default: every sample rule)."""
    from polyast.analysis import analyze_source
    from polyast.parser import SLangConverter
    from polyast.rules import create_checks

    if checks is None:
        checks = create_checks()
    return analyze_source(source, SLangConverter(), checks, filename)
