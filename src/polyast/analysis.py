"""Batch analysis: parse and check many files, isolating failures per file."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from polyast.checks import Check, ChecksVisitor, Issue
from polyast.converter import ASTConverter
from polyast.errors import ParseError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileReport:
    """Outcome for one file: its issues, or the error that stopped it."""

    path: Path
    issues: list[Issue] = field(default_factory=list)
    error: Exception | None = None
    skipped: bool = False


def analyze_source(
    content: str,
    converter: ASTConverter,
    checks: Sequence[Check],
    filename: str = "input.slang",
) -> list[Issue]:
    """Parse *content* and run *checks* over it. ParseError propagates."""
    top = converter.parse(content, filename)
    return ChecksVisitor(checks).analyze(filename, content, top)


def analyze_files(
    paths: Iterable[str | Path], converter: ASTConverter, checks: Sequence[Check]
) -> list[FileReport]:
    """Analyze every file, continuing past any file that fails.

    The converter is terminated once, after the last file.
    """
    visitor = ChecksVisitor(checks)
    reports: list[FileReport] = []
    try:
        for path in paths:
            reports.append(_analyze_file(Path(path), converter, visitor))
    finally:
        converter.terminate()
    return reports


def _analyze_file(path: Path, converter: ASTConverter, visitor: ChecksVisitor) -> FileReport:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Unable to read file: %s. %s", path, exc)
        return FileReport(path, error=exc)

    if not content.strip():
        logger.debug("Skipping empty file: %s", path)
        return FileReport(path, skipped=True)

    try:
        top = converter.parse(content, str(path))
    except ParseError as exc:
        if exc.position is not None:
            logger.warning(
                "Unable to parse file: %s. Parse error at position %s:%s",
                path,
                exc.position.line,
                exc.position.line_offset,
            )
        else:
            logger.warning("Unable to parse file: %s. %s", path, exc.message)
        return FileReport(path, error=exc)
    except Exception as exc:
        logger.exception("Cannot analyse %s", path)
        return FileReport(path, error=exc)

    try:
        issues = visitor.analyze(str(path), content, top)
    except Exception as exc:
        logger.exception("Cannot analyse %s", path)
        return FileReport(path, error=exc)
    logger.debug("Analyzed %s: %d issue(s)", path, len(issues))
    return FileReport(path, issues)
