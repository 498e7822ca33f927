"""Fixture-driven verification of a single check.

A fixture is a source file whose comments declare the issues a check must
raise::

    x == x;  // Noncompliant {{Correct one of the identical ...}}
    //   ^
    foo(a,
        a);  // Noncompliant@-1 [[secondary=+1]]
    // Noncompliant@0 {{whole-file message}}

``@+N``/``@-N`` shift the expected line, ``@N`` sets it (0 is the file
itself), ``{{...}}`` gives the exact message and ``[[secondary=...]]``
lists secondary lines, relative when signed. A comment made only of
carets pins the columns of the last issue expected on the line above.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from pathlib import Path

from polyast.checks import Check, ChecksVisitor, Issue
from polyast.converter import ASTConverter
from polyast.errors import VerificationError
from polyast.tokens import Comment
from polyast.tree import TopLevel

_NONCOMPLIANT = re.compile(
    r"^\s*Noncompliant(?:@(?P<line>[+-]?\d+))?"
    r"\s*(?:\{\{(?P<message>.*?)\}\})?"
    r"\s*(?:\[\[secondary=(?P<secondary>[^\]]*)\]\])?\s*$"
)
_CARETS = re.compile(r"^(?P<pad>\s*)(?P<carets>\^+)\s*$")


@dataclass(slots=True)
class _Expected:
    line: int
    message: str | None
    secondary_lines: tuple[int, ...] | None
    columns: tuple[int, int] | None = None


def _resolve_line(base: int, value: str) -> int:
    if value.startswith(("+", "-")):
        return base + int(value)
    return int(value)


def _parse_expectations(comments: list[Comment]) -> list[_Expected]:
    expected: list[_Expected] = []
    for comment in comments:
        content = comment.content_text
        comment_line = comment.text_range.start.line

        carets = _CARETS.match(content)
        if carets is not None:
            target_line = comment_line - 1
            candidates = [e for e in expected if e.line == target_line]
            if candidates:
                start = comment.content_range.start.line_offset + len(carets.group("pad"))
                candidates[-1].columns = (start, start + len(carets.group("carets")))
            continue

        match = _NONCOMPLIANT.match(content)
        if match is None:
            continue
        line = comment_line
        if match.group("line") is not None:
            line = _resolve_line(comment_line, match.group("line"))
        secondary = None
        if match.group("secondary") is not None:
            secondary = tuple(
                sorted(
                    _resolve_line(line, item.strip())
                    for item in match.group("secondary").split(",")
                    if item.strip()
                )
            )
        expected.append(_Expected(line, match.group("message"), secondary))
    return expected


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render(
    line: int,
    message: str | None,
    secondary_lines: tuple[int, ...] | None,
    columns: tuple[int, int] | None,
) -> str:
    text = f"{line:03d}: Noncompliant"
    if message is not None:
        text += f" {{{{{message}}}}}"
    if columns is not None:
        text += f" [[sc={columns[0] + 1};ec={columns[1]}]]"
    if secondary_lines:
        text += f" [[secondary={','.join(str(n) for n in secondary_lines)}]]"
    return text


def _issue_line(issue: Issue) -> int:
    return 0 if issue.text_range is None else issue.text_range.start.line


def _facets(issue: Issue) -> tuple[tuple[int, ...], tuple[int, int] | None]:
    secondary = tuple(sorted(loc.text_range.start.line for loc in issue.secondary_locations))
    columns = None
    if issue.text_range is not None and issue.text_range.start.line == issue.text_range.end.line:
        columns = (issue.text_range.start.line_offset, issue.text_range.end.line_offset)
    return secondary, columns


def _accepts(expected: _Expected, issue: Issue) -> bool:
    secondary, columns = _facets(issue)
    if expected.message is not None and expected.message != issue.message:
        return False
    if expected.secondary_lines is not None and expected.secondary_lines != secondary:
        return False
    return expected.columns is None or expected.columns == columns


def _render_actual(issue: Issue, template: _Expected | None) -> str:
    """Render an actual issue showing only the facets its expectation declares."""
    secondary, columns = _facets(issue)
    if template is None:
        return _render(_issue_line(issue), issue.message, secondary or None, None)
    return _render(
        _issue_line(issue),
        issue.message if template.message is not None else None,
        secondary if template.secondary_lines is not None else None,
        columns if template.columns is not None else None,
    )


def _pair(on_line: list[_Expected], issues: list[Issue]) -> dict[int, int]:
    """Match expectations to issues they accept, as many as possible.

    Returns expectation index -> issue index. Augmenting paths let a later
    expectation take over an issue when the earlier one has an alternative.
    """
    owner: dict[int, int] = {}

    def claim(k: int, seen: set[int]) -> bool:
        for j, issue in enumerate(issues):
            if j in seen or not _accepts(on_line[k], issue):
                continue
            seen.add(j)
            if j not in owner or claim(owner[j], seen):
                owner[j] = k
                return True
        return False

    for k in range(len(on_line)):
        claim(k, set())
    return {k: j for j, k in owner.items()}


def _render_all(expected: list[_Expected], actual: list[Issue]) -> tuple[list[str], list[str]]:
    lines = sorted({e.line for e in expected} | {_issue_line(i) for i in actual})
    expected_text: list[str] = []
    actual_text: list[str] = []
    for line in lines:
        on_line = [e for e in expected if e.line == line]
        issues = sorted(
            (i for i in actual if _issue_line(i) == line),
            key=lambda i: i.text_range.start.line_offset if i.text_range else -1,
        )
        expected_text.extend(
            _render(e.line, e.message, e.secondary_lines, e.columns) for e in on_line
        )

        # Matched issues are rendered in annotation order, so the order of
        # annotations on a line does not matter.
        paired = _pair(on_line, issues)
        actual_text.extend(
            _render_actual(issues[paired[k]], e) for k, e in enumerate(on_line) if k in paired
        )
        free = [e for k, e in enumerate(on_line) if k not in paired]
        taken = set(paired.values())
        unpaired = [issue for j, issue in enumerate(issues) if j not in taken]
        for index, issue in enumerate(unpaired):
            template = free[index] if index < len(free) else None
            actual_text.append(_render_actual(issue, template))
    return expected_text, actual_text


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def _analyze(converter: ASTConverter, path: Path, check: Check) -> tuple[TopLevel, list[Issue]]:
    content = Path(path).read_text(encoding="utf-8")
    top = converter.parse(content, str(path))
    issues = ChecksVisitor([check]).analyze(str(path), content, top)
    return top, issues


def verify(converter: ASTConverter, path: str | Path, check: Check) -> None:
    """Assert that *check* raises exactly the issues annotated in the fixture."""
    path = Path(path)
    top, issues = _analyze(converter, path, check)
    expected = _parse_expectations(list(top.all_comments))
    if not expected:
        raise VerificationError(
            "ERROR: 'verify()' is called but there's no 'Noncompliant' comments. "
            f"In file ({path.name}:1)"
        )
    _compare(path, expected, issues)


def verify_no_issue(converter: ASTConverter, path: str | Path, check: Check) -> None:
    """Assert that the fixture has no annotations and *check* raises nothing."""
    path = Path(path)
    top, issues = _analyze(converter, path, check)
    expected = _parse_expectations(list(top.all_comments))
    if expected:
        first = min(e.line for e in expected)
        raise VerificationError(
            "ERROR: 'verify_no_issue()' is called but there's some 'Noncompliant' comments. "
            f"In file ({path.name}:{first})"
        )
    _compare(path, expected, issues)


def _compare(path: Path, expected: list[_Expected], issues: list[Issue]) -> None:
    expected_text, actual_text = _render_all(expected, issues)
    if expected_text == actual_text:
        return
    diff = [
        line
        for line in difflib.ndiff(expected_text, actual_text)
        if not line.startswith("? ")
    ]
    raise VerificationError(
        f"ERROR: Unexpected issues in file ({path.name})\n"
        "(- expected, + actual)\n" + "\n".join(diff)
    )
