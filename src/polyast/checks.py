"""Check API and the visitor that runs a set of checks over one file."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar, cast

from polyast.ranges import TextPointer, TextRange
from polyast.tree import NativeKind, Tree
from polyast.visitor import TreeContext, TreeVisitor

T = TypeVar("T", bound=Tree)


@dataclass(frozen=True, slots=True)
class SecondaryLocation:
    """Additional location attached to an issue, with an optional message."""

    text_range: TextRange
    message: str | None = None

    @classmethod
    def of(cls, node: Tree, message: str | None = None) -> SecondaryLocation:
        return cls(node.text_range, message)


@dataclass(frozen=True, slots=True)
class Issue:
    """A finding reported by a check; ``text_range`` is None for file issues."""

    rule_key: str
    message: str
    text_range: TextRange | None
    secondary_locations: tuple[SecondaryLocation, ...] = ()
    gap: float | None = None


class InitContext(Protocol):
    def register(
        self, target: type[T] | NativeKind, callback: Callable[[CheckContext, T], None]
    ) -> None: ...


class CheckContext(Protocol):
    @property
    def ancestors(self) -> list[Tree]: ...

    def parent(self) -> Tree | None: ...

    @property
    def filename(self) -> str: ...

    @property
    def file_content(self) -> str: ...

    def report_issue(
        self,
        location: Tree | TextRange,
        message: str,
        secondary_locations: SecondaryLocation | Sequence[SecondaryLocation] = (),
        gap: float | None = None,
    ) -> None: ...

    def report_file_issue(self, message: str, gap: float | None = None) -> None: ...


class Check(Protocol):
    """A check registers callbacks for the node kinds it cares about."""

    def initialize(self, init: InitContext) -> None: ...


def rule_key(check: object) -> str:
    """Key a check's issues are reported under: ``check.key`` or the class name."""
    return getattr(check, "key", None) or type(check).__name__


class FileContext(TreeContext):
    """Walk state shared by every check while one file is analyzed."""

    def __init__(self, filename: str, file_content: str) -> None:
        super().__init__()
        self.filename = filename
        self.file_content = file_content
        self.issues: list[tuple[int, Issue]] = []


class _CheckAdapter:
    """Per-check view of the shared FileContext, used at init and at report time."""

    def __init__(self, visitor: ChecksVisitor, index: int, key: str) -> None:
        self._visitor = visitor
        self._index = index
        self._key = key
        self._ctx: FileContext | None = None

    # InitContext

    def register(
        self, target: type[T] | NativeKind, callback: Callable[[CheckContext, T], None]
    ) -> None:
        def dispatch(ctx: FileContext, node: Tree) -> None:
            self._ctx = ctx
            callback(self, cast(T, node))

        self._visitor.register(target, dispatch)

    # CheckContext

    @property
    def _file(self) -> FileContext:
        if self._ctx is None:
            raise RuntimeError(f"check '{self._key}' is not running")
        return self._ctx

    @property
    def ancestors(self) -> list[Tree]:
        return self._file.ancestors

    def parent(self) -> Tree | None:
        return self._file.parent()

    @property
    def filename(self) -> str:
        return self._file.filename

    @property
    def file_content(self) -> str:
        return self._file.file_content

    def report_issue(
        self,
        location: Tree | TextRange,
        message: str,
        secondary_locations: SecondaryLocation | Sequence[SecondaryLocation] = (),
        gap: float | None = None,
    ) -> None:
        text_range = location if isinstance(location, TextRange) else location.text_range
        if isinstance(secondary_locations, SecondaryLocation):
            secondary_locations = (secondary_locations,)
        self._add(Issue(self._key, message, text_range, tuple(secondary_locations), gap))

    def report_file_issue(self, message: str, gap: float | None = None) -> None:
        self._add(Issue(self._key, message, None, (), gap))

    def _add(self, issue: Issue) -> None:
        self._file.issues.append((self._index, issue))


_FILE_START = TextPointer(0, 0)


def _issue_order(entry: tuple[int, Issue]) -> tuple[int, int, TextPointer]:
    index, issue = entry
    if issue.text_range is None:
        return index, 0, _FILE_START
    return index, 1, issue.text_range.start


class ChecksVisitor(TreeVisitor[FileContext]):
    """Run every check over a tree in a single walk.

    Issues come back grouped by check in registration order, file-level
    issues first, then by primary location; ties keep reporting order.
    """

    def __init__(self, checks: Sequence[Check]) -> None:
        super().__init__()
        self.checks = list(checks)
        for index, check in enumerate(self.checks):
            check.initialize(_CheckAdapter(self, index, rule_key(check)))

    def analyze(self, filename: str, file_content: str, root: Tree) -> list[Issue]:
        ctx = FileContext(filename, file_content)
        self.scan(ctx, root)
        return [issue for _, issue in sorted(ctx.issues, key=_issue_order)]
