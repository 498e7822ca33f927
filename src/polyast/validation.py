"""Consistency checks between a tree, its tokens, and the source it came from.

Front ends use these in tests to prove that every token lands in exactly
one node and that the tokens and comments rebuild the original file.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from polyast.errors import ParseError
from polyast.ranges import TextPointer, TextRange
from polyast.tokens import Comment, Token
from polyast.tree import Tree

TokenPredicate = Callable[[Token], bool]


@dataclass(slots=True)
class ValidationRules:
    """Which tokens each node class may own directly, built fluently."""

    predicates: dict[type[Tree], TokenPredicate] = field(default_factory=dict)
    overflow: set[tuple[type[Tree], type[Tree]]] = field(default_factory=set)

    def pattern_for(self, regex: str, *kinds: type[Tree]) -> ValidationRules:
        pattern = re.compile(regex)
        return self._accept(lambda token: pattern.fullmatch(token.text) is not None, kinds)

    def any_for(self, *kinds: type[Tree]) -> ValidationRules:
        return self._accept(lambda token: True, kinds)

    def allow_overflow(self, parent: type[Tree], child: type[Tree]) -> ValidationRules:
        """Let *child* nodes extend past the range of a *parent* node."""
        self.overflow.add((parent, child))
        return self

    def _accept(self, predicate: TokenPredicate, kinds: tuple[type[Tree], ...]) -> ValidationRules:
        for kind in kinds:
            self.predicates[kind] = predicate
        return self


def validate_tree(tree: Tree, source: str, rules: ValidationRules) -> None:
    """Raise ParseError unless *tree* is consistent with *source* under *rules*."""
    _assert_tokens_match_source(tree, source)
    _assert_tree_accepts_child_tokens(tree, rules)


# ---------------------------------------------------------------------------
# Token ownership
# ---------------------------------------------------------------------------


def _assert_tree_accepts_child_tokens(tree: Tree, rules: ValidationRules) -> None:
    # Tokens are compared by identity: the provider hands out the same objects.
    remaining = {id(t): t for t in tree.metadata.tokens}
    for child in tree.children():
        overflow = (type(tree), type(child)) in rules.overflow
        if not overflow and not child.text_range.is_inside(tree.text_range):
            raise ParseError(
                f"{type(child).__name__} {child.text_range} is outside of "
                f"{type(tree).__name__} {tree.text_range}",
                child.text_range.start,
            )
        for token in child.metadata.tokens:
            if remaining.pop(id(token), None) is None and not overflow:
                raise ParseError(
                    f"Token '{token.text}' missing from parent tokens or already used by another child.",
                    token.text_range.start,
                )
        _assert_tree_accepts_child_tokens(child, rules)

    predicate = rules.predicates.get(type(tree))
    unexpected = [t for t in remaining.values() if predicate is None or not predicate(t)]
    if unexpected:
        unexpected.sort(key=lambda t: t.text_range.start)
        texts = "', '".join(t.text for t in unexpected)
        raise ParseError(
            f"Token(s) '{texts}' unexpected in {type(tree).__name__}", tree.text_range.start
        )


# ---------------------------------------------------------------------------
# Source reconstruction
# ---------------------------------------------------------------------------


class _CodeBuilder:
    """Lay tokens and comments out at their ranges to rebuild source text."""

    def __init__(self, comments: list[Comment]) -> None:
        self._parts: list[str] = []
        self._comments = comments
        self._next_comment = 0
        self._line = 1
        self._offset = 0

    def add_token(self, token: Token) -> None:
        while (
            self._next_comment < len(self._comments)
            and self._comments[self._next_comment].text_range.start < token.text_range.start
        ):
            comment = self._comments[self._next_comment]
            self._add_text(comment.text, comment.text_range)
            self._next_comment += 1
        self._add_text(token.text, token.text_range)

    def add_remaining_comments(self) -> None:
        for comment in self._comments[self._next_comment :]:
            self._add_text(comment.text, comment.text_range)
        self._next_comment = len(self._comments)

    def _add_text(self, text: str, text_range: TextRange) -> None:
        if self._line < text_range.start.line:
            self._parts.append("\n" * (text_range.start.line - self._line))
            self._line = text_range.start.line
            self._offset = 0
        if self._offset < text_range.start.line_offset:
            self._parts.append(" " * (text_range.start.line_offset - self._offset))
        self._parts.append(text)
        self._line = text_range.end.line
        self._offset = text_range.end.line_offset

    def code(self) -> str:
        return "".join(self._parts)


_TRAILING_BLANKS = re.compile(r"[\r\n ]+$")
_LINE_BREAK = re.compile(r" *(?:\r\n|\n|\r)")


def _lines(code: str) -> list[str]:
    return _LINE_BREAK.split(_TRAILING_BLANKS.sub("", code.replace("\t", " "), count=1))


def _assert_tokens_match_source(tree: Tree, source: str) -> None:
    builder = _CodeBuilder(tree.metadata.comments_inside)
    for token in tree.metadata.tokens:
        builder.add_token(token)
    builder.add_remaining_comments()

    actual = _lines(builder.code())
    expected = _lines(source)
    for index, (actual_line, expected_line) in enumerate(zip(actual, expected)):
        if actual_line != expected_line:
            raise ParseError(
                f"Unexpected AST difference at line: {index + 1}\n"
                f"Actual   : {actual_line}\n"
                f"Expected : {expected_line}\n",
                TextPointer(index + 1, 0),
            )
    if len(actual) != len(expected):
        raise ParseError(
            f"Unexpected AST number of lines actual: {len(actual)}, expected: {len(expected)}"
        )
