"""Per-file index mapping text ranges onto the tokens and comments they contain."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from typing import Protocol, TypeVar

from polyast.ranges import TextPointer, TextRange
from polyast.tokens import Comment, Token, TokenType

NA_KIND = "NA_KIND"


class _HasRange(Protocol):
    @property
    def text_range(self) -> TextRange: ...


_T = TypeVar("_T", bound=_HasRange)


def _start_of(element: _HasRange) -> TextPointer:
    return element.text_range.start


def _first_index(sorted_list: Sequence[_HasRange], start: TextPointer) -> int:
    return bisect_left(sorted_list, start, key=_start_of)


def _elements_inside(sorted_list: list[_T], text_range: TextRange) -> list[_T]:
    result: list[_T] = []
    for element in sorted_list[_first_index(sorted_list, text_range.start) :]:
        if not element.text_range.is_inside(text_range):
            break
        result.append(element)
    return result


class TreeMetaDataProvider:
    """Holds every token and comment of one file, sorted by start position.

    Built once by a front end before any node is created; nodes then pull
    their metadata from it by range.
    """

    def __init__(self, comments: Sequence[Comment], tokens: Sequence[Token]) -> None:
        self._comments = sorted(comments, key=_start_of)
        self._tokens = sorted(tokens, key=_start_of)

    @property
    def all_comments(self) -> list[Comment]:
        return self._comments

    @property
    def all_tokens(self) -> list[Token]:
        return self._tokens

    def metadata(self, text_range: TextRange, original_kind: str = NA_KIND) -> TreeMetaData:
        return TreeMetaData(self, text_range, original_kind)

    def tokens(self, text_range: TextRange) -> list[Token]:
        return _elements_inside(self._tokens, text_range)

    def comments_inside(self, text_range: TextRange) -> list[Comment]:
        return _elements_inside(self._comments, text_range)

    def lines_of_code(self, text_range: TextRange) -> frozenset[int]:
        lines: set[int] = set()
        for token in self.tokens(text_range):
            lines.update(range(token.text_range.start.line, token.text_range.end.line + 1))
        return frozenset(lines)

    def keyword(self, text_range: TextRange) -> Token:
        """Return the single KEYWORD token inside *text_range*."""
        keywords = [t for t in self.tokens(text_range) if t.type == TokenType.KEYWORD]
        if len(keywords) != 1:
            raise ValueError(f"Cannot find single keyword in {text_range}")
        return keywords[0]

    def index_of_first_token(self, text_range: TextRange) -> int:
        """Index in all_tokens of the first token inside *text_range*, or -1."""
        index = _first_index(self._tokens, text_range.start)
        if index < len(self._tokens) and self._tokens[index].text_range.is_inside(text_range):
            return index
        return -1

    def first_token(self, text_range: TextRange) -> Token | None:
        index = self.index_of_first_token(text_range)
        return self._tokens[index] if index != -1 else None

    def previous_token(self, text_range: TextRange) -> Token | None:
        """Return the token just before the first token inside *text_range*."""
        index = self.index_of_first_token(text_range)
        return self._tokens[index - 1] if index > 0 else None

    def update_token_type(self, token: Token, new_type: TokenType) -> None:
        """Change the type of the registered token equal to *token*, in place."""
        index = _first_index(self._tokens, token.text_range.start)
        while index < len(self._tokens):
            candidate = self._tokens[index]
            if candidate.text_range.start != token.text_range.start:
                break
            if candidate.text_range == token.text_range and candidate.text == token.text:
                candidate.type = new_type
                return
            index += 1
        raise ValueError(f"token '{token.text}' not found in metadata, {token.text_range}")


class TreeMetaData:
    """Range-derived information about one node."""

    __slots__ = ("_provider", "text_range", "original_kind", "_lines_of_code")

    def __init__(
        self, provider: TreeMetaDataProvider, text_range: TextRange, original_kind: str = NA_KIND
    ) -> None:
        self._provider = provider
        self.text_range = text_range
        self.original_kind = original_kind
        self._lines_of_code: frozenset[int] | None = None

    @property
    def tokens(self) -> list[Token]:
        return self._provider.tokens(self.text_range)

    @property
    def comments_inside(self) -> list[Comment]:
        return self._provider.comments_inside(self.text_range)

    @property
    def lines_of_code(self) -> frozenset[int]:
        if self._lines_of_code is None:
            self._lines_of_code = self._provider.lines_of_code(self.text_range)
        return self._lines_of_code

    def __repr__(self) -> str:
        return f"TreeMetaData({self.text_range}, {self.original_kind!r})"
