"""Shared test fixtures and helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from polyast.lexer import tokenize
from polyast.parser import SLangConverter, parse
from polyast.ranges import TextRange
from polyast.tokens import Token, TokenType
from polyast.tree import TopLevel, Tree

RESOURCES = Path(__file__).parent / "resources"


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns the tokens only."""

    def _lex(source: str) -> list[Token]:
        tokens, _ = tokenize(source)
        return tokens

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a TopLevel."""

    def _parse(source: str, filename: str = "test.slang") -> TopLevel:
        return parse(source, filename)

    return _parse


@pytest.fixture
def converter() -> SLangConverter:
    """A converter that also validates every tree it builds."""
    return SLangConverter(validate=True)


def rng(start_line: int, start_offset: int, end_line: int, end_offset: int) -> TextRange:
    return TextRange.of(start_line, start_offset, end_line, end_offset)


def tok(
    start_line: int,
    start_offset: int,
    end_line: int,
    end_offset: int,
    text: str,
    tt: TokenType = TokenType.OTHER,
) -> Token:
    return Token(rng(start_line, start_offset, end_line, end_offset), text, tt)


def first_expression(source: str) -> Tree:
    """Parse a single statement and return it."""
    top = parse(source)
    assert len(top.declarations) == 1, f"expected one declaration, got {top.declarations}"
    return top.declarations[0]


def assert_texts(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token texts match the expected list."""
    actual = [t.text for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"
