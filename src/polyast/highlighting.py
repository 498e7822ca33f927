"""Token-level views of a file: syntax highlighting and copy-paste detection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from polyast.ranges import TextRange
from polyast.tokens import Token, TokenType
from polyast.tree import IntegerLiteral, Literal, StringLiteral, TopLevel, Tree
from polyast.visitor import TreeContext, TreeVisitor


class HighlightKind(Enum):
    COMMENT = auto()
    KEYWORD = auto()
    STRING = auto()
    CONSTANT = auto()


@dataclass(frozen=True, slots=True)
class Highlight:
    text_range: TextRange
    kind: HighlightKind


@dataclass(frozen=True, slots=True)
class CpdToken:
    """One unit of duplicate detection: normalized text at a location."""

    text_range: TextRange
    image: str


class _HighlightVisitor(TreeVisitor[TreeContext]):
    def __init__(self) -> None:
        super().__init__()
        self.highlights: list[Highlight] = []
        self.register(TopLevel, self._top_level)
        self.register(StringLiteral, self._literal(HighlightKind.STRING))
        self.register(Literal, self._literal(HighlightKind.CONSTANT))
        self.register(IntegerLiteral, self._literal(HighlightKind.CONSTANT))

    def _top_level(self, ctx: TreeContext, node: Tree) -> None:
        assert isinstance(node, TopLevel)
        for comment in node.all_comments:
            self.highlights.append(Highlight(comment.text_range, HighlightKind.COMMENT))
        for token in node.metadata.tokens:
            if token.type == TokenType.KEYWORD:
                self.highlights.append(Highlight(token.text_range, HighlightKind.KEYWORD))

    def _literal(self, kind: HighlightKind):
        def callback(ctx: TreeContext, node: Tree) -> None:
            self.highlights.append(Highlight(node.text_range, kind))

        return callback


def highlight(top: TopLevel) -> list[Highlight]:
    """Return highlight ranges for a file, ordered by start position."""
    visitor = _HighlightVisitor()
    visitor.scan(TreeContext(), top)
    return sorted(visitor.highlights, key=lambda h: h.text_range.start)


def cpd_tokens(top: TopLevel) -> list[CpdToken]:
    """Return the token sequence fed to duplicate detection.

    Package and import declarations are skipped and string literals are
    normalized so that copies differing only in strings still match.
    """
    tokens: list[Token] = top.metadata.tokens
    if top.first_cpd_token is None:
        return []
    start = next(i for i, t in enumerate(tokens) if t is top.first_cpd_token)
    return [
        CpdToken(t.text_range, "LITERAL" if t.type == TokenType.STRING_LITERAL else t.text)
        for t in tokens[start:]
    ]
