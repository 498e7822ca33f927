"""SLang lexer: converts source text into tokens and comments."""

from __future__ import annotations

from polyast.errors import ParseError
from polyast.ranges import TextPointer, TextRange, range_of_text
from polyast.tokens import Comment, Token, TokenType

KEYWORDS = frozenset(
    {
        "break",
        "catch",
        "class",
        "continue",
        "do",
        "else",
        "finally",
        "for",
        "fun",
        "if",
        "import",
        "match",
        "native",
        "package",
        "private",
        "public",
        "return",
        "throw",
        "try",
        "val",
        "var",
        "while",
    }
)

# Longest first so that "+=" wins over "+".
_OPERATORS = (
    "&&",
    "||",
    "==",
    "!=",
    "<=",
    ">=",
    "+=",
    "-=",
    "*=",
    "%=",
    "->",
    "+",
    "-",
    "*",
    "/",
    "%",
    "<",
    ">",
    "=",
    "!",
    "(",
    ")",
    "{",
    "}",
    "[",
    "]",
    ";",
    ",",
    ".",
    ":",
)


def is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class Lexer:
    """Tokenize SLang source into Token and Comment lists."""

    def __init__(self, source: str, filename: str | None = None) -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._offset = 0
        self._tokens: list[Token] = []
        self._comments: list[Comment] = []

    def tokenize(self) -> tuple[list[Token], list[Comment]]:
        """Tokenize the full source, returning (tokens, comments)."""
        while self._pos < len(self._source):
            ch = self._peek()
            if ch in " \t\r\n\f":
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                self._lex_line_comment()
            elif ch == "/" and self._peek(1) == "*":
                self._lex_block_comment()
            elif ch == '"':
                self._lex_string()
            elif ch.isdigit():
                self._lex_word(TokenType.OTHER)
            elif is_identifier_start(ch):
                self._lex_word(None)
            else:
                self._lex_operator()
        return self._tokens, self._comments

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> TextPointer:
        return TextPointer(self._line, self._offset)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._offset = 0
        else:
            self._offset += 1
        return ch

    def _emit(self, text: str, tt: TokenType, start: TextPointer) -> Token:
        token = Token(TextRange(start, self._current_pos()), text, tt)
        self._tokens.append(token)
        return token

    def _error(self, message: str, pos: TextPointer | None = None) -> ParseError:
        if pos is None:
            pos = self._current_pos()
        return ParseError(message, pos, self._source, self._filename)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def _lex_line_comment(self) -> None:
        start = self._current_pos()
        begin = self._pos
        while self._pos < len(self._source) and self._peek() not in "\r\n":
            self._advance()
        text = self._source[begin : self._pos]
        content_start = TextPointer(start.line, start.line_offset + 2)
        self._comments.append(
            Comment(
                text,
                text[2:],
                TextRange(start, self._current_pos()),
                TextRange(content_start, self._current_pos()),
            )
        )

    def _lex_block_comment(self) -> None:
        start = self._current_pos()
        begin = self._pos
        self._advance()
        self._advance()
        while not (self._peek() == "*" and self._peek(1) == "/"):
            if self._pos >= len(self._source):
                raise self._error("unterminated comment", start)
            self._advance()
        self._advance()
        self._advance()
        text = self._source[begin : self._pos]
        content = text[2:-2]
        content_range = range_of_text(start.line, start.line_offset + 2, content)
        self._comments.append(
            Comment(text, content, TextRange(start, self._current_pos()), content_range)
        )

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def _lex_string(self) -> None:
        start = self._current_pos()
        begin = self._pos
        self._advance()  # opening "
        while True:
            ch = self._peek()
            if ch == "" or ch in "\r\n":
                raise self._error("unterminated string literal", start)
            self._advance()
            if ch == "\\" and self._peek() not in ("", "\r", "\n"):
                self._advance()
            elif ch == '"':
                break
        self._emit(self._source[begin : self._pos], TokenType.STRING_LITERAL, start)

    def _lex_word(self, tt: TokenType | None) -> None:
        start = self._current_pos()
        begin = self._pos
        while self._pos < len(self._source) and is_identifier_char(self._peek()):
            self._advance()
        text = self._source[begin : self._pos]
        if tt is None:
            tt = TokenType.KEYWORD if text in KEYWORDS else TokenType.OTHER
        self._emit(text, tt, start)

    def _lex_operator(self) -> None:
        start = self._current_pos()
        for op in _OPERATORS:
            if self._source.startswith(op, self._pos):
                for _ in op:
                    self._advance()
                self._emit(op, TokenType.OTHER, start)
                return
        raise self._error(f"unexpected character {self._peek()!r}")


def tokenize(source: str, filename: str | None = None) -> tuple[list[Token], list[Comment]]:
    """Convenience function: tokenize SLang source text."""
    return Lexer(source, filename).tokenize()
