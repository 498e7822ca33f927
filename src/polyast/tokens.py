"""Token and comment primitives produced by front ends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from polyast.ranges import TextRange


class TokenType(Enum):
    KEYWORD = auto()  # reserved word of the source language
    STRING_LITERAL = auto()  # "..." including quotes
    OTHER = auto()  # identifiers, numbers, punctuation


@dataclass(slots=True)
class Token:
    """A single source token.

    Tokens compare by value. ``type`` is the only attribute that changes after
    construction, and only through TreeMetaDataProvider.update_token_type, so
    every node holding the token observes the update.
    """

    text_range: TextRange
    text: str
    type: TokenType


@dataclass(frozen=True, slots=True)
class Comment:
    """A source comment, with and without its delimiters."""

    text: str
    content_text: str
    text_range: TextRange
    content_range: TextRange
