"""Tokenizer for channel formulas."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List

from .errors import ParseError

__all__ = ["Token", "TokenKind", "tokenize"]


class TokenKind:
    NUMBER = "number"
    NAME = "name"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    END = "end"


_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<operator>[-+*/^])
    | (?P<lparen>\()
    | (?P<rparen>\))
    | (?P<comma>,)
    """,
    re.VERBOSE,
)

_GROUP_KINDS = {
    "number": TokenKind.NUMBER,
    "name": TokenKind.NAME,
    "operator": TokenKind.OPERATOR,
    "lparen": TokenKind.LPAREN,
    "rparen": TokenKind.RPAREN,
    "comma": TokenKind.COMMA,
}


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    text: str
    position: int


def _iter_tokens(formula: str) -> Iterator[Token]:
    offset = 0
    length = len(formula)
    while offset < length:
        match = _TOKEN_PATTERN.match(formula, offset)
        if match is None:
            raise ParseError(
                f"unexpected character {formula[offset]!r}", position=offset
            )
        group = match.lastgroup
        if group != "space":
            yield Token(_GROUP_KINDS[group], match.group(), offset)  # type: ignore[index]
        offset = match.end()
    yield Token(TokenKind.END, "", length)


def tokenize(formula: str) -> List[Token]:
    """Split ``formula`` into tokens terminated by an ``END`` token."""

    return list(_iter_tokens(formula))
