"""Recursive-descent parser producing an immutable expression tree.

Grammar, lowest precedence first::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("+" | "-") unary | power
    power      := primary ("^" unary)?
    primary    := NUMBER | NAME | NAME "(" arguments ")" | "(" expression ")"
    arguments  := expression ("," expression)*

``^`` is right associative and binds tighter than a leading sign, so
``-x^2`` reads as ``-(x^2)`` while ``x^-1`` is still accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union

from .errors import ParseError
from .lexer import Token, TokenKind, tokenize

__all__ = [
    "BinaryOp",
    "Call",
    "Node",
    "Number",
    "UnaryOp",
    "Variable",
    "parse",
]


@dataclass(frozen=True, slots=True)
class Number:
    value: float


@dataclass(frozen=True, slots=True)
class Variable:
    name: str
    position: int


@dataclass(frozen=True, slots=True)
class UnaryOp:
    operator: str
    operand: "Node"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    operator: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    arguments: Tuple["Node", ...]
    position: int


Node = Union[Number, Variable, UnaryOp, BinaryOp, Call]


class _Parser:
    def __init__(self, tokens: List[Token]) -> None:
        self._tokens = tokens
        self._index = 0

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != TokenKind.END:
            self._index += 1
        return token

    def _accept_operator(self, *symbols: str) -> Token | None:
        token = self._current
        if token.kind == TokenKind.OPERATOR and token.text in symbols:
            return self._advance()
        return None

    def _expect(self, kind: str) -> Token:
        token = self._current
        if token.kind != kind:
            raise ParseError(f"expected {kind!r}, found {_describe(token)}", position=token.position)
        return self._advance()

    def parse(self) -> Node:
        node = self._expression()
        token = self._current
        if token.kind != TokenKind.END:
            raise ParseError(f"unexpected {_describe(token)}", position=token.position)
        return node

    def _expression(self) -> Node:
        node = self._term()
        while True:
            token = self._accept_operator("+", "-")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._term())

    def _term(self) -> Node:
        node = self._unary()
        while True:
            token = self._accept_operator("*", "/")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._unary())

    def _unary(self) -> Node:
        token = self._accept_operator("+", "-")
        if token is not None:
            return UnaryOp(token.text, self._unary())
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._accept_operator("^") is not None:
            return BinaryOp("^", base, self._unary())
        return base

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == TokenKind.NUMBER:
            return Number(float(token.text))
        if token.kind == TokenKind.NAME:
            if self._current.kind == TokenKind.LPAREN:
                self._advance()
                return Call(token.text, self._arguments(), token.position)
            return Variable(token.text, token.position)
        if token.kind == TokenKind.LPAREN:
            node = self._expression()
            self._expect(TokenKind.RPAREN)
            return node
        raise ParseError(f"unexpected {_describe(token)}", position=token.position)

    def _arguments(self) -> Tuple[Node, ...]:
        if self._current.kind == TokenKind.RPAREN:
            self._advance()
            return ()
        arguments = [self._expression()]
        while self._current.kind == TokenKind.COMMA:
            self._advance()
            arguments.append(self._expression())
        self._expect(TokenKind.RPAREN)
        return tuple(arguments)


def _describe(token: Token) -> str:
    if token.kind == TokenKind.END:
        return "end of formula"
    return repr(token.text)


def parse(formula: str) -> Node:
    """Parse ``formula`` into an expression tree.

    Raises
    ------
    ParseError
        If the formula is empty, contains unknown characters, has unbalanced
        parentheses or operators, or nests deeper than the interpreter allows.
    """

    if not isinstance(formula, str):
        raise ParseError(f"formula must be a string, not {type(formula).__name__}")
    if not formula.strip():
        raise ParseError("formula is empty")
    tokens = tokenize(formula)
    try:
        return _Parser(tokens).parse()
    except RecursionError:
        raise ParseError("formula is nested too deeply") from None
