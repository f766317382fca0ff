"""Exceptions raised while turning formulas into callables."""

from __future__ import annotations

__all__ = ["ParseError", "CompileError"]


class ParseError(ValueError):
    """Raised when a formula is not a well-formed arithmetic expression."""

    __slots__ = ("position",)

    def __init__(self, message: str, *, position: int | None = None) -> None:
        if position is not None:
            message = f"{message} at offset {position}"
        super().__init__(message)
        self.position = position


class CompileError(ParseError):
    """Raised when a parsed formula cannot be bound to the variable vocabulary."""
