"""Errors raised by ``penfilter`` command handlers."""

from __future__ import annotations

from typing import Mapping

__all__ = ["CliError", "EXIT_CODES"]

EXIT_CODES: Mapping[str, int] = {
    "runtime": 1,
    "usage": 2,
    "io": 3,
    "not_found": 4,
}


class CliError(RuntimeError):
    """Failure reported to the user; ``category`` selects the exit status."""

    def __init__(self, message: str, *, category: str = "runtime") -> None:
        if category not in EXIT_CODES:
            raise ValueError(f"Unknown CLI error category: {category!r}")
        super().__init__(message)
        self.category = category

    @property
    def status_code(self) -> int:
        return EXIT_CODES[self.category]
