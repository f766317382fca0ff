"""Casting rules applied when computed values are written back to reports."""

from __future__ import annotations

import math

__all__ = ["UINT32_MAX", "saturate_uint"]

UINT32_MAX = 2**32 - 1


def saturate_uint(value: float, maximum: int = UINT32_MAX) -> int:
    """Convert ``value`` to an unsigned integer in ``[0, maximum]``.

    ``NaN`` maps to ``0``, values at or below zero map to ``0``, values at or
    above ``maximum`` (``+inf`` included) map to ``maximum`` and everything in
    between is truncated toward zero.
    """

    if math.isnan(value) or value <= 0.0:
        return 0
    if value >= maximum:
        return maximum
    return int(value)
