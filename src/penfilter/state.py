"""Per-stage memory of the previous report and its computed outputs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from .interfaces import Clock
from .reports import Vector2

__all__ = ["ComputedSample", "RawSample", "StateTracker"]

logger = logging.getLogger(__name__)

_ZERO: Vector2 = (0.0, 0.0)


@dataclass(frozen=True, slots=True)
class RawSample:
    """Raw report values; ``None`` marks a capability the report lacks."""

    position: Vector2 | None = None
    pressure: int | None = None
    tilt: Vector2 | None = None
    hover_distance: int | None = None


@dataclass(frozen=True, slots=True)
class ComputedSample:
    """Values written back by the stage for position/pressure reports."""

    position: Vector2 | None = None
    pressure: int | None = None


class StateTracker:
    """Track the last raw sample, last computed output and reset timing.

    Parameters
    ----------
    reset_timeout_ms:
        Gap between reports after which history is discarded.  Negative
        values disable resets, ``0`` resets on every report.
    clock:
        Monotonic clock in seconds.  The first report is measured against the
        moment the tracker was created.
    """

    __slots__ = (
        "reset_timeout_ms",
        "_clock",
        "_last_observed",
        "last_raw_position",
        "last_raw_pressure",
        "last_raw_tilt",
        "last_raw_hover_distance",
        "last_computed_position",
        "last_computed_pressure",
    )

    def __init__(self, reset_timeout_ms: int = -1, *, clock: Clock = time.monotonic) -> None:
        self.reset_timeout_ms = int(reset_timeout_ms)
        self._clock = clock
        self._last_observed = clock()
        self.last_raw_position: Vector2 = _ZERO
        self.last_raw_pressure = 0
        self.last_raw_tilt: Vector2 = _ZERO
        self.last_raw_hover_distance = 0
        self.last_computed_position: Vector2 = _ZERO
        self.last_computed_pressure = 0

    def reset(self) -> None:
        """Return every tracked value to zero."""

        self.last_raw_position = _ZERO
        self.last_raw_pressure = 0
        self.last_raw_tilt = _ZERO
        self.last_raw_hover_distance = 0
        self.last_computed_position = _ZERO
        self.last_computed_pressure = 0

    def should_reset(self, elapsed_ms: float) -> bool:
        timeout = self.reset_timeout_ms
        if timeout < 0:
            return False
        return elapsed_ms >= timeout

    def observe_and_maybe_reset(self, current: RawSample, now: float | None = None) -> bool:
        """Record a report arrival and apply the reset policy.

        On reset the raw history restarts from ``current`` while the computed
        history restarts from zero.  Returns whether a reset happened.
        """

        if now is None:
            now = self._clock()
        elapsed_ms = (now - self._last_observed) * 1000.0
        self._last_observed = now
        if not self.should_reset(elapsed_ms):
            return False

        self.last_raw_position = current.position or _ZERO
        self.last_raw_pressure = current.pressure or 0
        self.last_raw_tilt = current.tilt or _ZERO
        self.last_raw_hover_distance = current.hover_distance or 0
        self.last_computed_position = _ZERO
        self.last_computed_pressure = 0
        logger.debug(
            "Reset filter state after %.1f ms",
            elapsed_ms,
            extra={"event": "state.reset", "elapsed_ms": elapsed_ms},
        )
        return True

    def update(self, raw: RawSample, computed: ComputedSample) -> None:
        """Make ``raw`` and ``computed`` the history for the next report.

        Capabilities missing from the report keep their previous values.
        """

        if raw.position is not None:
            self.last_raw_position = raw.position
        if raw.pressure is not None:
            self.last_raw_pressure = raw.pressure
        if raw.tilt is not None:
            self.last_raw_tilt = raw.tilt
        if raw.hover_distance is not None:
            self.last_raw_hover_distance = raw.hover_distance
        if computed.position is not None:
            self.last_computed_position = computed.position
        if computed.pressure is not None:
            self.last_computed_pressure = computed.pressure
