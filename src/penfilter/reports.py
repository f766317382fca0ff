"""Report model shared by the input and output side of the stage.

A :class:`DeviceReport` carries each capability as an optional field, so one
report can simultaneously be a position/pressure report, a tilt report and a
proximity report.  Capability checks are plain presence checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

__all__ = [
    "DeviceExtents",
    "DeviceReport",
    "FixedExtents",
    "OutOfRangeReport",
    "Vector2",
]

Vector2 = Tuple[float, float]


@dataclass(slots=True)
class DeviceReport:
    """Mutable report whose fields are rewritten in place by the stage."""

    position: Vector2 | None = None
    pressure: int | None = None
    tilt: Vector2 | None = None
    hover_distance: int | None = None

    @property
    def has_position(self) -> bool:
        """``True`` when the report carries both position and pressure."""

        return self.position is not None and self.pressure is not None

    @property
    def has_tilt(self) -> bool:
        return self.tilt is not None

    @property
    def has_proximity(self) -> bool:
        return self.hover_distance is not None

    @property
    def has_capabilities(self) -> bool:
        return self.has_position or self.has_tilt or self.has_proximity


@dataclass(frozen=True, slots=True)
class OutOfRangeReport:
    """Marker emitted when the pen leaves the sensing range."""


@dataclass(frozen=True, slots=True)
class DeviceExtents:
    """Maximum coordinates and pressure reported by the active device."""

    max_x: float = 0.0
    max_y: float = 0.0
    max_pressure: float = 0.0


class FixedExtents:
    """Extents provider returning the same :class:`DeviceExtents` every time."""

    __slots__ = ("_extents",)

    def __init__(self, extents: DeviceExtents | None = None) -> None:
        self._extents = extents or DeviceExtents()

    def device_extents(self) -> DeviceExtents:
        return self._extents
