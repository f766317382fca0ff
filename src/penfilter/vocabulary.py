"""The fixed, ordered set of variables every channel formula can reference.

The order of :data:`VARIABLES` is the binding contract between compiled
formulas and the vectors they are evaluated on: a formula resolves ``mx`` to
slot 12 when compiled and reads slot 12 on every call.  :class:`VariableVector`
is the only place that writes those slots.
"""

from __future__ import annotations

from typing import Mapping

import numpy as np

__all__ = [
    "DESCRIPTIONS",
    "VARIABLES",
    "VARIABLE_INDEX",
    "VariableVector",
    "describe_variables",
]

VARIABLES: tuple[str, ...] = (
    "x",
    "y",
    "p",
    "tx",
    "ty",
    "d",
    "lx",
    "ly",
    "lp",
    "ltx",
    "lty",
    "ld",
    "mx",
    "my",
    "mp",
    "cx",
    "cy",
    "cp",
)

VARIABLE_INDEX: Mapping[str, int] = {name: index for index, name in enumerate(VARIABLES)}

DESCRIPTIONS: Mapping[str, str] = {
    "x": "The X coordinate",
    "y": "The Y coordinate",
    "p": "The pressure",
    "tx": "The tilt X component",
    "ty": "The tilt Y component",
    "d": "The hover distance",
    "lx": "The last X coordinate",
    "ly": "The last Y coordinate",
    "lp": "The last pressure",
    "ltx": "The last tilt X component",
    "lty": "The last tilt Y component",
    "ld": "The last hover distance",
    "mx": "Max X coordinate",
    "my": "Max Y coordinate",
    "mp": "Max pressure",
    "cx": "Last computed X coordinate",
    "cy": "Last computed Y coordinate",
    "cp": "Last computed pressure",
}


def describe_variables() -> str:
    """Return the ``name = description`` listing shown to users editing formulas."""

    return "\n".join(f"{name} = {DESCRIPTIONS[name]}" for name in VARIABLES)


_X, _Y, _P, _TX, _TY, _D = range(6)
_LX, _LY, _LP, _LTX, _LTY, _LD = range(6, 12)
_MX, _MY, _MP = range(12, 15)
_CX, _CY, _CP = range(15, 18)


class VariableVector:
    """Reusable ``complex128`` buffer holding one evaluation's inputs.

    The buffer is allocated once and overwritten in place for every report.
    Compiled functions receive :attr:`values` directly.
    """

    __slots__ = ("values",)

    def __init__(self) -> None:
        self.values = np.zeros(len(VARIABLES), dtype=np.complex128)

    def set_current(
        self,
        position: tuple[float, float],
        pressure: float,
        tilt: tuple[float, float],
        hover_distance: float,
    ) -> None:
        values = self.values
        values[_X] = position[0]
        values[_Y] = position[1]
        values[_P] = pressure
        values[_TX] = tilt[0]
        values[_TY] = tilt[1]
        values[_D] = hover_distance

    def set_last(
        self,
        position: tuple[float, float],
        pressure: float,
        tilt: tuple[float, float],
        hover_distance: float,
    ) -> None:
        values = self.values
        values[_LX] = position[0]
        values[_LY] = position[1]
        values[_LP] = pressure
        values[_LTX] = tilt[0]
        values[_LTY] = tilt[1]
        values[_LD] = hover_distance

    def set_extents(self, max_x: float, max_y: float, max_pressure: float) -> None:
        values = self.values
        values[_MX] = max_x
        values[_MY] = max_y
        values[_MP] = max_pressure

    def set_computed(self, position: tuple[float, float], pressure: float) -> None:
        values = self.values
        values[_CX] = position[0]
        values[_CY] = position[1]
        values[_CP] = pressure

    def set_position(self, position: tuple[float, float]) -> None:
        self.values[_X] = position[0]
        self.values[_Y] = position[1]

    def set_pressure(self, pressure: float) -> None:
        self.values[_P] = pressure

    def as_dict(self) -> dict[str, float]:
        """Return the real parts keyed by variable name, for diagnostics."""

        return {name: float(self.values[index].real) for index, name in enumerate(VARIABLES)}
