"""Math functions available inside formulas.

Every function receives and returns :class:`numpy.complex128` scalars.
Functions that are only meaningful on the real line (``sign``, ``floor``,
``ceil``, ``atan2``, ``min``, ``max``) operate on the real parts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

import numpy as np

__all__ = ["FUNCTIONS", "MathFunction"]

Scalar = np.complex128


@dataclass(frozen=True, slots=True)
class MathFunction:
    name: str
    arities: tuple[int, ...]
    implementation: Callable[..., Scalar]


def _real(function: Callable[..., float]) -> Callable[..., Scalar]:
    def apply(*values: Scalar) -> Scalar:
        return Scalar(function(*(np.real(value) for value in values)))

    apply.__name__ = getattr(function, "__name__", "real_function")
    return apply


def _log(first: Scalar, second: Scalar | None = None) -> Scalar:
    if second is None:
        return np.log(first)
    return np.log(second) / np.log(first)


def _unary(ufunc: Callable[[Scalar], Scalar]) -> Callable[[Scalar], Scalar]:
    def apply(value: Scalar) -> Scalar:
        return Scalar(ufunc(value))

    apply.__name__ = getattr(ufunc, "__name__", "unary")
    return apply


def _reciprocal(ufunc: Callable[[Scalar], Scalar]) -> Callable[[Scalar], Scalar]:
    def apply(value: Scalar) -> Scalar:
        return Scalar(1.0) / ufunc(value)

    return apply


_DEFINITIONS: tuple[MathFunction, ...] = (
    MathFunction("sin", (1,), _unary(np.sin)),
    MathFunction("cos", (1,), _unary(np.cos)),
    MathFunction("tan", (1,), _unary(np.tan)),
    MathFunction("cot", (1,), _reciprocal(np.tan)),
    MathFunction("sec", (1,), _reciprocal(np.cos)),
    MathFunction("csc", (1,), _reciprocal(np.sin)),
    MathFunction("asin", (1,), _unary(np.arcsin)),
    MathFunction("acos", (1,), _unary(np.arccos)),
    MathFunction("atan", (1,), _unary(np.arctan)),
    MathFunction("arcsin", (1,), _unary(np.arcsin)),
    MathFunction("arccos", (1,), _unary(np.arccos)),
    MathFunction("arctan", (1,), _unary(np.arctan)),
    MathFunction("sinh", (1,), _unary(np.sinh)),
    MathFunction("cosh", (1,), _unary(np.cosh)),
    MathFunction("tanh", (1,), _unary(np.tanh)),
    MathFunction("exp", (1,), _unary(np.exp)),
    MathFunction("ln", (1,), _unary(np.log)),
    MathFunction("log", (1, 2), _log),
    MathFunction("log10", (1,), _unary(np.log10)),
    MathFunction("log2", (1,), _unary(np.log2)),
    MathFunction("sqrt", (1,), _unary(np.sqrt)),
    MathFunction("abs", (1,), _unary(np.abs)),
    MathFunction("pow", (2,), lambda base, exponent: base**exponent),
    MathFunction("sign", (1,), _real(np.sign)),
    MathFunction("floor", (1,), _real(np.floor)),
    MathFunction("ceil", (1,), _real(np.ceil)),
    MathFunction("atan2", (2,), _real(np.arctan2)),
    MathFunction("min", (2,), _real(np.fmin)),
    MathFunction("max", (2,), _real(np.fmax)),
)

FUNCTIONS: Mapping[str, MathFunction] = {item.name: item for item in _DEFINITIONS}
