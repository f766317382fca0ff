"""Compile formula strings into numeric callables over a fixed vocabulary.

A formula is parsed once into an expression tree which is then lowered into
a tree of closures.  Variables are resolved to their slot index in the
vocabulary at compile time, so evaluating a :class:`CompiledFunction` is a
chain of indexing and arithmetic on :class:`numpy.complex128` scalars with no
name lookups.  The public boundary is real valued: the imaginary component
of the internal result is discarded.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

import numpy as np

from .errors import CompileError, ParseError
from .functions import FUNCTIONS
from .parser import BinaryOp, Call, Node, Number, UnaryOp, Variable, parse

__all__ = [
    "CompileResult",
    "CompiledFunction",
    "compile_formula",
    "compile_result",
]

_Evaluator = Callable[[np.ndarray], np.complex128]

_BINARY_OPERATORS: Mapping[str, Callable[[np.complex128, np.complex128], np.complex128]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "^": operator.pow,
}


class CompiledFunction:
    """Pure callable mapping an ordered vector of inputs to one real number."""

    __slots__ = ("_evaluate", "_arity")

    def __init__(self, evaluate: _Evaluator, arity: int) -> None:
        self._evaluate = evaluate
        self._arity = arity

    @property
    def arity(self) -> int:
        """Number of inputs expected by :meth:`__call__`."""

        return self._arity

    def __call__(self, values: Sequence[float] | np.ndarray) -> float:
        """Evaluate the formula for ``values`` given in vocabulary order.

        ``values`` may be any sequence of real numbers; a ``complex128`` array
        of the right length is used as-is without copying.  Non-finite results
        follow IEEE-754 propagation and are returned unchanged.
        """

        if not isinstance(values, np.ndarray) or values.dtype != np.complex128:
            values = np.asarray(values, dtype=np.complex128)
        if values.shape != (self._arity,):
            raise ValueError(
                f"expected {self._arity} input values, received shape {values.shape}"
            )
        with np.errstate(all="ignore"):
            result = self._evaluate(values)
        return float(np.real(result))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(arity={self._arity})"


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of :func:`compile_result`: exactly one of the fields is set."""

    function: CompiledFunction | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.function is not None


def _index_vocabulary(vocabulary: Sequence[str]) -> dict[str, int]:
    indices: dict[str, int] = {}
    for position, name in enumerate(vocabulary):
        if not isinstance(name, str) or not name.isidentifier():
            raise ValueError(f"invalid vocabulary name {name!r}")
        if name in indices:
            raise ValueError(f"duplicate vocabulary name {name!r}")
        indices[name] = position
    return indices


def _lower(node: Node, indices: Mapping[str, int]) -> _Evaluator:
    if isinstance(node, Number):
        constant = np.complex128(node.value)
        return lambda values: constant

    if isinstance(node, Variable):
        index = indices.get(node.name)
        if index is None:
            if node.name in FUNCTIONS:
                raise CompileError(
                    f"function {node.name!r} used without arguments", position=node.position
                )
            raise CompileError(f"unknown variable {node.name!r}", position=node.position)
        return lambda values: values[index]

    if isinstance(node, UnaryOp):
        operand = _lower(node.operand, indices)
        if node.operator == "-":
            return lambda values: -operand(values)
        return operand

    if isinstance(node, BinaryOp):
        left = _lower(node.left, indices)
        right = _lower(node.right, indices)
        apply = _BINARY_OPERATORS[node.operator]
        return lambda values: apply(left(values), right(values))

    if isinstance(node, Call):
        definition = FUNCTIONS.get(node.name)
        if definition is None:
            raise CompileError(f"unknown function {node.name!r}", position=node.position)
        if len(node.arguments) not in definition.arities:
            expected = " or ".join(str(count) for count in definition.arities)
            raise CompileError(
                f"function {node.name!r} takes {expected} argument(s), "
                f"{len(node.arguments)} given",
                position=node.position,
            )
        arguments = tuple(_lower(argument, indices) for argument in node.arguments)
        implementation = definition.implementation
        if len(arguments) == 1:
            (single,) = arguments
            return lambda values: implementation(single(values))
        return lambda values: implementation(*(argument(values) for argument in arguments))

    raise CompileError(f"unsupported expression node {type(node).__name__}")


def compile_formula(formula: str, vocabulary: Sequence[str]) -> CompiledFunction:
    """Compile ``formula`` into a :class:`CompiledFunction` over ``vocabulary``.

    Parameters
    ----------
    formula:
        Arithmetic expression using ``+ - * / ^``, parentheses, numeric
        literals, the functions listed in :mod:`penfilter.expressions.functions`
        and the names in ``vocabulary``.
    vocabulary:
        Ordered variable names.  The position of a name is the index of its
        value in the vector later passed to the compiled function.

    Raises
    ------
    ParseError
        When the formula is malformed.  :class:`CompileError`, a subclass, is
        raised when the formula is well formed but references unknown names or
        calls a function with the wrong number of arguments.
    """

    indices = _index_vocabulary(vocabulary)
    tree = parse(formula)
    try:
        evaluate = _lower(tree, indices)
    except RecursionError:
        raise CompileError("formula is nested too deeply") from None
    return CompiledFunction(evaluate, len(indices))


def compile_result(formula: str, vocabulary: Sequence[str]) -> CompileResult:
    """Compile ``formula`` returning the outcome instead of raising on bad input."""

    try:
        return CompileResult(function=compile_formula(formula, vocabulary))
    except ParseError as exc:
        return CompileResult(error=exc)
