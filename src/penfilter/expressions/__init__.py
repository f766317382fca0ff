"""Formula parsing and compilation."""

from penfilter.expressions.compiler import (
    CompileResult,
    CompiledFunction,
    compile_formula,
    compile_result,
)
from penfilter.expressions.errors import CompileError, ParseError
from penfilter.expressions.functions import FUNCTIONS
from penfilter.expressions.parser import parse

__all__ = [
    "CompileError",
    "CompileResult",
    "CompiledFunction",
    "FUNCTIONS",
    "ParseError",
    "compile_formula",
    "compile_result",
    "parse",
]
