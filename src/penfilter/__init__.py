"""Formula-driven shaping of pen tablet reports.

Each output channel (X, Y, pressure, tilt X, tilt Y) is defined by a
user formula over a fixed vocabulary of current, previous and computed
values.  Formulas are compiled once per reconfiguration and evaluated for
every report passing through :class:`~penfilter.stage.CustomFilter`.
"""

from ._version import __version__
from .channels import Channel, ChannelBank, ChannelFormulas, ChannelSet, compile_channel_set
from .expressions import (
    CompileError,
    CompileResult,
    CompiledFunction,
    ParseError,
    compile_formula,
    compile_result,
)
from .notifications import LoggingNotifier, Severity
from .numeric import UINT32_MAX, saturate_uint
from .reports import DeviceExtents, DeviceReport, FixedExtents, OutOfRangeReport
from .settings import FilterConfig, FilterConfigError, FilterSettings
from .stage import CustomFilter
from .state import ComputedSample, RawSample, StateTracker
from .vocabulary import VARIABLES, VariableVector, describe_variables

__all__ = [
    "Channel",
    "ChannelBank",
    "ChannelFormulas",
    "ChannelSet",
    "CompileError",
    "CompileResult",
    "CompiledFunction",
    "ComputedSample",
    "CustomFilter",
    "DeviceExtents",
    "DeviceReport",
    "FilterConfig",
    "FilterConfigError",
    "FilterSettings",
    "FixedExtents",
    "LoggingNotifier",
    "OutOfRangeReport",
    "ParseError",
    "RawSample",
    "Severity",
    "StateTracker",
    "UINT32_MAX",
    "VARIABLES",
    "VariableVector",
    "__version__",
    "compile_channel_set",
    "compile_formula",
    "compile_result",
    "describe_variables",
    "saturate_uint",
]
