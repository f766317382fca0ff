"""Structural typing interfaces for the collaborators around the stage.

The host pipeline owns device discovery, notification sinks and report
dispatch.  The stage only depends on the narrow protocols declared here so
hosts and tests can plug in their own implementations.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from .notifications import Severity
from .reports import DeviceExtents

__all__ = [
    "Clock",
    "ReportSink",
    "SupportsDeviceExtents",
    "SupportsNotifications",
]

Clock = Callable[[], float]
"""Monotonic clock returning seconds."""

ReportSink = Callable[[object], None]
"""Downstream consumer receiving every forwarded report."""


@runtime_checkable
class SupportsDeviceExtents(Protocol):
    """Read-only view of the active device's capabilities."""

    def device_extents(self) -> DeviceExtents:
        ...


@runtime_checkable
class SupportsNotifications(Protocol):
    """One-way diagnostics sink used when formulas fail to compile."""

    def log_exception(self, error: BaseException) -> None:
        ...

    def notify(self, source: str, message: str, severity: Severity) -> None:
        ...
