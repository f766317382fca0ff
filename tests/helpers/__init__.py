"""Fakes and builders shared by the test-suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from textwrap import dedent
from typing import List, Tuple

from penfilter.notifications import Severity
from penfilter.reports import DeviceReport
from penfilter.vocabulary import VARIABLE_INDEX, VARIABLES

__all__ = [
    "ManualClock",
    "RecordingNotifier",
    "build_report",
    "vector",
    "write_pyproject",
]


class ManualClock:
    """Monotonic clock advanced explicitly by tests."""

    def __init__(self, seconds: float = 0.0) -> None:
        self.seconds = seconds

    def __call__(self) -> float:
        return self.seconds

    def advance(self, milliseconds: float) -> None:
        self.seconds += milliseconds / 1000.0


@dataclass
class RecordingNotifier:
    """Notifier collecting every call for later assertions."""

    exceptions: List[BaseException] = field(default_factory=list)
    notifications: List[Tuple[str, str, Severity]] = field(default_factory=list)

    def log_exception(self, error: BaseException) -> None:
        self.exceptions.append(error)

    def notify(self, source: str, message: str, severity: Severity) -> None:
        self.notifications.append((source, message, severity))


def build_report(
    *,
    x: float | None = None,
    y: float | None = None,
    p: int | None = None,
    tx: float | None = None,
    ty: float | None = None,
    d: int | None = None,
) -> DeviceReport:
    """Return a report carrying only the capabilities whose values are given."""

    position = (float(x), float(y)) if x is not None and y is not None else None
    tilt = (float(tx), float(ty)) if tx is not None and ty is not None else None
    return DeviceReport(position=position, pressure=p, tilt=tilt, hover_distance=d)


def vector(**values: float) -> list[float]:
    """Return an 18-value input vector with the named slots filled in."""

    result = [0.0] * len(VARIABLES)
    for name, value in values.items():
        result[VARIABLE_INDEX[name]] = value
    return result


def write_pyproject(directory: Path, contents: str) -> Path:
    """Persist a ``pyproject.toml`` under ``directory`` and return its path."""

    payload = dedent(contents).lstrip()
    target = directory / "pyproject.toml"
    target.write_text(payload, encoding="utf8")
    return target
