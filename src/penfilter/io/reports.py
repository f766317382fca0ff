"""Newline-delimited JSON logs of device reports.

Formulas may legitimately produce non-finite positions and tilts.  These are
written as the ``NaN``, ``Infinity`` and ``-Infinity`` tokens emitted and accepted
by :mod:`json`, so a replayed log reads back exactly what the stage produced.
Files are always UTF-8.
"""

from __future__ import annotations

import gzip
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Iterable, Iterator, Mapping

from ..reports import DeviceReport, OutOfRangeReport

__all__ = [
    "ReportLogError",
    "TimedReport",
    "decode_report",
    "encode_report",
    "iter_reports",
    "write_reports",
]


class ReportLogError(ValueError):
    """Raised when a report log line cannot be decoded."""


@dataclass(frozen=True, slots=True)
class TimedReport:
    """A decoded report and its optional capture time in milliseconds."""

    report: object
    time_ms: float | None = None


def _vector(payload: Mapping[str, Any], key: str) -> tuple[float, float] | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ReportLogError(f"'{key}' must be a two-element array")
    return (float(value[0]), float(value[1]))


def _unsigned(payload: Mapping[str, Any], key: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ReportLogError(f"'{key}' must be a non-negative number")
    return int(value)


def decode_report(payload: Mapping[str, Any]) -> TimedReport:
    """Build a report from one decoded JSON object."""

    if not isinstance(payload, Mapping):
        raise ReportLogError("each line must hold a JSON object")
    time_ms = payload.get("time_ms")
    if time_ms is not None:
        time_ms = float(time_ms)
    if payload.get("out_of_range"):
        return TimedReport(OutOfRangeReport(), time_ms)
    report = DeviceReport(
        position=_vector(payload, "position"),
        pressure=_unsigned(payload, "pressure"),
        tilt=_vector(payload, "tilt"),
        hover_distance=_unsigned(payload, "hover_distance"),
    )
    return TimedReport(report, time_ms)


def encode_report(report: object, time_ms: float | None = None) -> dict[str, Any]:
    """Return the JSON-compatible representation of ``report``."""

    payload: dict[str, Any] = {}
    if isinstance(report, OutOfRangeReport):
        payload["out_of_range"] = True
    elif isinstance(report, DeviceReport):
        if report.position is not None:
            payload["position"] = list(report.position)
        if report.pressure is not None:
            payload["pressure"] = report.pressure
        if report.tilt is not None:
            payload["tilt"] = list(report.tilt)
        if report.hover_distance is not None:
            payload["hover_distance"] = report.hover_distance
    else:
        raise TypeError(f"cannot encode report of type {type(report).__name__}")
    if time_ms is not None:
        payload["time_ms"] = time_ms
    return payload


def _iter_lines(handle: Iterable[str]) -> Iterator[TimedReport]:
    for number, line in enumerate(handle, start=1):
        if not line.strip():
            continue
        try:
            item = decode_report(json.loads(line))
        except (TypeError, ValueError) as exc:
            raise ReportLogError(f"line {number}: {exc}") from exc
        yield item


def iter_reports(path: str | Path) -> Iterator[TimedReport]:
    """Yield reports stored at ``path``; ``-`` reads standard input.

    Gzip-compressed files are detected transparently.
    """

    if str(path) == "-":
        yield from _iter_lines(sys.stdin)
        return

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Report log {source} does not exist")

    with source.open("rb") as stream:
        compressed = stream.read(2) == b"\x1f\x8b"

    if compressed:
        with gzip.open(source, "rt", encoding="utf8") as handle:
            yield from _iter_lines(handle)
    else:
        with source.open("r", encoding="utf8") as handle:
            yield from _iter_lines(handle)


def write_reports(
    reports: Iterable[TimedReport],
    handle: IO[str],
) -> int:
    """Write ``reports`` to ``handle`` as JSON lines and return the count."""

    count = 0
    for item in reports:
        json.dump(encode_report(item.report, item.time_ms), handle, sort_keys=True)
        handle.write("\n")
        count += 1
    return count
