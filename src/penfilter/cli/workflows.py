"""Command handlers for the ``penfilter`` CLI."""

from __future__ import annotations

import argparse
import dataclasses
import io
import logging
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Iterator, Mapping

from ..expressions import FUNCTIONS, compile_result
from ..io.reports import ReportLogError, TimedReport, iter_reports, write_reports
from ..reports import DeviceExtents, FixedExtents
from ..settings import FilterConfig, FilterConfigError, FilterSettings
from ..stage import CustomFilter
from ..vocabulary import VARIABLES, describe_variables
from .errors import CliError

logger = logging.getLogger(__name__)


def _resolve_settings(namespace: argparse.Namespace, config: Mapping[str, Any]) -> FilterSettings:
    """Merge configuration sources: filter file or project table, then flags."""

    profile = getattr(namespace, "profile", None)
    try:
        if namespace.filter_config is not None:
            settings = FilterConfig(namespace.filter_config, default_profile=profile).settings()
        elif isinstance(config.get("filter"), Mapping):
            settings = FilterConfig.from_mapping(
                {"filter": config["filter"], "profiles": config.get("profiles", {})},
                default_profile=profile,
                source=config.get("_config_path"),
            ).settings()
        elif profile is not None:
            raise CliError(
                f"Profile '{profile}' requested without a filter configuration.",
                category="usage",
            )
        else:
            settings = FilterSettings()
    except FilterConfigError as exc:
        raise CliError(str(exc), category="io") from exc
    except KeyError as exc:
        raise CliError(str(exc.args[0]), category="usage") from exc

    overrides: dict[str, Any] = {}
    for key in ("x", "y", "p", "tx", "ty"):
        value = getattr(namespace, f"formula_{key}", None)
        if value is not None:
            overrides[key] = value
    if getattr(namespace, "reset_timeout_ms", None) is not None:
        overrides["reset_timeout_ms"] = namespace.reset_timeout_ms
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    return settings


def _handle_vars(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    functions = ", ".join(sorted(FUNCTIONS))
    return f"{describe_variables()}\n\nFunctions: {functions}"


def _handle_check(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    settings = _resolve_settings(namespace, config)
    lines: list[str] = []
    failed: list[str] = []
    for channel, formula in settings.formulas.items():
        outcome = compile_result(formula, VARIABLES)
        if outcome.ok:
            lines.append(f"{channel.label}: ok ({formula})")
        else:
            failed.append(channel.label)
            lines.append(f"{channel.label}: error: {outcome.error}")
    report = "\n".join(lines)
    if failed:
        raise CliError(report, category="usage")
    return report


class _ReplayClock:
    """Clock driven by the ``time_ms`` values recorded in a report log."""

    __slots__ = ("seconds",)

    def __init__(self) -> None:
        self.seconds = 0.0

    def __call__(self) -> float:
        return self.seconds


def _replay(
    records: Iterator[TimedReport],
    stage: CustomFilter,
    clock: _ReplayClock,
) -> Iterator[TimedReport]:
    forwarded: list[object] = []
    unsubscribe = stage.subscribe(forwarded.append)
    try:
        for record in records:
            if record.time_ms is not None:
                clock.seconds = record.time_ms / 1000.0
            stage.consume(record.report)
            while forwarded:
                yield TimedReport(forwarded.pop(0), record.time_ms)
    finally:
        unsubscribe()


def _write_atomically(output: Path, records: Iterator[TimedReport]) -> int:
    """Write ``records`` next to ``output`` and move them into place on success."""

    output.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile(
        "w",
        encoding="utf8",
        dir=output.parent,
        prefix=f".{output.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        staging = Path(handle.name)
        try:
            count = write_reports(records, handle)
        except BaseException:
            handle.close()
            staging.unlink()
            raise
    staging.replace(output)
    return count


def _handle_replay(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    settings = _resolve_settings(namespace, config)
    source = namespace.input
    if source != "-" and not Path(source).is_file():
        raise CliError(f"Report log {source} does not exist", category="not_found")

    clock = _ReplayClock()
    extents = FixedExtents(
        DeviceExtents(
            max_x=namespace.max_x,
            max_y=namespace.max_y,
            max_pressure=namespace.max_pressure,
        )
    )
    stage = CustomFilter(extents, clock=clock)
    bundle = stage.configure(settings)
    if bundle.failed:
        logger.warning(
            "Replaying with identity fallbacks for %s",
            ", ".join(channel.label for channel in bundle.failed),
        )

    records = _replay(iter_reports(source), stage, clock)
    try:
        if namespace.output is None:
            buffer = io.StringIO()
            write_reports(records, buffer)
            return buffer.getvalue()
        count = _write_atomically(namespace.output, records)
    except FileNotFoundError as exc:
        raise CliError(str(exc), category="not_found") from exc
    except ReportLogError as exc:
        raise CliError(f"Invalid report log: {exc}", category="io") from exc
    return f"Wrote {count} reports to {namespace.output}"


__all__ = ["_handle_check", "_handle_replay", "_handle_vars"]
