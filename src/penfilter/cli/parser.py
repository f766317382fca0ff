"""Argument parsing helpers for the ``penfilter`` CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Mapping, Optional

from ..vocabulary import describe_variables
from .workflows import _handle_check, _handle_replay, _handle_vars


def _add_formula_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--filter-config",
        dest="filter_config",
        type=Path,
        default=None,
        help="TOML file with a [filter] table and optional [profiles.*] tables.",
    )
    parser.add_argument(
        "--profile",
        dest="profile",
        default=None,
        help="Profile from the filter configuration to activate.",
    )
    for key, label in (
        ("x", "X coordinate"),
        ("y", "Y coordinate"),
        ("p", "pressure"),
        ("tx", "X tilt"),
        ("ty", "Y tilt"),
    ):
        parser.add_argument(
            f"--{key}",
            dest=f"formula_{key}",
            default=None,
            metavar="FORMULA",
            help=f"Formula computing the {label}; overrides the configuration.",
        )
    parser.add_argument(
        "--reset-timeout",
        dest="reset_timeout_ms",
        type=int,
        default=None,
        metavar="MS",
        help="Reset history after this many milliseconds without reports "
        "(negative: never, 0: always).",
    )


def build_parser(config: Optional[Mapping[str, Any]] = None) -> argparse.ArgumentParser:
    config = dict(config or {})
    logging_cfg = dict(config.get("logging", {}))

    parser = argparse.ArgumentParser(
        description="penfilter: formula-driven shaping of pen tablet reports",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to the pyproject.toml holding [tool.penfilter].",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=logging_cfg.get("level", "info"),
        help="Logging level (e.g. debug, info, warning).",
    )
    parser.add_argument(
        "--log-output",
        dest="log_output",
        default=logging_cfg.get("output", "stderr"),
        help="Logging destination (stdout, stderr or a file path).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=logging_cfg.get("format", "json"),
        help="Logging formatter (json or text).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    vars_parser = subparsers.add_parser(
        "vars",
        help="List the variables available to formulas.",
        description=describe_variables(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    vars_parser.set_defaults(handler=_handle_vars)

    check_parser = subparsers.add_parser(
        "check",
        help="Compile the configured formulas and report errors.",
    )
    _add_formula_arguments(check_parser)
    check_parser.set_defaults(handler=_handle_check)

    replay_parser = subparsers.add_parser(
        "replay",
        help="Run a JSON-lines report log through the filter.",
    )
    replay_parser.add_argument(
        "input",
        help="Report log to read ('-' for standard input). Gzip files are accepted.",
    )
    replay_parser.add_argument(
        "--output",
        dest="output",
        type=Path,
        default=None,
        help="Destination for transformed reports (default: standard output).",
    )
    replay_parser.add_argument("--max-x", dest="max_x", type=float, default=0.0)
    replay_parser.add_argument("--max-y", dest="max_y", type=float, default=0.0)
    replay_parser.add_argument(
        "--max-pressure", dest="max_pressure", type=float, default=0.0
    )
    _add_formula_arguments(replay_parser)
    replay_parser.set_defaults(handler=_handle_replay)

    return parser
