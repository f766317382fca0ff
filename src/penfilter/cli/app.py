"""Command line application entry point for ``penfilter``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, NoReturn, Optional, Sequence

from ..logging.config import setup_logging
from ..settings import FilterConfigError, read_project_table
from .errors import CliError
from .parser import build_parser

logger = logging.getLogger(__name__)

CommandHandler = Callable[..., str]


def load_cli_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load ``[tool.penfilter]`` from ``path`` or the working directory."""

    candidate = path if path is not None else Path.cwd()
    try:
        loaded = read_project_table(candidate)
    except FilterConfigError as exc:
        raise CliError(str(exc), category="io") from exc
    if loaded is None:
        if path is not None:
            raise CliError(f"No [tool.penfilter] section found in {path}", category="not_found")
        return {}
    table, source = loaded
    config = dict(table)
    config["_config_path"] = str(source)
    return config


def run_cli(args: Optional[Sequence[str]] = None) -> str:
    """Execute the ``penfilter`` command line interface."""

    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument("--config", dest="config_path", type=Path, default=None)
    config_parser.add_argument("--log-level", dest="log_level", default=None)
    config_parser.add_argument("--log-output", dest="log_output", default=None)
    config_parser.add_argument(
        "--log-format", dest="log_format", choices=("json", "text"), default=None
    )
    preliminary, _ = config_parser.parse_known_args(args)

    try:
        config = load_cli_config(preliminary.config_path)
    except CliError as exc:
        return _fail(exc)

    logging_config: Dict[str, Any] = dict(config.get("logging", {}))
    if preliminary.log_level is not None:
        logging_config["level"] = preliminary.log_level
    if preliminary.log_output is not None:
        logging_config["output"] = preliminary.log_output
    if preliminary.log_format is not None:
        logging_config["format"] = preliminary.log_format
    logging_config.setdefault("level", "info")
    logging_config.setdefault("output", "stderr")
    logging_config.setdefault("format", "json")
    config["logging"] = logging_config
    try:
        setup_logging(config)
    except (OSError, ValueError) as exc:
        return _fail(CliError(f"Invalid logging configuration: {exc}", category="usage"))

    parser = build_parser(config)
    namespace = parser.parse_args(args)

    handler: CommandHandler = namespace.handler
    try:
        result = handler(namespace, config=config)
    except CliError as exc:
        return _fail(exc)
    if result:
        sys.stdout.write(result)
        if not result.endswith("\n"):
            sys.stdout.write("\n")
    return result


def _fail(exc: CliError) -> NoReturn:
    message = str(exc)
    logger.error(
        message,
        extra={"event": "cli.error", "category": exc.category, "status_code": exc.status_code},
        exc_info=exc.__cause__,
    )
    if message:
        sys.stdout.write(message)
        if not message.endswith("\n"):
            sys.stdout.write("\n")
    raise SystemExit(exc.status_code) from exc


def main() -> None:  # pragma: no cover - thin wrapper
    run_cli()


if __name__ == "__main__":  # pragma: no cover - CLI invocation guard
    main()


__all__ = ["load_cli_config", "main", "run_cli"]
