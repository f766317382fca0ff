"""Command line interface for ``penfilter``."""

from penfilter.cli.app import main, run_cli
from penfilter.cli.errors import CliError

__all__ = ["CliError", "main", "run_cli"]
