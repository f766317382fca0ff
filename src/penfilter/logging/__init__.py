"""Logging utilities for the formula filter."""

from penfilter.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
