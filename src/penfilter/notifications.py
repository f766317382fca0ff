"""Default notification sink backed by :mod:`logging`."""

from __future__ import annotations

import enum
import logging

__all__ = ["LoggingNotifier", "Severity"]


class Severity(enum.IntEnum):
    """Notification severities, valued as their :mod:`logging` levels."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    FATAL = logging.CRITICAL


class LoggingNotifier:
    """Forward compilation diagnostics to a :class:`logging.Logger`."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("penfilter.notifications")

    def log_exception(self, error: BaseException) -> None:
        self._logger.error(
            "%s: %s",
            type(error).__name__,
            error,
            exc_info=(type(error), error, error.__traceback__),
            extra={"event": "formula.error"},
        )

    def notify(self, source: str, message: str, severity: Severity) -> None:
        self._logger.log(
            int(severity),
            message,
            extra={"event": "notification", "source": source},
        )
