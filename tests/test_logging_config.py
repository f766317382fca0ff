from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

from penfilter.logging import JsonFormatter, setup_logging
from penfilter.notifications import LoggingNotifier, Severity


@pytest.fixture(autouse=True)
def restore_penfilter_logger() -> Iterator[None]:
    logger = logging.getLogger("penfilter")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "penfilter.test", logging.WARNING, __file__, 1, "hello %s", ("world",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extras() -> None:
    payload = json.loads(JsonFormatter().format(_record(event="demo", channel="X")))

    assert payload["message"] == "hello world"
    assert payload["level"] == "warning"
    assert payload["logger"] == "penfilter.test"
    assert payload["event"] == "demo"
    assert payload["channel"] == "X"
    assert "timestamp" in payload
    assert "exception" not in payload


def test_json_formatter_renders_exceptions() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            "penfilter.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    payload = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: boom" in payload["exception"]


def test_setup_logging_writes_json_to_file(tmp_path: Path) -> None:
    destination = tmp_path / "logs" / "penfilter.log"

    logger = setup_logging({"logging": {"level": "debug", "output": str(destination)}})
    logging.getLogger("penfilter.stage").debug("configured", extra={"event": "demo"})
    for handler in logger.handlers:
        handler.flush()

    lines = destination.read_text(encoding="utf8").splitlines()
    assert logger.level == logging.DEBUG
    assert json.loads(lines[-1])["event"] == "demo"


def test_setup_logging_text_format(tmp_path: Path) -> None:
    destination = tmp_path / "penfilter.log"

    logger = setup_logging(
        {"logging": {"level": "INFO", "output": str(destination), "format": "text"}}
    )
    logging.getLogger("penfilter.cli").info("plain message")
    for handler in logger.handlers:
        handler.flush()

    assert "INFO penfilter.cli: plain message" in destination.read_text(encoding="utf8")


def test_setup_logging_replaces_its_own_handlers() -> None:
    logger = logging.getLogger("penfilter")
    before = len(logger.handlers)

    setup_logging({"logging": {"output": "stderr"}})
    setup_logging({"logging": {"output": "stdout"}})

    assert len(logger.handlers) == before + 1


@pytest.mark.parametrize(
    "config",
    [
        {"logging": {"format": "xml"}},
        {"logging": {"level": "chatty"}},
    ],
)
def test_setup_logging_rejects_invalid_values(config: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        setup_logging(config)


def test_logging_notifier_maps_severity(caplog: pytest.LogCaptureFixture) -> None:
    notifier = LoggingNotifier()

    with caplog.at_level(logging.DEBUG, logger="penfilter.notifications"):
        notifier.notify("Custom Filter", "compile failed", Severity.ERROR)
        notifier.notify("Custom Filter", "note", Severity.INFO)

    assert [(record.levelno, record.source) for record in caplog.records] == [
        (logging.ERROR, "Custom Filter"),
        (logging.INFO, "Custom Filter"),
    ]


def test_logging_notifier_logs_exceptions(caplog: pytest.LogCaptureFixture) -> None:
    notifier = LoggingNotifier(logging.getLogger("penfilter.test"))

    with caplog.at_level(logging.ERROR, logger="penfilter.test"):
        notifier.log_exception(ValueError("bad formula"))

    (record,) = caplog.records
    assert record.getMessage() == "ValueError: bad formula"
    assert record.exc_info is not None
    assert record.event == "formula.error"
