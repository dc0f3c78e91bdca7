"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import threading

import pytest

from duobudget.logging_config import JSONFormatter, get_logger, setup_logging


def _record(**kwargs) -> logging.LogRecord:
    defaults = dict(
        name="test.logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg="Test message",
        args=(),
        exc_info=None,
    )
    defaults.update(kwargs)
    record = logging.LogRecord(**defaults)
    record.module = "test_module"
    record.funcName = "test_function"
    return record


def test_json_formatter():
    """JSONFormatter emits the standard fields."""
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test.logger"
    assert log_data["message"] == "Test message"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert log_data["thread"] == threading.current_thread().name
    assert "timestamp" in log_data


def test_json_formatter_with_exception():
    """Exceptions are serialized with type, message and traceback."""
    try:
        raise ValueError("Test error")
    except ValueError:
        import sys

        exc_info = sys.exc_info()

    log_data = json.loads(
        JSONFormatter().format(_record(level=logging.ERROR, msg="Error occurred", exc_info=exc_info))
    )

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"] is not None


def test_json_formatter_includes_extra_fields():
    record = _record()
    record.line_number = 7

    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["extra"] == {"line_number": 7}


def test_setup_logging(test_config, tmp_path):
    """Logging setup creates a rotating JSON log file in the data directory."""
    test_config.DEV_MODE = True

    logger = setup_logging(test_config)

    assert logger.name == "duobudget"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "duobudget.log"
    assert log_file.exists()

    get_logger("services.importers").warning("Import finished with errors")
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    assert len(lines) >= 2
    entries = [json.loads(line) for line in lines]
    assert entries[-1]["logger"] == "duobudget.services.importers"
    assert entries[-1]["message"] == "Import finished with errors"


def test_setup_logging_replaces_handlers(test_config):
    setup_logging(test_config)
    logger = setup_logging(test_config)

    assert len(logger.handlers) == 2


def test_get_logger():
    """get_logger returns loggers nested under the package logger."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")

    assert logger1.name == "duobudget.module1"
    assert logger2.name == "duobudget.module2"
    assert logger1 != logger2


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(test_config, dev_mode):
    """Console logging level adjusts based on dev mode."""
    test_config.DEV_MODE = dev_mode

    logger = setup_logging(test_config)

    console_handler = None
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.handlers.RotatingFileHandler
        ):
            console_handler = handler
            break

    assert console_handler is not None
    expected_level = logging.INFO if dev_mode else logging.WARNING
    assert console_handler.level == expected_level


def test_import_run_logs_owner_and_kind(test_config, session_factory, user, tmp_path):
    from duobudget.services.importers import (
        CsvImporter,
        HeaderDialect,
        ImportKind,
        ImportRequest,
    )

    logger = setup_logging(test_config)
    raw = b"date,amount,category\n15/01/2024,10,Food\n"

    CsvImporter(session_factory, test_config).run(
        ImportRequest(user.id, ImportKind.EXPENSE, raw, HeaderDialect.GENERIC)
    )
    for handler in logger.handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "duobudget.log"
    entries = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    finished = [e for e in entries if "import finished" in e["message"]]
    assert finished
    assert finished[-1]["extra"] == {"owner_id": user.id, "kind": "expense"}
    assert finished[-1]["logger"] == "duobudget.services.importers"
