"""Unit tests for Task Master logging.

This module tests the JSON formatter, logger setup and the structured
logging helpers used by the tools.
"""

import json
import logging
import sys
from unittest.mock import MagicMock, patch

import pytest

from taskmaster.taskmaster_logging import (
    JsonFormatter,
    log_error_with_context,
    log_operation,
    log_tool_event,
    setup_logging,
)


@pytest.fixture
def restore_taskmaster_logger():
    """Put the package logger back the way the test found it."""
    logger = logging.getLogger("taskmaster")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestJsonFormatter:
    """Test cases for JsonFormatter."""

    def test_json_formatter_basic(self):
        formatter = JsonFormatter()
        record = logging.getLogger("test").makeRecord("test", logging.INFO, "mod.py", 10, "Hello %s", ("world",), None)

        data = json.loads(formatter.format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Hello world"
        assert data["line"] == 10
        assert "timestamp" in data
        assert "exception" not in data

    def test_json_formatter_with_exception(self):
        """Test JSON formatting with exception info."""
        formatter = JsonFormatter()
        try:
            raise ValueError("Test exception")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.getLogger("test").makeRecord("test", logging.ERROR, "mod.py", 1, "Failed", (), exc_info)

        data = json.loads(formatter.format(record))

        assert data["level"] == "ERROR"
        assert "ValueError" in data["exception"]

    def test_json_formatter_with_extra_fields(self):
        formatter = JsonFormatter()
        record = logging.getLogger("test").makeRecord("test", logging.INFO, "mod.py", 1, "Message", (), None)
        record.extra_fields = {"custom_field": "custom_value", "path": object()}

        data = json.loads(formatter.format(record))

        assert data["custom_field"] == "custom_value"
        assert isinstance(data["path"], str)


class TestSetupLogging:
    """Test cases for setup_logging."""

    def test_console_only(self, restore_taskmaster_logger):
        setup_logging("debug")

        logger = restore_taskmaster_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_repeated_setup_does_not_stack_handlers(self, restore_taskmaster_logger):
        setup_logging(logging.INFO)
        setup_logging(logging.INFO)
        assert len(restore_taskmaster_logger.handlers) == 1

    def test_file_handler_writes_json_lines(self, restore_taskmaster_logger, tmp_path):
        log_file = tmp_path / "taskmaster.log"
        setup_logging(logging.DEBUG, log_file)

        logging.getLogger("taskmaster.test").info("Test message")
        for handler in restore_taskmaster_logger.handlers:
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").strip().split("\n")
        entries = [json.loads(line) for line in lines]
        assert any(entry["message"] == "Test message" for entry in entries)


class TestLogOperation:
    """Test cases for the log_operation context manager."""

    def test_log_operation_success(self):
        with patch("taskmaster.taskmaster_logging.std_logging.getLogger") as mock_logger:
            instance = MagicMock()
            mock_logger.return_value = instance

            with log_operation("test_operation", param1="value1"):
                pass

        assert instance.info.call_count == 2
        instance.error.assert_not_called()
        completed = instance.info.call_args[1]["extra"]["extra_fields"]
        assert completed["status"] == "completed"
        assert completed["param1"] == "value1"
        assert completed["duration"] >= 0

    def test_log_operation_with_exception(self):
        """Test that failures are logged and re-raised."""
        with patch("taskmaster.taskmaster_logging.std_logging.getLogger") as mock_logger:
            instance = MagicMock()
            mock_logger.return_value = instance

            with pytest.raises(ValueError):
                with log_operation("test_operation"):
                    raise ValueError("Test error")

        assert instance.error.called
        assert "Test error" in str(instance.error.call_args)
        assert instance.error.call_args[1]["extra"]["extra_fields"]["error_type"] == "ValueError"


class TestStructuredEvents:
    """Test cases for tool events and error context logging."""

    def test_log_tool_event_returns_payload(self, caplog):
        caplog.set_level(logging.INFO, logger="taskmaster.events")

        payload = log_tool_event("prd_parse_delegated", num_tasks=5)

        assert payload["event_type"] == "prd_parse_delegated"
        assert payload["num_tasks"] == 5
        assert "timestamp" in payload
        record = caplog.records[-1]
        assert record.name == "taskmaster.events"
        assert record.extra_fields == payload

    def test_log_error_with_context(self):
        with patch("taskmaster.taskmaster_logging.std_logging.getLogger") as mock_logger:
            error = ValueError("Test error")
            context = {"operation": "parse_prd", "param": "value"}

            log_error_with_context(error, context, extra_param="extra_value")

        call_args = mock_logger.return_value.error.call_args
        assert "Error in parse_prd: Test error" in call_args[0][0]
        fields = call_args[1]["extra"]["extra_fields"]
        assert fields["context"] == context
        assert fields["extra_param"] == "extra_value"
        assert fields["error_type"] == "ValueError"
        assert call_args[1]["exc_info"][1] is error

    def test_log_error_without_operation(self, caplog):
        caplog.set_level(logging.ERROR, logger="taskmaster.errors")

        log_error_with_context(RuntimeError("oops"), {})

        assert "unknown operation" in caplog.records[-1].getMessage()

    def test_log_error_with_given_logger(self):
        """Test that a caller-supplied logger receives the error."""
        log = MagicMock()

        log_error_with_context(RuntimeError("disk full"), {"operation": "parse_prd"}, log, path="/tmp/out")

        log.error.assert_called_once()
        fields = log.error.call_args[1]["extra"]["extra_fields"]
        assert fields["path"] == "/tmp/out"
        assert fields["error_message"] == "disk full"
