"""Tests for logging configuration and formatters."""

import io
import json
import logging

import pytest

from jobboard.logging import ComponentLoggerAdapter, get_logger
from jobboard.logging.config import (
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from jobboard.logging.context import log_context


@pytest.fixture
def logger():
    """Create a test logger with handler for capturing output."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest left it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(logger, message="Test message", extra=None):
    return logger.makeRecord("test", logging.INFO, "test.py", 1, message, (), None, extra=extra)


def test_json_formatter_basic(logger):
    """Test JSONFormatter produces valid JSON with mandatory fields."""
    log_obj = json.loads(JSONFormatter().format(_record(logger)))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert log_obj["timestamp"].endswith("Z")
    assert "logger" in log_obj


def test_json_formatter_with_extra_fields(logger):
    """Test JSONFormatter includes extra fields."""
    record = _record(
        logger, extra={"event": "notification.outcome", "attempts": 3, "transient": True}
    )

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "notification.outcome"
    assert log_obj["attempts"] == 3
    assert log_obj["transient"] is True


def test_json_formatter_stringifies_unknown_types(logger):
    record = _record(logger, extra={"payload": object()})

    log_obj = json.loads(JSONFormatter().format(record))

    assert isinstance(log_obj["payload"], str)


def test_key_value_formatter(logger):
    """Test extras are appended as sorted key=value pairs, quoting spaces."""
    formatter = KeyValueFormatter("%(levelname)s %(message)s")
    record = _record(
        logger,
        extra={"outcome": "sent", "subject": "Hello there", "retry": False, "message_id": None},
    )

    output = formatter.format(record)

    assert output.startswith("INFO Test message ")
    assert 'subject="Hello there"' in output
    assert "retry=false" in output
    assert "message_id=null" in output
    assert output.index("message_id=") < output.index("outcome=")


def test_key_value_formatter_skips_service_fields(logger):
    formatter = KeyValueFormatter("%(message)s")
    record = _record(logger)
    ContextualFilter(service="jobboard", environment="test").filter(record)

    assert formatter.format(record) == "Test message"


def test_contextual_filter_adds_static_fields(logger):
    """Test ContextualFilter adds static service and environment fields."""
    record = _record(logger)

    ContextualFilter(service="test-service", environment="test").filter(record)

    assert record.service == "test-service"
    assert record.environment == "test"


def test_contextual_filter_adds_context_fields(logger):
    """Test ContextualFilter adds fields from log context."""
    with log_context(application_id="app-1", job_id="J1"):
        record = _record(logger)
        ContextualFilter().filter(record)

    assert record.application_id == "app-1"
    assert record.job_id == "J1"


def test_explicit_extra_beats_context(logger):
    """Test extra= fields are not overwritten by context fields."""
    with log_context(job_id="from-context"):
        record = _record(logger, extra={"job_id": "from-extra"})
        ContextualFilter().filter(record)

    assert record.job_id == "from-extra"


def test_component_logger_adapter():
    """Test the adapter stamps component and lets call-site extras win."""
    adapter = get_logger("jobboard.test", component="lifecycle")
    assert isinstance(adapter, ComponentLoggerAdapter)

    _, kwargs = adapter.process("msg", {"extra": {"event": "x"}})
    assert kwargs["extra"] == {"component": "lifecycle", "event": "x"}

    _, kwargs = adapter.process("msg", {"extra": {"component": "override"}})
    assert kwargs["extra"]["component"] == "override"


def test_get_logger_without_component():
    assert isinstance(get_logger("jobboard.test"), logging.Logger)


def test_configure_logging_json(restore_root_logger):
    """Test configure_logging installs one JSON handler on the root logger."""
    stream = io.StringIO()

    configure_logging(level="debug", format_type="json", environment="production", stream=stream)
    logging.getLogger("jobboard.test").info("hello", extra={"event": "test.event"})

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert lines[0]["event"] == "logging.configured"
    assert lines[-1]["message"] == "hello"
    assert lines[-1]["service"] == "jobboard"
    assert lines[-1]["environment"] == "production"


def test_configure_logging_key_value(restore_root_logger):
    stream = io.StringIO()

    configure_logging(level="INFO", format_type="key-value", stream=stream)
    logging.getLogger("jobboard.test").debug("hidden")
    logging.getLogger("jobboard.test").warning("shown")

    output = stream.getvalue()
    assert "[WARNING] jobboard.test: shown" in output
    assert "hidden" not in output


@pytest.mark.parametrize(
    "level,format_type",
    [("VERBOSE", "json"), ("INFO", "xml")],
)
def test_configure_logging_rejects_invalid(level, format_type):
    with pytest.raises(ValueError):
        configure_logging(level=level, format_type=format_type)
