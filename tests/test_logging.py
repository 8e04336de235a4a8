"""Tests for logging configuration."""

import json
import logging
import sys

from magic_folder.config import Environment
from magic_folder.logging_config import (
    DevFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)


def make_record(**overrides: object) -> logging.LogRecord:
    fields: dict = {
        "name": "test",
        "level": logging.INFO,
        "pathname": "test.py",
        "lineno": 10,
        "msg": "Test message",
        "args": (),
        "exc_info": None,
    }
    fields.update(overrides)
    return logging.LogRecord(**fields)


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_format_basic_message(self) -> None:
        """Basic log message is formatted as JSON."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data

    def test_format_includes_file_info(self) -> None:
        """Log includes file and line information."""
        record = make_record(pathname="/app/module.py", lineno=42)
        data = json.loads(JSONFormatter().format(record))

        assert data["file"] == "/app/module.py:42"

    def test_format_includes_extra_context(self) -> None:
        """Fields passed through extra= end up in the context."""
        record = make_record()
        record.path = "/docs/a.txt"
        record.orphaned_vector_key = "/docs/a.txt"

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {
            "path": "/docs/a.txt",
            "orphaned_vector_key": "/docs/a.txt",
        }

    def test_format_without_extra_has_no_context(self) -> None:
        """Plain records carry no context key."""
        data = json.loads(JSONFormatter().format(make_record()))
        assert "context" not in data

    def test_format_with_exception(self) -> None:
        """Exception info is included in output."""
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(
            JSONFormatter().format(make_record(level=logging.ERROR, exc_info=exc_info))
        )

        assert "ValueError" in data["exception"]


class TestDevFormatter:
    """Tests for development formatter."""

    def test_format_includes_level(self) -> None:
        """Development format includes level."""
        record = make_record(name="test.module", level=logging.WARNING, msg="Warning message")
        output = DevFormatter().format(record)

        assert "WARNING" in output
        assert "test.module" in output
        assert "Warning message" in output


class TestSetupLogging:
    """Tests for logging setup."""

    def test_returns_root_logger(self) -> None:
        """setup_logging returns root logger."""
        assert setup_logging(level="INFO", json_output=False) is logging.getLogger()

    def test_uses_json_in_production(self) -> None:
        """JSON output is used in production environment."""
        setup_logging(environment=Environment.PRODUCTION)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_uses_dev_formatter_in_development(self) -> None:
        """Dev formatter is used in development environment."""
        setup_logging(environment=Environment.DEVELOPMENT)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, DevFormatter)

    def test_level_override(self) -> None:
        """Log level can be set."""
        setup_logging(level="DEBUG", json_output=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        """Unknown level names mean INFO."""
        setup_logging(level="CHATTY", json_output=False)
        assert logging.getLogger().level == logging.INFO

    def test_json_output_override(self) -> None:
        """JSON output can be forced."""
        setup_logging(json_output=True, environment=Environment.DEVELOPMENT)
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_quiets_http_loggers(self) -> None:
        """HTTP client loggers are raised to WARNING."""
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestGetLogger:
    """Tests for named logger retrieval."""

    def test_returns_named_logger(self) -> None:
        """get_logger returns a logger with the given name."""
        assert get_logger("magic_folder.module").name == "magic_folder.module"
