"""Tests for structured logging."""

import json
import logging

from blockcache.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    cache_key_var,
    configure_logging,
)


def _record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="blockcache.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Test JSON log output."""

    def test_basic_fields(self) -> None:
        """Output carries level, logger and message."""
        data = json.loads(JsonFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "blockcache.test"
        assert data["message"] == "hello"
        assert "cache_key" not in data

    def test_context_included(self) -> None:
        """LogContext values appear in the output."""
        with LogContext(request_id="req-1", cache_key="blockcache:render:QQ:abc"):
            data = json.loads(JsonFormatter().format(_record()))
        assert data["request_id"] == "req-1"
        assert data["cache_key"] == "blockcache:render:QQ:abc"

    def test_extra_fields(self) -> None:
        """Extra record attributes are serialized."""
        data = json.loads(JsonFormatter().format(_record(block_type="core/p", obj=object())))
        assert data["block_type"] == "core/p"
        assert isinstance(data["obj"], str)


class TestLogContext:
    """Test correlation context handling."""

    def test_context_reset_on_exit(self) -> None:
        """Values are restored after the block."""
        with LogContext(cache_key="outer"):
            with LogContext(cache_key="inner"):
                assert cache_key_var.get() == "inner"
            assert cache_key_var.get() == "outer"
        assert cache_key_var.get() == ""

    def test_unknown_keys_ignored(self) -> None:
        """Unknown names do not raise."""
        with LogContext(tenant="x"):
            pass


class TestConsoleFormatter:
    """Test human-readable output."""

    def test_format(self) -> None:
        line = ConsoleFormatter(use_colors=False).format(_record("rendering"))
        assert "| INFO" in line
        assert "rendering" in line


class TestConfigureLogging:
    """Test root logger configuration."""

    def test_installs_single_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(json_format=True, level="debug")
            configure_logging(json_format=False, level="warning")
            assert len(root.handlers) == 1
            assert root.level == logging.WARNING
            assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
