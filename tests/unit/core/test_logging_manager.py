"""
Tests for logging_manager module.

Tests the DiariumLogger file output, CLI error formatting, the
safe_logger function and the NullLogger class.
"""
from unittest.mock import MagicMock

import click
import pytest

from diarium.core.exceptions import NotFoundError
from diarium.core.logging_manager import (
    DiariumLogger,
    NullLogger,
    format_cli_error,
    handle_cli_error,
    safe_logger,
)


def _raise(error):
    try:
        raise error
    except type(error) as e:
        return e


class TestDiariumLogger:
    """Tests for DiariumLogger file handlers."""

    def test_creates_component_and_error_logs(self, tmp_dir):
        """Operations go to <component>.log, errors to errors.log."""
        logger = DiariumLogger(tmp_dir / "logs", component_name="unit")
        try:
            logger.log_operation("entry_created", {"owner": "alice"})
            try:
                raise ValueError("boom")
            except ValueError as e:
                logger.log_error(e, {"operation": "sync_terms", "entry_id": 7})
        finally:
            logger.close()

        main_log = (tmp_dir / "logs" / "unit.log").read_text()
        error_log = (tmp_dir / "logs" / "errors.log").read_text()
        assert "OPERATION - entry_created" in main_log
        assert '"owner": "alice"' in main_log
        assert "ERROR - ValueError: boom" in main_log
        assert "ValueError: boom" in error_log
        assert "operation=sync_terms, entry_id=7" in error_log

    def test_error_logged_after_except_keeps_traceback(self, tmp_dir):
        """The traceback comes from the exception, not the current handler."""
        error = _raise(RuntimeError("disk full"))
        logger = DiariumLogger(tmp_dir, component_name="unit_trace")
        try:
            logger.log_error(error)
        finally:
            logger.close()

        error_log = (tmp_dir / "errors.log").read_text()
        assert "Traceback:" in error_log
        assert "in _raise" in error_log

    def test_records_name_the_calling_function(self, tmp_dir):
        logger = DiariumLogger(tmp_dir, component_name="unit_caller")

        def sweep_terms():
            logger.log_debug("sweep", {"removed": 2})

        try:
            sweep_terms()
        finally:
            logger.close()

        assert "[sweep_terms:" in (tmp_dir / "unit_caller.log").read_text()

    def test_reopening_component_replaces_handlers(self, tmp_dir):
        """A second logger for the same component does not duplicate lines."""
        first = DiariumLogger(tmp_dir, component_name="unit_reopen")
        second = DiariumLogger(tmp_dir, component_name="unit_reopen")
        try:
            assert len(second.main_logger.handlers) == 1
            second.log_info("once")
        finally:
            first.close()
            second.close()

        assert (tmp_dir / "unit_reopen.log").read_text().count("INFO - once") == 1

    def test_close_detaches_handlers(self, tmp_dir):
        """close() removes every handler from both loggers."""
        logger = DiariumLogger(tmp_dir, component_name="unit_close")
        logger.close()

        assert logger.main_logger.handlers == []
        assert logger.error_logger.handlers == []


class TestCliErrors:
    """Tests for terminal error messages."""

    def test_format_cli_error(self):
        assert format_cli_error(NotFoundError("Entry 3 not found")) == (
            "Error (NotFoundError): Entry 3 not found"
        )

    def test_format_cli_error_with_traceback(self):
        message = format_cli_error(_raise(ValueError("bad")), show_traceback=True)
        assert message.startswith("Error (ValueError): bad\n\nTraceback")

    def test_log_cli_error_returns_message(self, tmp_dir):
        logger = DiariumLogger(tmp_dir, component_name="unit_cli")
        try:
            message = logger.log_cli_error(RuntimeError("disk full"))
        finally:
            logger.close()

        assert message == "Error (RuntimeError): disk full"
        assert "source=cli" in (tmp_dir / "errors.log").read_text()

    def test_handle_cli_error_exits(self):
        ctx = click.Context(click.Command("attach"), obj={})
        with pytest.raises(click.exceptions.Exit) as exc_info:
            handle_cli_error(ctx, NotFoundError("gone"), "attach", exit_code=3)
        assert exc_info.value.exit_code == 3


class TestNullLogger:
    """Tests for NullLogger class."""

    def test_null_logger_methods_are_no_ops(self):
        """Every logging method accepts its arguments and does nothing."""
        logger = NullLogger()
        logger.log_operation("op", {"key": "value"})
        logger.log_error(ValueError("x"), {"context": "test"})
        logger.log_debug("debug")
        logger.log_info("info", {"key": "value"})
        logger.log_warning("warning")
        logger.close()

    def test_null_logger_is_a_diarium_logger(self):
        assert isinstance(NullLogger(), DiariumLogger)

    def test_null_logger_log_cli_error_returns_formatted(self):
        result = NullLogger().log_cli_error(ValueError("test error"))
        assert result == "Error (ValueError): test error"


class TestSafeLogger:
    """Tests for safe_logger function."""

    def test_safe_logger_returns_logger_when_provided(self):
        """safe_logger should return the same logger when not None."""
        mock_logger = MagicMock(spec=DiariumLogger)
        assert safe_logger(mock_logger) is mock_logger

    def test_safe_logger_returns_null_logger_when_none(self):
        assert isinstance(safe_logger(None), NullLogger)

    def test_safe_logger_null_logger_is_singleton(self):
        assert safe_logger(None) is safe_logger(None)
