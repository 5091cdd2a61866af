#!/usr/bin/env python3
"""
logging_manager.py
------------------
Rotating-file logging for diarium components.

Each component (the database facade, the blob store, the CLI) writes two
files under its own log directory:

    <component>.log    every record at DEBUG and above
    errors.log         errors with their context and traceback

Lines read ``TAG - message: {json details}``, so one line carries the
operation together with the owner, entry or attachment it touched.
Component loggers live under the ``diarium.`` namespace and do not
propagate to the root logger, where alembic's ``fileConfig`` installs
its own handlers.

Code that may run without logging calls ``safe_logger(logger)``, which
hands back a shared NullLogger when ``logger`` is None.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


def _format_details(details: Dict[str, Any]) -> str:
    return json.dumps(details, default=str)


def _traceback_text(error: BaseException) -> str:
    """Render the traceback attached to ``error`` (empty if it was never raised)."""
    if error.__traceback__ is None:
        return ""
    return "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    ).rstrip()


def format_cli_error(error: BaseException, show_traceback: bool = False) -> str:
    """
    One-line message shown on the terminal for a failed command.

    Examples:
        >>> format_cli_error(NotFoundError("Entry 3 not found"))
        'Error (NotFoundError): Entry 3 not found'
    """
    message = f"Error ({type(error).__name__}): {error}"
    if show_traceback:
        trace = _traceback_text(error)
        if trace:
            message = f"{message}\n\n{trace}"
    return message


class DiariumLogger:
    """
    Two-file rotating logger for one diarium component.

    Attributes:
        log_dir: Directory holding the component's log files
        component_name: Component label and stem of the main log file
        main_logger: Receives every record
        error_logger: Receives errors only
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "diarium",
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ) -> None:
        """
        Open (or reopen) the log files of a component.

        Args:
            log_dir: Directory for the log files, created if missing
            component_name: e.g. 'database' or 'cli'
            max_bytes: Size at which a log file is rotated
            backup_count: Rotated files kept per log
        """
        self.log_dir: Optional[Path] = Path(log_dir)
        self.component_name = component_name
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = self._build_logger(
            f"diarium.{component_name}",
            self.log_dir / f"{component_name}.log",
            logging.DEBUG,
            max_bytes,
            backup_count,
        )
        self.error_logger = self._build_logger(
            f"diarium.{component_name}.errors",
            self.log_dir / "errors.log",
            logging.ERROR,
            max_bytes,
            backup_count,
        )

    @staticmethod
    def _build_logger(
        name: str, path: Path, level: int, max_bytes: int, backup_count: int
    ) -> logging.Logger:
        """
        Attach a single rotating file handler to the named logger.

        Handlers left by an earlier DiariumLogger for the same component
        are closed first.
        """
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(level)
        logger.propagate = False

        handler = RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        return logger

    def close(self) -> None:
        """Close and detach the file handlers."""
        for logger in (self.main_logger, self.error_logger):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def _emit(
        self, level: int, tag: str, message: str, details: Optional[Dict[str, Any]]
    ) -> None:
        text = f"{tag} - {message}"
        if details:
            text = f"{text}: {_format_details(details)}"
        # caller of log_debug/log_info/... is two frames up
        self.main_logger.log(level, text, stacklevel=3)

    def log_operation(
        self, operation: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record a completed operation (``OPERATION - name: {...}``)."""
        self._emit(logging.INFO, "OPERATION", operation, details)

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, "DEBUG", message, details)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, "INFO", message, details)

    def log_warning(
        self, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record a recoverable problem, e.g. a blob that was already gone."""
        self._emit(logging.WARNING, "WARNING", message, details)

    def log_error(
        self, error: BaseException, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Write an error with its context and traceback to errors.log.

        The traceback is read from the exception, so errors logged after
        their ``except`` block has finished keep their stack. A one-line
        summary also goes to the component log.

        Args:
            error: The exception
            context: Identifying values (operation, owner, entry_id, ...)
        """
        summary = f"ERROR - {type(error).__name__}: {error}"
        lines = [summary]
        if context:
            lines.append("Context: " + ", ".join(f"{k}={v}" for k, v in context.items()))
        trace = _traceback_text(error)
        if trace:
            lines.append(f"Traceback:\n{trace}")

        self.error_logger.error("\n".join(lines), stacklevel=2)
        self.main_logger.error(summary, stacklevel=2)

    def log_cli_error(
        self,
        error: BaseException,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """Log a command failure and return the message for the terminal."""
        self.log_error(error, context or {"source": "cli"})
        return format_cli_error(error, show_traceback)


class NullLogger(DiariumLogger):
    """
    DiariumLogger that writes nothing.

    ``log_cli_error`` still returns the formatted terminal message.
    """

    def __init__(self) -> None:
        self.log_dir = None
        self.component_name = "null"

    def _emit(self, level, tag, message, details) -> None:
        pass

    def log_error(self, error, context=None) -> None:
        pass

    def close(self) -> None:
        pass


_null_logger = NullLogger()


def safe_logger(logger: Optional[DiariumLogger]) -> DiariumLogger:
    """
    Return ``logger``, or the shared NullLogger when it is None.

    Usage:
        safe_logger(self.logger).log_warning("Blob already gone", {...})
    """
    return logger if logger is not None else _null_logger


def handle_cli_error(
    ctx: click.Context,
    error: BaseException,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Report a failed command and exit.

    The full error goes to the log (when the command opened one); the
    terminal gets a one-line message, plus the traceback under
    ``--verbose``.

    Args:
        ctx: Click context; ``ctx.obj`` may hold 'logger' and 'verbose'
        error: The exception
        operation: Command name, e.g. 'attach' or 'purge_owner'
        additional_context: Identifying values such as owner or entry id
        exit_code: Process exit status

    Raises:
        click.exceptions.Exit: Always
    """
    obj = ctx.obj or {}
    context = {"operation": operation}
    if additional_context:
        context.update(additional_context)

    message = safe_logger(obj.get("logger")).log_cli_error(
        error, context, show_traceback=obj.get("verbose", False)
    )
    click.echo(message, err=True)
    ctx.exit(exit_code)
