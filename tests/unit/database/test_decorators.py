"""Tests for database decorators."""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from diarium.core.exceptions import DatabaseError, NotFoundError, ValidationError
from diarium.core.logging_manager import DiariumLogger
from diarium.database.decorators import handle_db_errors, log_database_operation
from diarium.database.models import Kind


class _Service:
    """Minimal object carrying a logger, like every manager."""

    def __init__(self, logger=None):
        self.logger = logger

    @log_database_operation("sync_terms")
    def sync(self, owner, entry_id, kind, error=None):
        if error is not None:
            raise error
        return "ok"


class TestHandleDbErrors:
    """Tests for handle_db_errors decorator."""

    def test_integrity_error_becomes_database_error(self):
        """IntegrityError maps to an opaque DatabaseError."""

        @handle_db_errors
        def insert():
            raise IntegrityError("statement", {}, Exception("duplicate"))

        with pytest.raises(DatabaseError) as exc_info:
            insert()

        assert str(exc_info.value) == "Data integrity violation"
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    def test_sqlalchemy_error_becomes_database_error(self):
        """Any other SQLAlchemyError maps to DatabaseError."""

        @handle_db_errors
        def query():
            raise SQLAlchemyError("connection failed")

        with pytest.raises(DatabaseError, match="Database operation failed"):
            query()

    def test_other_exceptions_propagate(self):
        """Domain errors pass through untouched."""

        @handle_db_errors
        def lookup():
            raise NotFoundError("Entry not found: 1")

        with pytest.raises(NotFoundError):
            lookup()


class TestLogDatabaseOperation:
    """Tests for log_database_operation decorator."""

    def test_success_logs_completion(self):
        """Successful calls log <name>_completed."""
        logger = MagicMock(spec=DiariumLogger)
        assert _Service(logger).sync("alice", 1, Kind.TAG) == "ok"

        logger.log_operation.assert_called_once()
        assert logger.log_operation.call_args[0][0] == "sync_terms_completed"
        assert logger.log_operation.call_args[0][1]["success"] is True

    def test_expected_errors_are_not_logged_as_errors(self):
        """Validation failures are debug-level only."""
        logger = MagicMock(spec=DiariumLogger)

        with pytest.raises(ValidationError):
            _Service(logger).sync("alice", 1, Kind.TAG, error=ValidationError("bad"))

        logger.log_error.assert_not_called()

    def test_internal_errors_logged_with_call_context(self):
        """Internal failures carry owner, entry and kind in the log context."""
        logger = MagicMock(spec=DiariumLogger)

        with pytest.raises(DatabaseError):
            _Service(logger).sync(
                "alice", 42, Kind.SYMPTOM, error=DatabaseError("Database operation failed")
            )

        logger.log_error.assert_called_once()
        context = logger.log_error.call_args[0][1]
        assert context["operation"] == "sync_terms"
        assert context["owner"] == "alice"
        assert context["entry_id"] == 42
        assert context["kind"] == "symptom"

    def test_works_without_logger(self):
        """A missing logger is tolerated."""
        assert _Service(None).sync("alice", 1, "tag") == "ok"
