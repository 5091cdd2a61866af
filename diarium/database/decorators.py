#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators for database operations.
"""
import inspect
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from diarium.core.exceptions import (
    DatabaseError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)

# Outcomes callers are expected to handle; never logged as internal errors
EXPECTED_ERRORS = (ValidationError, NotFoundError, OwnershipError)

# Arguments copied into the error log context when present
CONTEXT_ARGS = ("owner", "entry_id", "kind", "attachment_id", "term_id")


def _call_context(function: Callable, args: tuple, kwargs: dict) -> Dict[str, Any]:
    """Pick identifying arguments (owner, entry id, ...) out of a call."""
    try:
        bound = inspect.signature(function).bind_partial(*args, **kwargs)
    except TypeError:
        return {}
    context = {}
    for name in CONTEXT_ARGS:
        if name in bound.arguments:
            value = bound.arguments[name]
            context[name] = getattr(value, "value", value)
    return context


def log_database_operation(operation_name: str):
    """
    Decorator to log database operations with timing and context.

    Internal failures are logged with the operation name plus the owner,
    entry and other identifying arguments of the call. Validation,
    not-found and ownership outcomes are logged at debug level only.

    Args:
        operation_name: Name of the operation being logged

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"

            if hasattr(self, "logger") and self.logger:
                self.logger.log_debug(
                    f"Starting {operation_name}",
                    {
                        "operation_id": operation_id,
                        "args_count": len(args),
                        "kwargs_keys": list(kwargs.keys()),
                    },
                )

            try:
                result = function(self, *args, **kwargs)

                duration = (datetime.now() - start_time).total_seconds()
                if hasattr(self, "logger") and self.logger:
                    self.logger.log_operation(
                        f"{operation_name}_completed",
                        {
                            "operation_id": operation_id,
                            "duration_seconds": duration,
                            "success": True,
                        },
                    )

                return result

            except EXPECTED_ERRORS as e:
                if hasattr(self, "logger") and self.logger:
                    self.logger.log_debug(
                        f"{operation_name} rejected: {e}",
                        {"operation_id": operation_id, "error_type": type(e).__name__},
                    )
                raise

            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                if hasattr(self, "logger") and self.logger:
                    context = {
                        "operation": operation_name,
                        "operation_id": operation_id,
                        "duration_seconds": duration,
                    }
                    context.update(_call_context(function, (self,) + args, kwargs))
                    self.logger.log_error(e, context)
                raise

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator to handle common database errors.

    SQLAlchemy failures become an opaque DatabaseError; the original
    exception stays available as ``__cause__`` for the logs.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            raise DatabaseError("Data integrity violation") from e
        except SQLAlchemyError as e:
            raise DatabaseError("Database operation failed") from e

    return wrapper
