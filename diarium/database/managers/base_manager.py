#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common query helpers and utilities.
All managers should inherit from this class.

Key Features:
    - Retry logic for database lock handling
    - Race-tolerant get-or-create inside a SAVEPOINT
    - Lookup helpers by id
    - Consistent logging through safe_logger

Usage:
    Subclass BaseManager for each concern:

    class TermManager(BaseManager):
        def find_or_create(self, owner, kind, name) -> AssociationTerm:
            return self._get_or_create(
                AssociationTerm, {"owner": owner, "kind": kind, "name": name}
            )
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from typing import Any, Callable, Dict, Optional, Protocol, Type, TypeVar

# --- Third party imports ---
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Mapped, Session
from sqlalchemy.orm.util import identity_key

# --- Local imports ---
from diarium.core.exceptions import DatabaseError
from diarium.core.logging_manager import DiariumLogger, safe_logger


class HasId(Protocol):
    """Protocol for objects that have an id attribute."""

    id: Mapped[int]


T = TypeVar("T", bound=HasId)


class BaseManager(ABC):
    """
    Abstract base manager providing common utilities.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[DiariumLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable,
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Any:
        """
        Execute database operation with retry on lock.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            OperationalError: If all retries exhausted
            DatabaseError: If retry loop completes without success
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()

                if (
                    "locked" in error_msg or "busy" in error_msg
                ) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)  # Exponential backoff

                    safe_logger(self.logger).log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )

                    time.sleep(wait_time)
                    continue

                raise

        raise DatabaseError("Retry loop completed without success")

    def _lookup(self, model_class: Type[T], lookup_fields: Dict[str, Any]) -> Optional[T]:
        """Return the first row matching every field, or None."""
        return self.session.query(model_class).filter_by(**lookup_fields).first()

    def _get_or_create(
        self,
        model_class: Type[T],
        lookup_fields: Dict[str, Any],
        extra_fields: Optional[Dict[str, Any]] = None,
        existing: Optional[T] = None,
    ) -> T:
        """
        Create a row unless one matching ``lookup_fields`` already exists.

        The insert runs in its own SAVEPOINT. A concurrent writer can create
        the same row between our check and our insert; the store's unique
        constraint then rejects ours, the SAVEPOINT is rolled back alone and
        the winner's row is re-fetched.

        Args:
            model_class: ORM model class to query or create
            lookup_fields: Dictionary of field_name: value to filter/create
            extra_fields: Additional fields for new object creation only
            existing: Result of a lookup the caller already made, if any

        Returns:
            ORM instance of the model class

        Raises:
            DatabaseError: If the insert was rejected and no row can be found
        """
        if existing is not None:
            return existing

        fields = lookup_fields.copy()
        if extra_fields:
            fields.update(extra_fields)

        try:
            with self.session.begin_nested():
                obj = model_class(**fields)
                self.session.add(obj)
                self.session.flush()
            return obj
        except IntegrityError:
            safe_logger(self.logger).log_debug(
                f"{model_class.__name__} created concurrently, re-fetching",
                {k: getattr(v, "value", v) for k, v in lookup_fields.items()},
            )
            obj = self._lookup(model_class, lookup_fields)
            if obj is not None:
                return obj
            raise DatabaseError(
                f"Failed to create {model_class.__name__} even after handling race condition"
            )

    # -------------------------------------------------------------------------
    # Generic Lookup Helpers
    # -------------------------------------------------------------------------

    def _get_by_id(self, model_class: Type[T], entity_id: Any) -> Optional[T]:
        """
        Get entity by ID.

        Args:
            model_class: ORM model class
            entity_id: The entity ID

        Returns:
            Entity if found, None otherwise (also for non-integer ids)
        """
        if isinstance(entity_id, bool) or not isinstance(entity_id, int):
            return None
        return self.session.get(model_class, entity_id)

    def _bulk_delete(self, model_class: Type[T], *criteria: Any) -> int:
        """
        Delete every row matching ``criteria`` in a single DELETE statement.

        Matching ids are read first so that instances already loaded in the
        session can be expunged; later ``session.get`` calls then go back to
        the store instead of returning a deleted row from the identity map.

        Returns:
            Number of rows deleted
        """
        ids = list(self.session.scalars(select(model_class.id).where(*criteria)))
        if not ids:
            return 0

        result = self._execute_with_retry(
            lambda: self.session.execute(
                delete(model_class)
                .where(*criteria)
                .execution_options(synchronize_session=False)
            )
        )

        for obj_id in ids:
            obj = self.session.identity_map.get(identity_key(model_class, obj_id))
            if obj is not None:
                self.session.expunge(obj)

        return result.rowcount
