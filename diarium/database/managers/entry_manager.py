#!/usr/bin/env python3
"""
entry_manager.py
--------------------
Manager for Entry CRUD operations and rating payloads.

Entries are the anchor every link and attachment points at. This manager
only touches the entries table: removing an entry together with its
links and files is the job of the CascadeManager.

Key Features:
    - Entry creation (explicit, or on first write for a date)
    - Lookups by id, date, date range and recency, with ownership checks
    - Strict date/datetime validation on update
    - Rating payload codec (mood and wellbeing, clamped to 1..5)
    - Conversion to EntryRecord value objects

Usage:
    entries = EntryManager(session, logger)
    entry = entries.create("alice", "2024-01-15", "Slept badly")
    entries.update("alice", entry.id, ratings={"mood": 4})
"""
from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from diarium.core.exceptions import NotFoundError, OwnershipError, ValidationError
from diarium.core.validators import DataValidator
from diarium.database.decorators import handle_db_errors, log_database_operation
from diarium.database.models import Entry
from diarium.database.records import EntryRecord
from .base_manager import BaseManager

RATING_KEYS = ("mood", "wellbeing")
RATING_MIN = 1
RATING_MAX = 5

# Marks an update argument that was not supplied (None clears ratings)
_UNSET: Any = object()


class EntryManager(BaseManager):
    """Manager for the entries table."""

    # -------------------------------------------------------------------------
    # Ratings codec
    # -------------------------------------------------------------------------

    @staticmethod
    def encode_ratings(ratings: Optional[Dict[str, Any]]) -> Optional[str]:
        """
        Encode a ratings mapping for storage.

        Only ``mood`` and ``wellbeing`` are kept, each clamped to 1..5.
        Unknown keys are dropped.

        Args:
            ratings: Mapping such as {"mood": 4, "wellbeing": "2"}

        Returns:
            JSON text, or None when nothing is left to store

        Raises:
            ValidationError: If a kept rating is not an integer
        """
        if not ratings:
            return None
        if not isinstance(ratings, dict):
            raise ValidationError("Ratings must be a mapping")

        clean: Dict[str, int] = {}
        for key in RATING_KEYS:
            if ratings.get(key) is None:
                continue
            value = DataValidator.normalize_int(ratings[key])
            if value is None:
                raise ValidationError(f"Rating '{key}' must be an integer")
            clean[key] = max(RATING_MIN, min(RATING_MAX, value))

        return json.dumps(clean) if clean else None

    @staticmethod
    def decode_ratings(payload: Optional[str]) -> Optional[Dict[str, int]]:
        """Decode a stored ratings payload (None when absent)."""
        if not payload:
            return None
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValidationError("Stored ratings are not valid JSON") from e
        return data if isinstance(data, dict) else None

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get(self, entry_id: int) -> Optional[Entry]:
        """Retrieve an entry by id, or None."""
        return self._get_by_id(Entry, entry_id)

    @handle_db_errors
    def get_for_owner(self, owner: str, entry_id: int) -> Entry:
        """
        Retrieve an entry and check it belongs to ``owner``.

        Raises:
            NotFoundError: If the entry does not exist
            OwnershipError: If it belongs to another owner
        """
        entry = self._get_by_id(Entry, entry_id)
        if entry is None:
            raise NotFoundError(f"Entry not found: {entry_id}")
        if entry.owner != owner:
            raise OwnershipError(f"Entry {entry_id} does not belong to {owner}")
        return entry

    @handle_db_errors
    def get_by_date(self, owner: str, entry_date: Any) -> List[Entry]:
        """All entries of an owner for one date, oldest first."""
        day = DataValidator.normalize_date(entry_date)
        return list(
            self.session.scalars(
                select(Entry)
                .where(Entry.owner == owner, Entry.entry_date == day)
                .order_by(Entry.created_at, Entry.id)
            )
        )

    def get_first_for_date(self, owner: str, entry_date: Any) -> Optional[Entry]:
        """The oldest entry of an owner for one date, or None."""
        entries = self.get_by_date(owner, entry_date)
        return entries[0] if entries else None

    @handle_db_errors
    def get_range(self, owner: str, start: Any, end: Any) -> List[Entry]:
        """Entries with start <= date <= end, by date then creation time."""
        start_day = DataValidator.normalize_date(start)
        end_day = DataValidator.normalize_date(end)
        return list(
            self.session.scalars(
                select(Entry)
                .where(
                    Entry.owner == owner,
                    Entry.entry_date >= start_day,
                    Entry.entry_date <= end_day,
                )
                .order_by(Entry.entry_date, Entry.created_at, Entry.id)
            )
        )

    @handle_db_errors
    def get_all(self, owner: str) -> List[Entry]:
        """Every entry of an owner, by date then creation time."""
        return list(
            self.session.scalars(
                select(Entry)
                .where(Entry.owner == owner)
                .order_by(Entry.entry_date, Entry.created_at, Entry.id)
            )
        )

    @handle_db_errors
    def get_last(self, owner: str, amount: int) -> List[Entry]:
        """The ``amount`` most recently created entries, newest first."""
        return list(
            self.session.scalars(
                select(Entry)
                .where(Entry.owner == owner)
                .order_by(Entry.created_at.desc(), Entry.id.desc())
                .limit(max(0, int(amount)))
            )
        )

    @handle_db_errors
    def get_all_dates(self, owner: str) -> List[date]:
        """Distinct dates that have at least one entry, ascending."""
        return list(
            self.session.scalars(
                select(Entry.entry_date)
                .where(Entry.owner == owner)
                .distinct()
                .order_by(Entry.entry_date)
            )
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_entry")
    def create(
        self,
        owner: str,
        entry_date: Any,
        content: Optional[str] = "",
        ratings: Optional[Dict[str, Any]] = None,
    ) -> Entry:
        """
        Create a new entry.

        Args:
            owner: Owner identifier
            entry_date: YYYY-MM-DD string or date
            content: Free text; markup tags are stripped
            ratings: Optional ratings mapping

        Returns:
            The persisted entry

        Raises:
            ValidationError: On an invalid owner, date or rating
        """
        DataValidator.validate_owner(owner)
        day = DataValidator.normalize_date(entry_date)
        if day is None:
            raise ValidationError("Entry date is required")

        def _do_create():
            entry = Entry(
                owner=owner,
                entry_date=day,
                content=DataValidator.strip_markup(content),
                ratings=self.encode_ratings(ratings),
            )
            self.session.add(entry)
            self.session.flush()
            return entry

        return self._execute_with_retry(_do_create)

    @handle_db_errors
    @log_database_operation("write_entry_for_date")
    def write_for_date(self, owner: str, entry_date: Any, content: Optional[str]) -> Entry:
        """
        Write the content of the first entry of a date, creating it if needed.
        """
        entry = self.get_first_for_date(owner, entry_date)
        if entry is None:
            return self.create(owner, entry_date, content)

        entry.content = DataValidator.strip_markup(content)
        self.session.flush()
        return entry

    @handle_db_errors
    @log_database_operation("update_entry")
    def update(
        self,
        owner: str,
        entry_id: int,
        content: Optional[str] = None,
        ratings: Any = _UNSET,
        entry_date: Any = None,
        created_at: Any = None,
    ) -> Entry:
        """
        Update an entry owned by ``owner``.

        Arguments left out keep their current value; passing
        ``ratings=None`` clears the ratings.

        Raises:
            NotFoundError: If the entry does not exist
            OwnershipError: If it belongs to another owner
            ValidationError: On an invalid date, datetime or rating
        """
        entry = self.get_for_owner(owner, entry_id)

        # Validate everything before touching the row
        day = DataValidator.normalize_date(entry_date) if entry_date is not None else None
        created = DataValidator.normalize_datetime(created_at)
        encoded = self.encode_ratings(ratings) if ratings is not _UNSET else _UNSET

        if content is not None:
            entry.content = DataValidator.strip_markup(content)
        if encoded is not _UNSET:
            entry.ratings = encoded
        if day is not None:
            entry.entry_date = day
        if created is not None:
            entry.created_at = created

        self.session.flush()
        return entry

    @handle_db_errors
    def delete_row(self, entry: Entry) -> None:
        """
        Delete the entry row only.

        Links and attachments are not touched; call this last, after
        everything referencing the entry is gone.
        """
        self.session.delete(entry)
        self.session.flush()

    @handle_db_errors
    def delete_all_for_owner(self, owner: str) -> int:
        """Delete every entry row of an owner."""
        return self._bulk_delete(Entry, Entry.owner == owner)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def to_record(self, entry: Entry) -> EntryRecord:
        """Snapshot an entry as a value object."""
        return EntryRecord(
            id=entry.id,
            owner=entry.owner,
            entry_date=entry.entry_date,
            content=entry.content or "",
            ratings=self.decode_ratings(entry.ratings),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )
