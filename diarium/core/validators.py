#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for all Diarium operations.

Provides type-safe conversion, validation, and normalization functions
used by the entry, term and attachment managers.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional

from .exceptions import ValidationError

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MARKUP_TAG = re.compile(r"<[^>]*>")

OWNER_MAX_LENGTH = 64


class DataValidator:
    """Centralized data validation for database operations."""

    @staticmethod
    def validate_owner(owner: Any) -> str:
        """
        Validate an owner identifier.

        Owner ids double as blob store directory names, so separators,
        parent references and control characters are rejected.

        Args:
            owner: Owner identifier

        Returns:
            The owner identifier, unchanged

        Raises:
            ValidationError: If the owner is empty, too long or unsafe
        """
        if not isinstance(owner, str) or not owner.strip():
            raise ValidationError("Owner is required")
        if len(owner) > OWNER_MAX_LENGTH:
            raise ValidationError(
                f"Owner must be at most {OWNER_MAX_LENGTH} characters"
            )
        if owner in (".", "..") or any(ch in owner for ch in ("/", "\\", "\x00")):
            raise ValidationError(f"Invalid owner: {owner!r}")
        return owner

    @staticmethod
    def normalize_date(date_value: Any) -> Optional[date]:
        """
        Normalize various date inputs to date object.

        Strings must be strict ISO calendar dates (YYYY-MM-DD).

        Args:
            date_value: Date string, date object, or datetime

        Returns:
            Normalized date object or None

        Raises:
            ValidationError: If a string is malformed or not a real date
        """
        if isinstance(date_value, datetime):
            return date_value.date()
        if isinstance(date_value, date):
            return date_value
        if isinstance(date_value, str):
            value = date_value.strip()
            if not _DATE_PATTERN.match(value):
                raise ValidationError("Invalid date format. Expected YYYY-MM-DD")
            try:
                return date.fromisoformat(value)
            except ValueError as e:
                raise ValidationError(f"Invalid date: {value}") from e
        return None

    @staticmethod
    def normalize_datetime(value: Any) -> Optional[datetime]:
        """
        Normalize a datetime or ISO-8601 string.

        Args:
            value: datetime object or ISO string

        Returns:
            datetime or None

        Raises:
            ValidationError: If the string cannot be parsed
        """
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip())
            except ValueError as e:
                raise ValidationError("Invalid datetime format") from e
        raise ValidationError(f"Invalid datetime type: {type(value).__name__}")

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize string value.

        Args:
            value: Value to normalize

        Returns:
            Stripped string, or None when empty
        """
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        """
        Convert value to integer safely.

        Args:
            value: Value to convert

        Returns:
            Integer value or None
        """
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def strip_markup(text: Optional[str]) -> str:
        """Remove markup tags and invalid UTF-8 sequences from free text."""
        if not text:
            return ""
        cleaned = _MARKUP_TAG.sub("", text)
        return cleaned.encode("utf-8", "ignore").decode("utf-8", "ignore")
