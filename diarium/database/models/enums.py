"""
Enumeration Types
------------------

Enum classes for the Diarium database models.

Enums:
    - Kind: Which dictionary an association term belongs to
      (tag, symptom, medication)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import Any, List


class Kind(str, Enum):
    """
    Enumeration of association term kinds.
    - TAG: Free-form keyword, stored lower-cased
    - SYMPTOM: Health symptom, stored as typed (trimmed only)
    - MEDICATION: Medication, stored as typed (trimmed only)
    """

    TAG = "tag"
    SYMPTOM = "symptom"
    MEDICATION = "medication"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available kind choices."""
        return [kind.value for kind in cls]

    @classmethod
    def coerce(cls, value: Any) -> "Kind":
        """
        Convert a Kind or its string value to a Kind.

        Raises:
            ValueError: If the value is not a known kind. An unknown kind
                is a programming error, not a user-facing validation failure.
        """
        if isinstance(value, cls):
            return value
        return cls(value)

    @property
    def supports_category(self) -> bool:
        """Whether terms of this kind carry an optional category."""
        return self is not Kind.TAG

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.title()
