#!/usr/bin/env python3
"""
records.py
--------------------
Plain value records returned by the managers.

Managers hand these immutable snapshots to callers instead of live ORM
objects, so nothing outside the session can mutate identity-mapped state.
Each record exposes ``to_dict()`` with the outward shape used by
controllers and export code.

Records:
    TermRecord: {id, name, category}
    TermCount: TermRecord plus usage count
    AttachmentRecord: Attachment metadata
    EntryRecord: Entry snapshot with decoded ratings
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class TermRecord:
    """A dictionary term as seen by callers."""

    id: int
    name: str
    category: Optional[str] = None

    @classmethod
    def from_model(cls, term: Any) -> "TermRecord":
        return cls(id=term.id, name=term.name, category=term.category)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name}
        if self.category is not None:
            data["category"] = self.category
        return data


@dataclass(frozen=True)
class TermCount:
    """A dictionary term with the number of entries linked to it."""

    id: int
    name: str
    category: Optional[str]
    count: int

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name}
        if self.category is not None:
            data["category"] = self.category
        data["count"] = self.count
        return data


@dataclass(frozen=True)
class AttachmentRecord:
    """Attachment metadata as seen by callers."""

    id: int
    entry_id: int
    owner: str
    stored_path: str
    original_name: str
    mime_type: str
    size_bytes: int
    uploaded_at: Optional[datetime]

    @classmethod
    def from_model(cls, attachment: Any) -> "AttachmentRecord":
        return cls(
            id=attachment.id,
            entry_id=attachment.entry_id,
            owner=attachment.owner,
            stored_path=attachment.storage_path,
            original_name=attachment.original_name,
            mime_type=attachment.mime_type,
            size_bytes=attachment.size_bytes,
            uploaded_at=attachment.uploaded_at,
        )

    @property
    def stored_name(self) -> str:
        """File name inside the date folder."""
        return self.stored_path.rsplit("/", 1)[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entryId": self.entry_id,
            "storedPath": self.stored_path,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
            "sizeBytes": self.size_bytes,
            "uploadedAt": _iso(self.uploaded_at),
        }


@dataclass(frozen=True)
class EntryRecord:
    """Entry snapshot as seen by callers."""

    id: int
    owner: str
    entry_date: date
    content: str
    ratings: Optional[Dict[str, int]]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.entry_date.isoformat(),
            "content": self.content,
            "ratings": dict(self.ratings) if self.ratings else None,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
