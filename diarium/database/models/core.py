"""
Core Models
------------

Central model for the Diarium database.

Models:
    - Entry: A dated journal entry owned by one user

Entries are referenced by links and attachments through plain integer
columns. No foreign key cascades exist; dependent rows are removed by
the cascade deletion coordinator before the entry itself.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


# ----- Entry Model -----
class Entry(Base):
    """
    A journal entry.

    Several entries may share the same date for one owner.

    Attributes:
        id: Primary key
        owner: Owning user identifier
        entry_date: Calendar date of the entry (not unique per owner)
        content: Free text
        ratings: Optional JSON payload ({"mood": 1-5, "wellbeing": 1-5})
        created_at: When the entry was created (user-adjustable)
        updated_at: When the entry was last written
    """

    __tablename__ = "entries"
    __table_args__ = (
        Index("ix_entries_owner_date", "owner", "entry_date"),
        Index("ix_entries_owner_created", "owner", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ratings: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, owner={self.owner!r}, date={self.entry_date})>"
