"""
Link Tables
-----------

Many-to-many link tables between entries and association terms, one
table per kind.

Models:
    - EntryTag: entry <-> tag
    - EntrySymptom: entry <-> symptom
    - EntryMedication: entry <-> medication

A link carries no state beyond its endpoints. The surrogate ``id`` is the
insertion-order key used to paginate entries by term. ``entry_id`` and
``term_id`` are deliberately plain integers without foreign keys: the
engine keeps them consistent, the store only guarantees (entry, term)
uniqueness.
"""
from __future__ import annotations

from typing import Dict, Type

from sqlalchemy import Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from .base import Base
from .enums import Kind


class LinkMixin:
    """Columns and constraints shared by every link table."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    entry_id: Mapped[int] = mapped_column(Integer, nullable=False)
    term_id: Mapped[int] = mapped_column(Integer, nullable=False)

    @declared_attr.directive
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            UniqueConstraint("entry_id", "term_id", name=f"uq_{table}_entry_term"),
            Index(f"ix_{table}_term_entry", "term_id", "entry_id"),
            Index(f"ix_{table}_entry", "entry_id"),
        )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(entry_id={self.entry_id}, "
            f"term_id={self.term_id})>"
        )


class EntryTag(LinkMixin, Base):
    """Link between an entry and a tag."""

    __tablename__ = "entry_tags"


class EntrySymptom(LinkMixin, Base):
    """Link between an entry and a symptom."""

    __tablename__ = "entry_symptoms"


class EntryMedication(LinkMixin, Base):
    """Link between an entry and a medication."""

    __tablename__ = "entry_medications"


LINK_MODELS: Dict[Kind, Type[LinkMixin]] = {
    Kind.TAG: EntryTag,
    Kind.SYMPTOM: EntrySymptom,
    Kind.MEDICATION: EntryMedication,
}
