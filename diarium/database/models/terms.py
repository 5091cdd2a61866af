"""
Association Terms
------------------

Dictionary entries for tags, symptoms and medications.

Models:
    - AssociationTerm: One named term of one kind, scoped to one owner

A single polymorphic table holds all three kinds, keyed by the ``kind``
column. Names are unique per (owner, kind) after kind-specific
normalisation, which the store enforces with a unique constraint.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum as SAEnum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow
from .enums import Kind

TERM_NAME_MAX_LENGTH = 100
CATEGORY_MAX_LENGTH = 50


class AssociationTerm(Base):
    """
    A tag, symptom or medication belonging to one owner.

    Attributes:
        id: Primary key
        owner: Owning user identifier
        kind: Which dictionary the term belongs to
        name: Normalised term name
        category: Optional grouping (symptoms and medications only)
        created_at: When the term was first used
    """

    __tablename__ = "association_terms"
    __table_args__ = (
        UniqueConstraint("owner", "kind", "name", name="uq_term_owner_kind_name"),
        Index("ix_terms_owner_kind", "owner", "kind"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[Kind] = mapped_column(
        SAEnum(
            Kind,
            name="term_kind",
            values_callable=lambda kinds: [k.value for k in kinds],
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(TERM_NAME_MAX_LENGTH), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(
        String(CATEGORY_MAX_LENGTH), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<AssociationTerm(id={self.id}, owner={self.owner!r}, "
            f"kind={self.kind.value}, name={self.name!r})>"
        )
