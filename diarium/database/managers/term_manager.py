#!/usr/bin/env python3
"""
term_manager.py
-----------------
Config-driven catalog for the three dictionary kinds: tags, symptoms and
medications.

All kinds share one table and one manager. What differs per kind lives
in a KindConfig:
- The link table that references terms of that kind
- The name normaliser (tags are lower-cased, the others only trimmed)
- The maximum accepted name length (tags only)
- Whether terms of that kind carry a category

Usage:
    terms = TermManager(session, logger)

    tag = terms.find_or_create("alice", Kind.TAG, "  Python ")   # name "python"
    terms.sweep_unused("alice", Kind.TAG)
    for item in terms.cloud("alice", Kind.TAG):
        print(item.name, item.count)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from sqlalchemy import func, select

from diarium.core.exceptions import NotFoundError, ValidationError
from diarium.core.logging_manager import safe_logger
from diarium.core.validators import DataValidator
from diarium.database.decorators import handle_db_errors, log_database_operation
from diarium.database.models import (
    CATEGORY_MAX_LENGTH,
    LINK_MODELS,
    AssociationTerm,
    Kind,
    LinkMixin,
)
from diarium.database.records import TermCount, TermRecord
from .base_manager import BaseManager

MAX_TAG_LENGTH = 50


@dataclass(frozen=True)
class KindConfig:
    """
    Per-kind behaviour of the term catalog.

    Attributes:
        kind: The kind being configured
        link_model: Link table model for this kind
        normalizer: Turns raw input into a stored name, or None to skip it
        max_length: Longest accepted normalised name (None for no limit)
    """

    kind: Kind
    link_model: Type[LinkMixin]
    normalizer: Callable[[Any], Optional[str]]
    max_length: Optional[int] = None

    @property
    def supports_category(self) -> bool:
        return self.kind.supports_category


def _trim(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return DataValidator.normalize_string(value)


def _trim_and_lower(value: Any) -> Optional[str]:
    trimmed = _trim(value)
    return trimmed.lower() if trimmed else None


KIND_CONFIGS: Dict[Kind, KindConfig] = {
    Kind.TAG: KindConfig(
        kind=Kind.TAG,
        link_model=LINK_MODELS[Kind.TAG],
        normalizer=_trim_and_lower,
        max_length=MAX_TAG_LENGTH,
    ),
    Kind.SYMPTOM: KindConfig(
        kind=Kind.SYMPTOM,
        link_model=LINK_MODELS[Kind.SYMPTOM],
        normalizer=_trim,
    ),
    Kind.MEDICATION: KindConfig(
        kind=Kind.MEDICATION,
        link_model=LINK_MODELS[Kind.MEDICATION],
        normalizer=_trim,
    ),
}


def config_for(kind: Any) -> KindConfig:
    """
    Look up the configuration of a kind.

    Raises:
        ValueError: If ``kind`` is not a known kind
    """
    return KIND_CONFIGS[Kind.coerce(kind)]


class TermManager(BaseManager):
    """
    Catalog of dictionary terms, scoped per owner and kind.

    Uniqueness of (owner, kind, name) is enforced by the store; this
    manager only normalises names and tolerates losing a creation race.
    """

    # -------------------------------------------------------------------------
    # Normalisation
    # -------------------------------------------------------------------------

    @staticmethod
    def normalize(kind: Any, name: Any) -> Optional[str]:
        """
        Normalise a raw name for a kind.

        Args:
            kind: Term kind
            name: Raw user input

        Returns:
            The stored form of the name, or None when it must be skipped
            (empty after trimming, or a tag longer than 50 characters)

        Raises:
            ValueError: If ``kind`` is not a known kind
        """
        config = config_for(kind)
        normalized = config.normalizer(name)
        if not normalized:
            return None
        if config.max_length is not None and len(normalized) > config.max_length:
            return None
        return normalized

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get(self, owner: str, kind: Any, name: Any) -> Optional[AssociationTerm]:
        """
        Retrieve a term by owner, kind and (raw) name.

        Returns:
            The term, or None if it does not exist or the name normalises away
        """
        kind = Kind.coerce(kind)
        normalized = self.normalize(kind, name)
        if normalized is None:
            return None
        return self._lookup(
            AssociationTerm, {"owner": owner, "kind": kind, "name": normalized}
        )

    @handle_db_errors
    def get_by_id(self, term_id: int) -> Optional[AssociationTerm]:
        """Retrieve a term by id."""
        return self._get_by_id(AssociationTerm, term_id)

    @handle_db_errors
    def terms_for_owner(self, owner: str, kind: Any) -> List[TermRecord]:
        """All terms of one kind for an owner, name ascending."""
        kind = Kind.coerce(kind)
        rows = self.session.scalars(
            select(AssociationTerm)
            .where(AssociationTerm.owner == owner, AssociationTerm.kind == kind)
            .order_by(AssociationTerm.name, AssociationTerm.id)
        )
        return [TermRecord.from_model(term) for term in rows]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @handle_db_errors
    def find_or_create(self, owner: str, kind: Any, name: Any) -> AssociationTerm:
        """
        Resolve a term, creating it when absent.

        The lookup and the insert are separate statements. When a concurrent
        writer inserts the same term in between, the unique constraint
        rejects our insert and the existing row is returned instead.

        Args:
            owner: Owner identifier
            kind: Term kind
            name: Raw name (normalised here)

        Returns:
            The persisted term

        Raises:
            ValueError: If ``kind`` is not a known kind
            ValidationError: If the name normalises to nothing
            DatabaseError: If the term can neither be created nor found
        """
        kind = Kind.coerce(kind)
        normalized = self.normalize(kind, name)
        if normalized is None:
            raise ValidationError(f"Invalid {kind.value} name: {name!r}")

        existing = self.get(owner, kind, normalized)
        return self._get_or_create(
            AssociationTerm,
            {"owner": owner, "kind": kind, "name": normalized},
            existing=existing,
        )

    @handle_db_errors
    @log_database_operation("set_term_category")
    def set_category(
        self, owner: str, kind: Any, name: Any, category: Optional[str]
    ) -> TermRecord:
        """
        Set or clear the category of a symptom or medication.

        Raises:
            ValidationError: For tags, or a category over 50 characters
            NotFoundError: If the term does not exist
        """
        config = config_for(kind)
        if not config.supports_category:
            raise ValidationError(f"{config.kind.display_name}s have no category")

        category = DataValidator.normalize_string(category)
        if category is not None and len(category) > CATEGORY_MAX_LENGTH:
            raise ValidationError(
                f"Category must be at most {CATEGORY_MAX_LENGTH} characters"
            )

        term = self.get(owner, config.kind, name)
        if term is None:
            raise NotFoundError(f"{config.kind.display_name} not found: {name}")

        term.category = category
        self.session.flush()
        return TermRecord.from_model(term)

    @handle_db_errors
    def sweep_unused(self, owner: str, kind: Any) -> int:
        """
        Delete every term of (owner, kind) that has no remaining link.

        Runs as a single DELETE guarded by a NOT IN subquery over the kind's
        link table. A concurrent sync re-attaching a term between its detach
        and this sweep can lose that term; such dangling links are hidden
        by the inner joins of every read.

        Returns:
            Number of terms removed
        """
        config = config_for(kind)
        linked = select(config.link_model.term_id)
        removed = self._bulk_delete(
            AssociationTerm,
            AssociationTerm.owner == owner,
            AssociationTerm.kind == config.kind,
            AssociationTerm.id.not_in(linked),
        )
        if removed:
            safe_logger(self.logger).log_debug(
                "Unused terms swept",
                {"owner": owner, "kind": config.kind.value, "removed": removed},
            )
        return removed

    @handle_db_errors
    def delete_all_for_owner(self, owner: str) -> int:
        """Delete every term of every kind belonging to an owner."""
        return self._bulk_delete(AssociationTerm, AssociationTerm.owner == owner)

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    @handle_db_errors
    def cloud(self, owner: str, kind: Any) -> List[TermCount]:
        """
        Usage counts of an owner's terms of one kind.

        Only terms with at least one link are returned, most used first
        (ties by name).
        """
        config = config_for(kind)
        link = config.link_model
        usage = func.count(link.id).label("usage")

        rows = self.session.execute(
            select(
                AssociationTerm.id,
                AssociationTerm.name,
                AssociationTerm.category,
                usage,
            )
            .outerjoin(link, link.term_id == AssociationTerm.id)
            .where(
                AssociationTerm.owner == owner,
                AssociationTerm.kind == config.kind,
            )
            .group_by(AssociationTerm.id, AssociationTerm.name, AssociationTerm.category)
            .having(func.count(link.id) > 0)
            .order_by(usage.desc(), AssociationTerm.name)
        )
        return [
            TermCount(id=row.id, name=row.name, category=row.category, count=row.usage)
            for row in rows
        ]

