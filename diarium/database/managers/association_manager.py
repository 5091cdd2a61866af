#!/usr/bin/env python3
"""
association_manager.py
----------------------
Replace-all synchronisation of an entry's tags, symptoms and medications.

The engine composes the term catalog and the link tables. Every multi-step
mutation is an ordered sequence of idempotent steps rather than one
all-or-nothing transaction:

    sync(owner, entry, kind, names)
        1. detach every link of that kind from the entry
        2. for each name: normalise, skip if empty (or an over-long tag),
           find-or-create the term, attach it (idempotent)
        3. sweep the owner's terms of that kind that have no link left

A reader running between steps 1 and 2 sees the entry with no terms of
that kind. A failure in step 2 leaves the links attached so far in place.

Usage:
    associations = AssociationManager(session, logger)
    associations.sync("alice", entry.id, Kind.TAG, ["Python", "testing"])
    associations.sync_tags_from_content("alice", entry.id, "Long day #work")
    associations.term_cloud("alice", Kind.SYMPTOM)
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from diarium.core.logging_manager import DiariumLogger
from diarium.database.decorators import handle_db_errors, log_database_operation
from diarium.database.models import Kind
from diarium.database.records import TermCount, TermRecord
from .base_manager import BaseManager
from .link_manager import DEFAULT_PAGE_SIZE, LinkManager
from .term_manager import MAX_TAG_LENGTH, TermManager

HASHTAG_PATTERN = re.compile(r"#([\w-]+)")


class AssociationManager(BaseManager):
    """
    Association lifecycle engine for one session.

    Attributes:
        terms: Term catalog
        links: Link tables
    """

    def __init__(
        self,
        session: Session,
        logger: Optional[DiariumLogger] = None,
        terms: Optional[TermManager] = None,
        links: Optional[LinkManager] = None,
    ):
        super().__init__(session, logger)
        self.terms = terms or TermManager(session, logger)
        self.links = links or LinkManager(session, logger)

    # -------------------------------------------------------------------------
    # Synchronisation
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("sync_terms")
    def sync(
        self, owner: str, entry_id: int, kind: Any, names: Iterable[Any]
    ) -> List[TermRecord]:
        """
        Replace the terms of one kind attached to an entry.

        Existing links are detached unconditionally, even when the new list
        overlaps the old one.

        Args:
            owner: Owner of the entry
            entry_id: Entry id
            kind: Term kind
            names: Raw names, in order; a single string is one name

        Returns:
            The resulting terms in processing order; repeated names collapse
            onto their first occurrence

        Raises:
            ValueError: If ``kind`` is not a known kind
            DatabaseError: If a store operation fails (logged with context)
        """
        kind = Kind.coerce(kind)
        if isinstance(names, str):
            names = [names]
        names = list(names or [])

        self.links.detach_all_for_entry(kind, entry_id)

        result: List[TermRecord] = []
        seen: Set[int] = set()
        for raw in names:
            name = self.terms.normalize(kind, raw)
            if name is None:
                continue

            term = self.terms.find_or_create(owner, kind, name)
            self.links.attach(kind, entry_id, term.id)

            if term.id not in seen:
                seen.add(term.id)
                result.append(TermRecord.from_model(term))

        self.terms.sweep_unused(owner, kind)
        return result

    @handle_db_errors
    @log_database_operation("remove_terms_for_entry")
    def remove_all_for_entry(self, owner: str, entry_id: int, kind: Any) -> int:
        """
        Detach every term of one kind from an entry, then sweep.

        Returns:
            Number of links removed
        """
        kind = Kind.coerce(kind)
        removed = self.links.detach_all_for_entry(kind, entry_id)
        self.terms.sweep_unused(owner, kind)
        return removed

    # -------------------------------------------------------------------------
    # Hashtags
    # -------------------------------------------------------------------------

    @staticmethod
    def extract_hashtags(content: Optional[str]) -> List[str]:
        """
        Extract ``#hashtag`` names from free text.

        Names are lower-cased, de-duplicated in order of first appearance
        and dropped when longer than 50 characters.

        Examples:
            >>> AssociationManager.extract_hashtags("Run #Work then #work-out #work")
            ['work', 'work-out']
        """
        if not content:
            return []

        tags: List[str] = []
        for match in HASHTAG_PATTERN.findall(content):
            name = match.lower()
            if len(name) <= MAX_TAG_LENGTH and name not in tags:
                tags.append(name)
        return tags

    def sync_tags_from_content(
        self, owner: str, entry_id: int, content: Optional[str]
    ) -> List[TermRecord]:
        """Replace an entry's tags with the hashtags found in its content."""
        return self.sync(owner, entry_id, Kind.TAG, self.extract_hashtags(content))

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def terms_for_entry(self, entry_id: int, kind: Any) -> List[TermRecord]:
        """Terms of one kind attached to an entry, name ascending."""
        return self.links.terms_for_entry(kind, entry_id)

    def term_cloud(self, owner: str, kind: Any) -> List[TermCount]:
        """Linked terms with usage counts, most used first."""
        return self.terms.cloud(owner, kind)

    def entry_ids_by_term(
        self,
        term_id: int,
        kind: Any,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> List[int]:
        """Entry ids linked to a term, paginated in link creation order."""
        return self.links.entry_ids_by_term(kind, term_id, limit=limit, offset=offset)

    def terms_for_owner(self, owner: str, kind: Any) -> List[TermRecord]:
        """Every term of one kind an owner has, name ascending."""
        return self.terms.terms_for_owner(owner, kind)

    def set_category(
        self, owner: str, kind: Any, name: Any, category: Optional[str]
    ) -> TermRecord:
        """Set the category of a symptom or medication."""
        return self.terms.set_category(owner, kind, name, category)
