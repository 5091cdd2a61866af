#!/usr/bin/env python3
"""
link_manager.py
-----------------
Entry <-> term links, one table per kind.

A link is a bare (entry_id, term_id) pair. Attaching is idempotent: an
existing pair, or a pair inserted concurrently and rejected by the unique
constraint, is a silent no-op. Reads inner-join the term table so that
links whose term was swept by a concurrent sync are never returned.

Usage:
    links = LinkManager(session, logger)
    links.attach(Kind.TAG, entry.id, tag.id)
    links.terms_for_entry(Kind.TAG, entry.id)
    links.entry_ids_by_term(Kind.TAG, tag.id, limit=20, offset=40)
"""
from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from diarium.core.logging_manager import safe_logger
from diarium.database.decorators import handle_db_errors
from diarium.database.models import AssociationTerm, Entry
from diarium.database.records import TermRecord
from .base_manager import BaseManager
from .term_manager import config_for

DEFAULT_PAGE_SIZE = 50


class LinkManager(BaseManager):
    """Generic repository over the three link tables."""

    @handle_db_errors
    def exists(self, kind: Any, entry_id: int, term_id: int) -> bool:
        """Check whether an entry is linked to a term."""
        link = config_for(kind).link_model
        found = self.session.scalar(
            select(link.id).where(link.entry_id == entry_id, link.term_id == term_id)
        )
        return found is not None

    @handle_db_errors
    def attach(self, kind: Any, entry_id: int, term_id: int) -> bool:
        """
        Link an entry to a term.

        Args:
            kind: Term kind, selects the link table
            entry_id: Entry id
            term_id: Term id

        Returns:
            True if a link was created, False if it already existed
        """
        link = config_for(kind).link_model
        if self.exists(kind, entry_id, term_id):
            return False

        try:
            with self.session.begin_nested():
                self.session.add(link(entry_id=entry_id, term_id=term_id))
                self.session.flush()
        except IntegrityError:
            safe_logger(self.logger).log_debug(
                "Link created concurrently",
                {"table": link.__tablename__, "entry_id": entry_id, "term_id": term_id},
            )
            return False
        return True

    @handle_db_errors
    def detach_all_for_entry(self, kind: Any, entry_id: int) -> int:
        """Remove every link of one kind from an entry."""
        link = config_for(kind).link_model
        return self._bulk_delete(link, link.entry_id == entry_id)

    @handle_db_errors
    def detach_all_for_owner(self, kind: Any, owner: str) -> int:
        """
        Remove every link of one kind from all of an owner's entries.

        Scoped by the owner's entry ids in one statement rather than by
        iterating entries.
        """
        link = config_for(kind).link_model
        owned_entries = select(Entry.id).where(Entry.owner == owner)
        return self._bulk_delete(link, link.entry_id.in_(owned_entries))

    @handle_db_errors
    def terms_for_entry(self, kind: Any, entry_id: int) -> List[TermRecord]:
        """Terms linked to an entry, name ascending."""
        config = config_for(kind)
        link = config.link_model
        rows = self.session.scalars(
            select(AssociationTerm)
            .join(link, link.term_id == AssociationTerm.id)
            .where(link.entry_id == entry_id, AssociationTerm.kind == config.kind)
            .order_by(AssociationTerm.name, AssociationTerm.id)
        )
        return [TermRecord.from_model(term) for term in rows]

    @handle_db_errors
    def entry_ids_by_term(
        self,
        kind: Any,
        term_id: int,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> List[int]:
        """
        Ids of entries linked to a term, one page at a time.

        Ordered by link id, i.e. the order in which the links were created,
        so pages are stable while links are only added.
        """
        link = config_for(kind).link_model
        stmt = (
            select(link.entry_id)
            .where(link.term_id == term_id)
            .order_by(link.id)
            .limit(max(0, int(limit)))
            .offset(max(0, int(offset)))
        )
        return list(self.session.scalars(stmt))

    @handle_db_errors
    def count(
        self,
        kind: Any,
        entry_id: Optional[int] = None,
        term_id: Optional[int] = None,
    ) -> int:
        """Count links of one kind, optionally narrowed to an entry and/or term."""
        link = config_for(kind).link_model
        stmt = select(func.count(link.id))
        if entry_id is not None:
            stmt = stmt.where(link.entry_id == entry_id)
        if term_id is not None:
            stmt = stmt.where(link.term_id == term_id)
        return self.session.scalar(stmt) or 0
