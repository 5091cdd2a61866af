#!/usr/bin/env python3
"""
cascade_manager.py
------------------
Ordered deletion of entries and whole accounts.

Links and attachments reference entries by plain id, with no foreign key
to cascade from. Deletion therefore removes dependents first and the
entry last: if a step fails, the entry row still exists and the leftover
links or files stay reachable.

Entry deletion (all-or-error):
    1. tags, symptoms, medications: detach + sweep unused terms
    2. attachments: blobs, rows, empty date folder
    3. the entry row

Account deletion (best-effort, never raises):
    1. links of all three kinds, scoped by the owner's entries
    2. attachment blobs, the owner's whole attachment tree, attachment rows
    3. every term of the owner
    4. every entry of the owner

Each account step runs in its own SAVEPOINT; a failing step is rolled
back on its own, logged, and recorded in the returned report.

Usage:
    cascade = CascadeManager(session, entries, associations, attachments, logger)
    cascade.delete_entry("alice", 42)
    report = cascade.handle_owner_removed("alice")
    if report["errors"]:
        ...  # left for manual reconciliation
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from diarium.core.logging_manager import DiariumLogger, safe_logger
from .decorators import handle_db_errors, log_database_operation
from .managers.association_manager import AssociationManager
from .managers.attachment_manager import AttachmentManager
from .managers.entry_manager import EntryManager
from .models import Kind

# Fixed processing order for entry and account deletion
KIND_ORDER = (Kind.TAG, Kind.SYMPTOM, Kind.MEDICATION)


@dataclass(frozen=True)
class OwnerRemovedEvent:
    """Notification that an account was permanently removed."""

    owner_id: str


class CascadeManager:
    """
    Coordinator for entry and account deletion.

    Attributes:
        session: SQLAlchemy session shared with the managers
        entries: Entry manager
        associations: Association sync engine
        attachments: Attachment manager
        logger: Optional logger
    """

    def __init__(
        self,
        session: Session,
        entries: EntryManager,
        associations: AssociationManager,
        attachments: AttachmentManager,
        logger: Optional[DiariumLogger] = None,
    ):
        self.session = session
        self.entries = entries
        self.associations = associations
        self.attachments = attachments
        self.logger = logger

    # -------------------------------------------------------------------------
    # Entry deletion
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("delete_entry")
    def delete_entry(self, owner: str, entry_id: int) -> None:
        """
        Delete an entry together with its links and attachments.

        Raises:
            NotFoundError: If the entry does not exist
            OwnershipError: If it belongs to another owner
            DatabaseError, StorageError: If a step fails (logged with context);
                the entry row is kept in that case
        """
        entry = self.entries.get_for_owner(owner, entry_id)

        for kind in KIND_ORDER:
            self.associations.remove_all_for_entry(owner, entry_id, kind)

        self.attachments.delete_all_for_entry(owner, entry_id)
        self.entries.delete_row(entry)

        safe_logger(self.logger).log_info(
            "Entry deleted", {"owner": owner, "entry_id": entry_id}
        )

    # -------------------------------------------------------------------------
    # Account deletion
    # -------------------------------------------------------------------------

    def handle(self, event: OwnerRemovedEvent) -> Dict[str, Any]:
        """Consume an owner-removed notification."""
        return self.handle_owner_removed(event.owner_id)

    def handle_owner_removed(self, owner_id: str) -> Dict[str, Any]:
        """
        Remove everything an owner had. Never raises.

        Args:
            owner_id: Removed owner

        Returns:
            Report with one entry per step (``links``, ``attachments``,
            ``terms``, ``entries``) and ``errors``, the names of the steps
            or sub-steps that failed
        """
        logger = safe_logger(self.logger)
        report: Dict[str, Any] = {"owner": owner_id, "errors": []}

        def _detach_links() -> Dict[str, int]:
            return {
                kind.value: self.associations.links.detach_all_for_owner(kind, owner_id)
                for kind in KIND_ORDER
            }

        report["links"] = self._run_step("links", _detach_links, owner_id, report)

        attachments = self._run_step(
            "attachments",
            lambda: self.attachments.delete_all_for_owner(owner_id),
            owner_id,
            report,
        )
        if attachments:
            report["errors"].extend(f"attachments.{name}" for name in attachments.pop("errors"))
        report["attachments"] = attachments

        report["terms"] = self._run_step(
            "terms",
            lambda: self.associations.terms.delete_all_for_owner(owner_id),
            owner_id,
            report,
        )
        report["entries"] = self._run_step(
            "entries",
            lambda: self.entries.delete_all_for_owner(owner_id),
            owner_id,
            report,
        )

        if report["errors"]:
            logger.log_warning(
                "Account deletion incomplete",
                {"owner": owner_id, "failed_steps": report["errors"]},
            )
        else:
            logger.log_operation("account_deleted", {"owner": owner_id})
        return report

    def _run_step(
        self,
        name: str,
        step: Callable[[], Any],
        owner_id: str,
        report: Dict[str, Any],
    ) -> Any:
        """Run one account-deletion step in a SAVEPOINT, recording failure."""
        try:
            with self.session.begin_nested():
                return step()
        except Exception as e:
            safe_logger(self.logger).log_error(
                e, {"operation": f"owner_removed.{name}", "owner": owner_id}
            )
            report["errors"].append(name)
            return None
