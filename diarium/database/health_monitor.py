#!/usr/bin/env python3
"""
health_monitor.py
-----------------
Detection and repair of the inconsistencies the deletion design tolerates.

Multi-step mutations are not transactional, so a few recoverable states
can appear after crashes, partial failures or races:

Checks Performed:
    1. **Connectivity**: Basic query execution
    2. **Dangling links**: links whose entry or term no longer exists
       (e.g. a term swept while a concurrent sync re-attached it)
    3. **Unused terms**: terms with zero links that escaped a sweep
    4. **Attachments without entry**: rows whose entry is gone
    5. **Missing blobs**: rows whose file is gone from the blob store

Usage:
    monitor = HealthMonitor(logger=db.logger)

    with db.session_scope() as session:
        health = monitor.report(session, db.blob_store)
        if health["status"] != "healthy":
            print(health["issues"])
            monitor.cleanup_dangling_links(session, dry_run=False)

Health Report Structure:
    {
        "status": "healthy" | "warning",
        "issues": ["2 links point at missing terms", ...],
        "metrics": {
            "dangling_links": {"tag": {"missing_entry": 0, "missing_term": 2}, ...},
            "unused_terms": {"tag": 0, "symptom": 1, "medication": 0},
            "attachments": {"missing_entry": 0, "missing_blob": 0},
        },
        "recommendations": ["Run cleanup_dangling_links()", ...]
    }
"""
from typing import Any, Dict, Optional

from sqlalchemy import func, select, text
from sqlalchemy.orm import Session

from diarium.core.blob_store import BlobStore
from diarium.core.exceptions import StorageError, ValidationError
from diarium.core.logging_manager import DiariumLogger
from .decorators import handle_db_errors, log_database_operation
from .models import LINK_MODELS, AssociationTerm, Attachment, Entry


class HealthMonitor:
    """
    Integrity checks over links, terms and attachments.
    """

    def __init__(self, logger: Optional[DiariumLogger] = None) -> None:
        """
        Initialize health monitor.

        Args:
            logger: Optional logger for health operations
        """
        self.logger = logger

    @handle_db_errors
    @log_database_operation("health_check")
    def report(
        self, session: Session, blobs: Optional[BlobStore] = None
    ) -> Dict[str, Any]:
        """
        Run every check.

        Args:
            session: SQLAlchemy session
            blobs: Blob store; the missing-blob check is skipped without it

        Returns:
            Health report (see module docstring)
        """
        health: Dict[str, Any] = {
            "status": "healthy",
            "issues": [],
            "metrics": {},
            "recommendations": [],
        }

        session.execute(text("SELECT 1"))

        health["metrics"]["dangling_links"] = self.check_dangling_links(session)
        health["metrics"]["unused_terms"] = self.check_unused_terms(session)
        health["metrics"]["attachments"] = self.check_attachments(session, blobs)

        return self._evaluate_health_status(health)

    def check_dangling_links(self, session: Session) -> Dict[str, Dict[str, int]]:
        """Count links pointing at a missing entry or a missing term, per kind."""
        results = {}
        for kind, link in LINK_MODELS.items():
            results[kind.value] = {
                "missing_entry": session.scalar(
                    select(func.count(link.id)).where(
                        link.entry_id.not_in(select(Entry.id))
                    )
                ),
                "missing_term": session.scalar(
                    select(func.count(link.id)).where(
                        link.term_id.not_in(select(AssociationTerm.id))
                    )
                ),
            }
        return results

    def check_unused_terms(self, session: Session) -> Dict[str, int]:
        """Count terms without any link, per kind."""
        return {
            kind.value: session.scalar(
                select(func.count(AssociationTerm.id)).where(
                    AssociationTerm.kind == kind,
                    AssociationTerm.id.not_in(select(link.term_id)),
                )
            )
            for kind, link in LINK_MODELS.items()
        }

    def check_attachments(
        self, session: Session, blobs: Optional[BlobStore] = None
    ) -> Dict[str, int]:
        """Count attachment rows whose entry or blob is missing."""
        results = {
            "missing_entry": session.scalar(
                select(func.count(Attachment.id)).where(
                    Attachment.entry_id.not_in(select(Entry.id))
                )
            ),
            "missing_blob": 0,
        }

        if blobs is not None:
            rows = session.execute(select(Attachment.owner, Attachment.storage_path))
            for owner, path in rows:
                try:
                    if not blobs.exists(owner, path):
                        results["missing_blob"] += 1
                except (StorageError, ValidationError):
                    results["missing_blob"] += 1

        return results

    def _evaluate_health_status(self, health: Dict[str, Any]) -> Dict[str, Any]:
        """Turn metrics into issues, recommendations and a status."""
        metrics = health["metrics"]

        missing_entry = sum(v["missing_entry"] for v in metrics["dangling_links"].values())
        missing_term = sum(v["missing_term"] for v in metrics["dangling_links"].values())
        if missing_entry or missing_term:
            health["issues"].append(
                f"{missing_entry} links point at missing entries, "
                f"{missing_term} at missing terms"
            )
            health["recommendations"].append("Run cleanup_dangling_links()")

        unused = sum(metrics["unused_terms"].values())
        if unused:
            health["issues"].append(f"{unused} terms have no links")
            health["recommendations"].append("Re-run the sweep for the affected owners")

        attachments = metrics["attachments"]
        if attachments["missing_entry"]:
            health["issues"].append(
                f"{attachments['missing_entry']} attachments belong to missing entries"
            )
        if attachments["missing_blob"]:
            health["issues"].append(
                f"{attachments['missing_blob']} attachments reference missing files"
            )

        if health["issues"]:
            health["status"] = "warning"
        return health

    @handle_db_errors
    @log_database_operation("cleanup_dangling_links")
    def cleanup_dangling_links(
        self, session: Session, dry_run: bool = True
    ) -> Dict[str, Any]:
        """
        Delete links whose entry or term no longer exists.

        Args:
            session: SQLAlchemy session
            dry_run: If True, only report what would be deleted

        Returns:
            Dictionary with per-kind counts
        """
        results: Dict[str, Any] = {"dry_run": dry_run}

        for kind, link in LINK_MODELS.items():
            dangling = session.scalars(
                select(link).where(
                    link.entry_id.not_in(select(Entry.id))
                    | link.term_id.not_in(select(AssociationTerm.id))
                )
            ).all()
            results[kind.value] = len(dangling)
            if not dry_run:
                for row in dangling:
                    session.delete(row)

        if not dry_run:
            session.flush()
            if self.logger:
                self.logger.log_operation("dangling_links_cleaned", results)

        return results
