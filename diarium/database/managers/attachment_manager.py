#!/usr/bin/env python3
"""
attachment_manager.py
---------------------
Attachment metadata rows and their blobs.

Files live in the owner's blob home, one folder per entry date:

    <owner home>/Diarium/<YYYY-MM-DD>/<stored name>

Entries sharing a date share a folder. Stored names are sanitised and
made unique within their folder with a " (n)" suffix; the name the user
uploaded is kept verbatim in the row for display and download.

Key Features:
    - Upload validation (size, blocked extensions, name sanitising)
    - Collision-safe placement with lazy folder creation
    - Deletion that never drops the row of a file it could not remove
    - Best-effort bulk removal for entry and account deletion
    - Ownership checks for download and delete

Usage:
    attachments = AttachmentManager(session, blob_store, logger)
    record = attachments.upload("alice", entry.id, entry.entry_date,
                                "photo.jpg", data, "image/jpeg")
    data = attachments.content("alice", record.stored_path)
    attachments.delete("alice", record.id)
"""
from __future__ import annotations

import posixpath
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from diarium.core.blob_store import BlobStore
from diarium.core.exceptions import (
    AttachmentValidationError,
    BlobNotFoundError,
    BlobPermissionError,
    NotFoundError,
    OwnershipError,
    StorageError,
    ValidationError,
)
from diarium.core.logging_manager import DiariumLogger, safe_logger
from diarium.core.validators import DataValidator
from diarium.database.decorators import handle_db_errors, log_database_operation
from diarium.database.models import Attachment
from diarium.database.records import AttachmentRecord
from .base_manager import BaseManager

APP_FOLDER = "Diarium"
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MiB
DEFAULT_MIME_TYPE = "application/octet-stream"
PLACEHOLDER_BASE = "file"

BLOCKED_EXTENSIONS = frozenset(
    {
        "php", "phtml", "php3", "php4", "php5", "phps",
        "exe", "bat", "cmd", "com", "sh", "bash",
        "js", "vbs", "wsf", "ps1",
        "htaccess", "htpasswd",
    }
)

_UNSAFE_NAME_CHARS = re.compile(r"[^\w\s\-()]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def split_name(name: str) -> Tuple[str, str]:
    """
    Split a file name into (base, extension) on the last dot.

    Any directory part is dropped first. The extension is returned as
    given; callers lower-case it.

    Examples:
        >>> split_name("archive.tar.gz")
        ('archive.tar', 'gz')
        >>> split_name(".htaccess")
        ('', 'htaccess')
        >>> split_name("README")
        ('README', '')
    """
    name = re.split(r"[/\\]", name)[-1]
    if "." not in name:
        return name, ""
    base, ext = name.rsplit(".", 1)
    return base, ext


def sanitize_name(original_name: str) -> str:
    """
    Build the stored form of an uploaded file name.

    Args:
        original_name: Name as supplied by the user

    Returns:
        ``<sanitised base>.<lower-cased extension>``

    Raises:
        AttachmentValidationError: If the extension is blocked or the
            result still contains a parent-directory sequence or a
            control character
    """
    base, ext = split_name(original_name or "")
    ext = ext.lower()
    if ext in BLOCKED_EXTENSIONS:
        raise AttachmentValidationError("File type not allowed.")

    safe_base = _UNSAFE_NAME_CHARS.sub("_", base) or PLACEHOLDER_BASE
    safe_name = f"{safe_base}.{ext}" if ext else safe_base
    if ".." in safe_name or _CONTROL_CHARS.search(safe_name):
        raise AttachmentValidationError("Invalid file name.")
    return safe_name


class AttachmentManager(BaseManager):
    """
    Manager for attachment rows and the blobs they describe.

    Attributes:
        blobs: Blob store holding the files
    """

    def __init__(
        self,
        session: Session,
        blobs: BlobStore,
        logger: Optional[DiariumLogger] = None,
    ):
        super().__init__(session, logger)
        self.blobs = blobs

    # -------------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------------

    @staticmethod
    def date_folder(entry_date: Any) -> str:
        """Folder of an entry date, relative to the owner's home."""
        day = DataValidator.normalize_date(entry_date)
        if day is None:
            raise ValidationError("Entry date is required")
        return f"{APP_FOLDER}/{day.isoformat()}"

    def _unique_name(self, owner: str, folder: str, safe_name: str) -> str:
        """Append " (n)" before the extension until nothing in the folder collides."""
        name = safe_name
        base, ext = split_name(safe_name)
        suffix = f".{ext}" if ext else ""
        counter = 1
        while self.blobs.exists(owner, f"{folder}/{name}"):
            name = f"{base} ({counter}){suffix}"
            counter += 1
        return name

    def _cleanup_empty_folder(self, owner: str, stored_path: str) -> None:
        """Remove the date folder of a path if it is now empty."""
        folder = posixpath.dirname(stored_path)
        try:
            if not self.blobs.list_dir(owner, folder):
                self.blobs.delete_dir(owner, folder)
        except (StorageError, ValidationError) as e:
            safe_logger(self.logger).log_debug(
                "Folder cleanup skipped", {"owner": owner, "folder": folder, "reason": str(e)}
            )

    # -------------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("upload_attachment")
    def upload(
        self,
        owner: str,
        entry_id: int,
        entry_date: Any,
        original_name: str,
        content: bytes,
        mime_type: Optional[str] = None,
    ) -> AttachmentRecord:
        """
        Store a file for an entry.

        Validation, in order: size, extension blocklist, name sanitising,
        traversal check. The blob is written before the row is inserted;
        if the insert fails the blob is removed again before the error
        propagates.

        Args:
            owner: Owner identifier
            entry_id: Entry the file belongs to
            entry_date: Date of that entry (selects the folder)
            original_name: Name as supplied by the user
            content: Raw bytes
            mime_type: Declared MIME type (default application/octet-stream)

        Returns:
            Record of the stored attachment

        Raises:
            AttachmentValidationError: With the user-facing reason
            StorageError: If the blob cannot be written
            DatabaseError: If the row cannot be inserted
        """
        DataValidator.validate_owner(owner)
        content = bytes(content or b"")
        if len(content) > MAX_FILE_SIZE:
            raise AttachmentValidationError("File too large. Maximum size is 50 MB.")

        safe_name = sanitize_name(original_name)
        folder = self.date_folder(entry_date)

        self.blobs.ensure_dir(owner, folder)
        stored_name = self._unique_name(owner, folder, safe_name)
        stored_path = f"{folder}/{stored_name}"
        self.blobs.write(owner, stored_path, content)

        try:
            with self.session.begin_nested():
                attachment = Attachment(
                    owner=owner,
                    entry_id=entry_id,
                    storage_path=stored_path,
                    original_name=original_name,
                    mime_type=DataValidator.normalize_string(mime_type) or DEFAULT_MIME_TYPE,
                    size_bytes=len(content),
                )
                self.session.add(attachment)
                self.session.flush()
        except Exception:
            self._discard_blob(owner, stored_path)
            raise

        return AttachmentRecord.from_model(attachment)

    def _discard_blob(self, owner: str, stored_path: str) -> None:
        """Best-effort removal of a blob whose row could not be written."""
        try:
            self.blobs.delete_file(owner, stored_path)
        except StorageError as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "discard_orphan_blob", "owner": owner, "path": stored_path}
            )
        else:
            self._cleanup_empty_folder(owner, stored_path)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @handle_db_errors
    def list_for_entry(self, entry_id: int) -> List[AttachmentRecord]:
        """Attachments of an entry, oldest upload first."""
        rows = self.session.scalars(
            select(Attachment)
            .where(Attachment.entry_id == entry_id)
            .order_by(Attachment.uploaded_at, Attachment.id)
        )
        return [AttachmentRecord.from_model(row) for row in rows]

    def _get_row(self, attachment_id: int) -> Attachment:
        row = self._get_by_id(Attachment, attachment_id)
        if row is None:
            raise NotFoundError(f"Attachment not found: {attachment_id}")
        return row

    @handle_db_errors
    def get_by_id(self, attachment_id: int) -> AttachmentRecord:
        """
        Retrieve attachment metadata.

        Raises:
            NotFoundError: If no such attachment exists
        """
        return AttachmentRecord.from_model(self._get_row(attachment_id))

    @handle_db_errors
    def get_for_owner(
        self, owner: str, attachment_id: int, entry_id: Optional[int] = None
    ) -> AttachmentRecord:
        """
        Retrieve attachment metadata after checking who it belongs to.

        Raises:
            NotFoundError: If no such attachment exists
            OwnershipError: If it belongs to another owner, or to another
                entry than ``entry_id`` when one is given
        """
        row = self._get_row(attachment_id)
        if row.owner != owner or (entry_id is not None and row.entry_id != entry_id):
            raise OwnershipError(f"Attachment {attachment_id} is not accessible")
        return AttachmentRecord.from_model(row)

    def content(self, owner: str, path: str) -> bytes:
        """
        Read the blob at a stored path.

        The row may outlive its blob; that inconsistency is reported, not
        repaired.

        Raises:
            NotFoundError: If the blob is missing
        """
        try:
            return self.blobs.read(owner, path)
        except BlobNotFoundError as e:
            raise NotFoundError(f"File not found: {path}") from e

    def download(self, owner: str, attachment_id: int) -> Tuple[AttachmentRecord, bytes]:
        """Metadata and content of an attachment owned by ``owner``."""
        record = self.get_for_owner(owner, attachment_id)
        return record, self.content(owner, record.stored_path)

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("delete_attachment")
    def delete(self, owner: str, attachment_id: int) -> None:
        """
        Delete one attachment.

        A missing blob is logged and tolerated. Any other blob failure is
        logged and re-raised before the row is removed, so the row keeps
        recording the file that is still on disk.

        Raises:
            NotFoundError: If no such attachment exists
            OwnershipError: If it belongs to another owner
            BlobPermissionError: If the blob store refuses the removal
        """
        record = self.get_for_owner(owner, attachment_id)
        logger = safe_logger(self.logger)

        try:
            self.blobs.delete_file(owner, record.stored_path)
        except BlobNotFoundError:
            logger.log_warning(
                "File not found on disk during delete",
                {"owner": owner, "path": record.stored_path},
            )
        except StorageError as e:
            logger.log_error(
                e,
                {
                    "operation": "delete_attachment_blob",
                    "owner": owner,
                    "entry_id": record.entry_id,
                    "path": record.stored_path,
                },
            )
            raise

        self._bulk_delete(Attachment, Attachment.id == record.id)
        self._cleanup_empty_folder(owner, record.stored_path)

    @handle_db_errors
    @log_database_operation("delete_entry_attachments")
    def delete_all_for_entry(self, owner: str, entry_id: int) -> int:
        """
        Delete every attachment of an entry.

        Blobs that are missing or cannot be removed are logged and skipped;
        the rows are then deleted in bulk and the shared date folder is
        removed if empty.

        Returns:
            Number of rows deleted
        """
        records = self.list_for_entry(entry_id)
        logger = safe_logger(self.logger)

        for record in records:
            try:
                self.blobs.delete_file(owner, record.stored_path)
            except (BlobNotFoundError, BlobPermissionError) as e:
                logger.log_warning(
                    "Could not delete file",
                    {
                        "owner": owner,
                        "entry_id": entry_id,
                        "path": record.stored_path,
                        "reason": type(e).__name__,
                    },
                )

        removed = self._bulk_delete(Attachment, Attachment.entry_id == entry_id)
        if records:
            self._cleanup_empty_folder(owner, records[0].stored_path)
        return removed

    def delete_all_for_owner(self, owner: str) -> Dict[str, Any]:
        """
        Remove every attachment of an owner (account deletion).

        Steps, each independently best-effort:
            1. delete each blob listed in the owner's rows
            2. delete the owner's whole Diarium folder tree
            3. delete all of the owner's rows

        Returns:
            Counters ``blobs_deleted``, ``blob_failures``, ``folder_removed``,
            ``rows_deleted`` and the names of failed steps under ``errors``
        """
        logger = safe_logger(self.logger)
        report: Dict[str, Any] = {
            "blobs_deleted": 0,
            "blob_failures": 0,
            "folder_removed": False,
            "rows_deleted": 0,
            "errors": [],
        }

        # 1. Individual blobs
        try:
            paths = list(
                self.session.scalars(
                    select(Attachment.storage_path).where(Attachment.owner == owner)
                )
            )
        except Exception as e:
            logger.log_error(e, {"operation": "list_owner_attachments", "owner": owner})
            report["errors"].append("list")
            paths = []

        for path in paths:
            try:
                self.blobs.delete_file(owner, path)
                report["blobs_deleted"] += 1
            except BlobNotFoundError:
                report["blob_failures"] += 1
                logger.log_warning("File already missing", {"owner": owner, "path": path})
            except Exception as e:
                report["blob_failures"] += 1
                logger.log_error(
                    e, {"operation": "delete_owner_blob", "owner": owner, "path": path}
                )

        # 2. Whole folder tree
        try:
            self.blobs.delete_dir(owner, APP_FOLDER, recursive=True)
            report["folder_removed"] = True
        except BlobNotFoundError:
            logger.log_debug("No attachment folder to remove", {"owner": owner})
        except Exception as e:
            logger.log_error(e, {"operation": "delete_owner_folder", "owner": owner})
            report["errors"].append("folder")

        # 3. Rows
        try:
            with self.session.begin_nested():
                report["rows_deleted"] = self._bulk_delete(
                    Attachment, Attachment.owner == owner
                )
        except Exception as e:
            logger.log_error(e, {"operation": "delete_owner_attachment_rows", "owner": owner})
            report["errors"].append("rows")

        return report
