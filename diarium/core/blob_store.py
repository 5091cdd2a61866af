#!/usr/bin/env python3
"""
blob_store.py
--------------------
Hierarchical file storage for attachment blobs.

Every owner gets a private home directory under the store root. All
paths handed to the store are relative to that home and are resolved
and checked so they can never escape it.

Features:
    - Lazy, idempotent directory creation
    - Byte-level read/write of files
    - File, empty-folder and whole-tree removal
    - Directory listing for emptiness checks
    - OS errors normalised to BlobNotFoundError / BlobPermissionError /
      StorageError

Classes:
    BlobStore: Filesystem-backed store rooted at a base directory

Usage:
    from diarium.core.blob_store import BlobStore

    store = BlobStore(Path("data/blobs"))
    store.ensure_dir("alice", "Diarium/2024-01-15")
    store.write("alice", "Diarium/2024-01-15/photo.jpg", b"...")
    data = store.read("alice", "Diarium/2024-01-15/photo.jpg")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import shutil
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional, Union

# --- Local imports ---
from .exceptions import (
    BlobNotFoundError,
    BlobPermissionError,
    StorageError,
    ValidationError,
)
from .logging_manager import DiariumLogger, safe_logger
from .validators import DataValidator


@contextmanager
def _translate_os_errors(relative: str) -> Iterator[None]:
    """Map filesystem exceptions onto the blob store exception hierarchy."""
    try:
        yield
    except FileNotFoundError as e:
        raise BlobNotFoundError(f"Not found in blob store: {relative}") from e
    except PermissionError as e:
        raise BlobPermissionError(f"Permission denied: {relative}") from e
    except OSError as e:
        raise StorageError("Blob store operation failed") from e


class BlobStore:
    """
    Filesystem-backed blob store with one home directory per owner.

    Attributes:
        root: Base directory holding every owner home
        logger: Optional logger for operation tracking
    """

    def __init__(
        self, root: Union[str, Path], logger: Optional[DiariumLogger] = None
    ) -> None:
        """
        Initialize the blob store.

        Args:
            root: Base directory. Created lazily on first write.
            logger: Optional logger for operation tracking
        """
        self.root = Path(root).expanduser().resolve()
        self.logger = logger

    # ---- Path resolution ----
    def owner_home(self, owner: str) -> Path:
        """Return the home directory of an owner (not created)."""
        DataValidator.validate_owner(owner)
        return self.root / owner

    def resolve(self, owner: str, relative: Union[str, PurePosixPath] = "") -> Path:
        """
        Resolve a path relative to the owner's home.

        Args:
            owner: Owner identifier
            relative: POSIX-style relative path ('' for the home itself)

        Returns:
            Absolute path inside the owner's home

        Raises:
            ValidationError: If the path is absolute, escapes the home or
                contains a null byte
        """
        home = self.owner_home(owner).resolve()
        if "\x00" in str(relative):
            raise ValidationError("Blob path contains a null byte")
        rel = PurePosixPath(str(relative))
        if rel.is_absolute():
            raise ValidationError(f"Blob path must be relative: {relative}")

        target = (home / Path(*rel.parts)).resolve() if rel.parts else home
        if target != home and home not in target.parents:
            raise ValidationError(f"Blob path escapes owner home: {relative}")
        return target

    # ---- Queries ----
    def exists(self, owner: str, relative: str) -> bool:
        """Check whether a file or folder exists."""
        return self.resolve(owner, relative).exists()

    def is_dir(self, owner: str, relative: str) -> bool:
        """Check whether the path is an existing folder."""
        return self.resolve(owner, relative).is_dir()

    def list_dir(self, owner: str, relative: str = "") -> List[str]:
        """
        List the names inside a folder.

        Raises:
            BlobNotFoundError: If the folder does not exist
        """
        path = self.resolve(owner, relative)
        with _translate_os_errors(relative):
            if not path.is_dir():
                raise FileNotFoundError(str(path))
            return sorted(child.name for child in path.iterdir())

    # ---- Mutations ----
    def ensure_dir(self, owner: str, relative: str) -> Path:
        """
        Create a folder (and its parents) if absent, reuse it otherwise.

        Returns:
            Absolute path of the folder
        """
        path = self.resolve(owner, relative)
        with _translate_os_errors(relative):
            path.mkdir(parents=True, exist_ok=True)
        return path

    def write(self, owner: str, relative: str, content: bytes) -> int:
        """
        Create a file with the given content.

        Args:
            owner: Owner identifier
            relative: File path relative to the owner's home
            content: Raw bytes

        Returns:
            Number of bytes written
        """
        path = self.resolve(owner, relative)
        with _translate_os_errors(relative):
            path.parent.mkdir(parents=True, exist_ok=True)
            written = path.write_bytes(content)

        safe_logger(self.logger).log_debug(
            "Blob written", {"owner": owner, "path": relative, "bytes": written}
        )
        return written

    def read(self, owner: str, relative: str) -> bytes:
        """
        Read a file's content.

        Raises:
            BlobNotFoundError: If the file does not exist
        """
        path = self.resolve(owner, relative)
        with _translate_os_errors(relative):
            if not path.is_file():
                raise FileNotFoundError(str(path))
            return path.read_bytes()

    def delete_file(self, owner: str, relative: str) -> None:
        """
        Delete a single file.

        Raises:
            BlobNotFoundError: If the file does not exist
            BlobPermissionError: If the filesystem refuses the removal
        """
        path = self.resolve(owner, relative)
        with _translate_os_errors(relative):
            if path.is_dir():
                raise StorageError(f"Not a file: {relative}")
            path.unlink()

        safe_logger(self.logger).log_debug(
            "Blob deleted", {"owner": owner, "path": relative}
        )

    def delete_dir(self, owner: str, relative: str, recursive: bool = False) -> None:
        """
        Delete a folder.

        Args:
            owner: Owner identifier
            relative: Folder path relative to the owner's home
            recursive: Remove the whole tree instead of an empty folder only

        Raises:
            BlobNotFoundError: If the folder does not exist
            StorageError: If the folder is not empty and recursive is False
        """
        path = self.resolve(owner, relative)
        with _translate_os_errors(relative):
            if not path.is_dir():
                raise FileNotFoundError(str(path))
            if recursive:
                shutil.rmtree(path)
            else:
                path.rmdir()

        safe_logger(self.logger).log_debug(
            "Blob folder deleted",
            {"owner": owner, "path": relative, "recursive": recursive},
        )
