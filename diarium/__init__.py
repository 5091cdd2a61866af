"""
Diarium
=======

Storage core of a multi-user personal journal.

Each owner keeps dated entries. Entries carry three kinds of labels
(tags, symptoms, medications) drawn from a per-owner dictionary of
terms, and file attachments kept in a per-owner blob store.

Main Components:
    - database: SQLAlchemy models, entity managers, cascade deletion
    - core: Logging, validation, paths, blob store

Primary Interfaces:
    - diarium.cli: Command line interface
    - diarium.database.manager.DiariumDB: Main database interface

Example Usage:
    >>> from diarium import DiariumDB
    >>> from diarium.database.models import Kind
    >>> db = DiariumDB(db_path="journal.db", blob_dir="blobs")
    >>> with db.session_scope():
    ...     entry = db.entries.create("alice", "2024-01-15", "Slept badly")
    ...     db.associations.sync("alice", entry.id, Kind.SYMPTOM, ["Headache"])
"""

__version__ = "0.1.0"

from diarium.database.manager import DiariumDB
from diarium.core.paths import BLOB_DIR, DATA_DIR, DB_PATH, LOG_DIR

__all__ = [
    "DiariumDB",
    "BLOB_DIR",
    "DATA_DIR",
    "DB_PATH",
    "LOG_DIR",
]
