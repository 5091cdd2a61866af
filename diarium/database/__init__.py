#!/usr/bin/env python3
"""
Diarium Database Package
------------------------
Relational store and deletion coordination for the journal.

Modules:
- manager: DiariumDB engine, sessions and migrations
- managers: Entity managers (entries, terms, links, associations, attachments)
- cascade_manager: Entry and account deletion
- health_monitor: Integrity checks for tolerated inconsistencies
- records: Value records returned to callers
"""

from .manager import DiariumDB
from diarium.core.exceptions import (
    DatabaseError,
    NotFoundError,
    OwnershipError,
    StorageError,
    ValidationError,
)
from .cascade_manager import CascadeManager, OwnerRemovedEvent
from .health_monitor import HealthMonitor
from .records import AttachmentRecord, EntryRecord, TermCount, TermRecord
from .decorators import handle_db_errors, log_database_operation

__all__ = [
    # Main manager
    "DiariumDB",
    # Exceptions
    "DatabaseError",
    "NotFoundError",
    "OwnershipError",
    "StorageError",
    "ValidationError",
    # Core modules
    "CascadeManager",
    "OwnerRemovedEvent",
    "HealthMonitor",
    # Records
    "TermRecord",
    "TermCount",
    "AttachmentRecord",
    "EntryRecord",
    # Decorators
    "log_database_operation",
    "handle_db_errors",
]
