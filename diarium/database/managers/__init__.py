#!/usr/bin/env python3
"""
managers package
--------------------
Session-bound managers for the Diarium database.

Each manager handles one concern and inherits from BaseManager.

Available Managers:
    BaseManager: Abstract base class with common utilities
    TermManager: Config-driven catalog of tags, symptoms and medications
    LinkManager: Entry <-> term link tables, one per kind
    AssociationManager: Replace-all sync of an entry's terms
    EntryManager: Entries and their rating payloads
    AttachmentManager: Attachment rows and blobs

Usage:
    from diarium.database.managers import AssociationManager

    associations = AssociationManager(session, logger)
    associations.sync("alice", entry.id, Kind.TAG, ["python"])
"""
from .base_manager import BaseManager
from .term_manager import KIND_CONFIGS, MAX_TAG_LENGTH, KindConfig, TermManager, config_for
from .link_manager import DEFAULT_PAGE_SIZE, LinkManager
from .association_manager import AssociationManager
from .entry_manager import EntryManager
from .attachment_manager import (
    APP_FOLDER,
    BLOCKED_EXTENSIONS,
    DEFAULT_MIME_TYPE,
    MAX_FILE_SIZE,
    AttachmentManager,
    sanitize_name,
)

__all__ = [
    "BaseManager",
    "TermManager",
    "KindConfig",
    "KIND_CONFIGS",
    "config_for",
    "MAX_TAG_LENGTH",
    "LinkManager",
    "DEFAULT_PAGE_SIZE",
    "AssociationManager",
    "EntryManager",
    "AttachmentManager",
    "sanitize_name",
    "APP_FOLDER",
    "BLOCKED_EXTENSIONS",
    "DEFAULT_MIME_TYPE",
    "MAX_FILE_SIZE",
]
