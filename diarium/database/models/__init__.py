"""
Database Models Package
------------------------

SQLAlchemy ORM models for the Diarium database.

This package provides a modular organization of database models:
- base: Declarative base and timestamp helper
- enums: Term kinds
- core: Entry model
- terms: AssociationTerm (tags, symptoms, medications)
- associations: Per-kind link tables between entries and terms
- attachments: Attachment metadata

Usage:
    from diarium.database.models import Entry, AssociationTerm, Kind
"""
# Base classes
from .base import Base, utcnow

# Enumerations
from .enums import Kind

# Core models
from .core import Entry

# Dictionary terms
from .terms import CATEGORY_MAX_LENGTH, TERM_NAME_MAX_LENGTH, AssociationTerm

# Link tables
from .associations import (
    LINK_MODELS,
    EntryMedication,
    EntrySymptom,
    EntryTag,
    LinkMixin,
)

# Attachments
from .attachments import Attachment

__all__ = [
    # Base
    "Base",
    "utcnow",
    # Enums
    "Kind",
    # Core
    "Entry",
    # Terms
    "AssociationTerm",
    "TERM_NAME_MAX_LENGTH",
    "CATEGORY_MAX_LENGTH",
    # Links
    "LinkMixin",
    "EntryTag",
    "EntrySymptom",
    "EntryMedication",
    "LINK_MODELS",
    # Attachments
    "Attachment",
]
