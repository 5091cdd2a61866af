#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Diarium project.

This module defines a hierarchy of exceptions used throughout the project
to separate expected outcomes (bad input, missing or foreign resources)
from internal failures of the relational store or the blob store.

Exception Hierarchy:
    Exception (built-in)
    ├── DatabaseError - Relational store failures
    ├── StorageError - Blob store failures
    │   ├── BlobNotFoundError - File or folder missing from the blob store
    │   └── BlobPermissionError - Blob store refused the operation
    ├── ValidationError - Data validation failures
    │   └── AttachmentValidationError - Rejected uploads
    ├── NotFoundError - Entry, term or attachment absent
    └── OwnershipError - Resource belongs to another owner

Usage:
    from diarium.core.exceptions import NotFoundError, ValidationError

    try:
        store.upload(...)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except DatabaseError:
        return {"error": "Upload failed"}, 500
"""


class DatabaseError(Exception):
    """
    Base exception for relational store errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other database problems.
    The message is kept opaque for callers; details go to the error log.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
        >>> raise DatabaseError("Data integrity violation")
    """

    pass


class StorageError(Exception):
    """
    Base exception for blob store errors.

    Raised when reading, writing or removing attachment files fails
    for a reason other than the two specific cases below.

    Examples:
        >>> raise StorageError("Disk full while writing attachment")
    """

    pass


class BlobNotFoundError(StorageError):
    """
    Exception for files or folders missing from the blob store.

    Examples:
        >>> raise BlobNotFoundError("Diarium/2024-01-15/photo.jpg")
    """

    pass


class BlobPermissionError(StorageError):
    """
    Exception for blob operations refused by the underlying filesystem.

    Deleting an attachment re-raises this before its metadata row is
    removed, so the row remains the record of the undeleted file.

    Examples:
        >>> raise BlobPermissionError("Permission denied: Diarium/2024-01-15")
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Invalid date formats
    - Missing required fields
    - Invalid owner identifiers
    - Out-of-range or non-numeric ratings

    Examples:
        >>> raise ValidationError("Invalid date format. Expected YYYY-MM-DD")
        >>> raise ValidationError("Rating 'mood' must be an integer")
    """

    pass


class AttachmentValidationError(ValidationError):
    """
    Exception for rejected uploads.

    The message is user-facing and names the specific reason.

    Examples:
        >>> raise AttachmentValidationError("File type not allowed.")
        >>> raise AttachmentValidationError("File too large. Maximum size is 50 MB.")
    """

    pass


class NotFoundError(Exception):
    """
    Exception for missing resources.

    Raised when an entry, term or attachment (or an attachment's blob)
    does not exist. Reported distinctly from ValidationError so callers
    can map it to a "missing resource" response.

    Examples:
        >>> raise NotFoundError("Entry not found: 42")
    """

    pass


class OwnershipError(Exception):
    """
    Exception for access to another owner's resource.

    Always checked before any data is returned.

    Examples:
        >>> raise OwnershipError("Entry 42 does not belong to alice")
    """

    pass
