"""
Attachments
-----------

File metadata rows for blobs stored in the owner's attachment tree.

Models:
    - Attachment: One uploaded file attached to one entry
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class Attachment(Base):
    """
    Metadata for an uploaded file.

    Attributes:
        id: Primary key
        owner: Owning user identifier
        entry_id: Entry the file is attached to (no foreign key)
        storage_path: Path relative to the owner's blob home,
            ``<app folder>/<entry date>/<stored name>``
        original_name: File name as supplied by the user
        mime_type: Declared MIME type
        size_bytes: Size of the stored content
        uploaded_at: Upload timestamp
    """

    __tablename__ = "attachments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entry_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(127), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, path={self.storage_path!r})>"
