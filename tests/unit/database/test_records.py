"""Tests for the value records returned by managers."""
from datetime import date, datetime

import pytest

from diarium.database.records import AttachmentRecord, EntryRecord, TermCount, TermRecord


class TestTermRecord:
    """Test TermRecord / TermCount serialisation."""

    def test_to_dict_omits_missing_category(self):
        """Tags have no category key at all."""
        assert TermRecord(id=1, name="python").to_dict() == {"id": 1, "name": "python"}

    def test_to_dict_includes_category(self):
        """Categorised terms expose it."""
        record = TermRecord(id=2, name="Ibuprofen", category="painkiller")
        assert record.to_dict() == {"id": 2, "name": "Ibuprofen", "category": "painkiller"}

    def test_term_count(self):
        """Counts are appended after the term fields."""
        assert TermCount(id=1, name="work", category=None, count=3).to_dict() == {
            "id": 1,
            "name": "work",
            "count": 3,
        }

    def test_records_are_immutable(self):
        """Records are frozen snapshots."""
        record = TermRecord(id=1, name="python")
        with pytest.raises(AttributeError):
            record.name = "other"


class TestAttachmentRecord:
    """Test AttachmentRecord."""

    def test_to_dict_and_stored_name(self):
        """Outward keys are camelCase; stored_name is the last path part."""
        record = AttachmentRecord(
            id=5,
            entry_id=9,
            owner="alice",
            stored_path="Diarium/2024-01-15/photo (1).jpg",
            original_name="photo.jpg",
            mime_type="image/jpeg",
            size_bytes=10,
            uploaded_at=datetime(2024, 1, 15, 8, 0),
        )

        assert record.stored_name == "photo (1).jpg"
        assert record.to_dict() == {
            "id": 5,
            "entryId": 9,
            "storedPath": "Diarium/2024-01-15/photo (1).jpg",
            "originalName": "photo.jpg",
            "mimeType": "image/jpeg",
            "sizeBytes": 10,
            "uploadedAt": "2024-01-15T08:00:00",
        }


class TestEntryRecord:
    """Test EntryRecord."""

    def test_to_dict(self):
        """Dates are ISO strings; ratings are copied."""
        record = EntryRecord(
            id=1,
            owner="alice",
            entry_date=date(2024, 1, 15),
            content="Hello",
            ratings={"mood": 4},
            created_at=None,
            updated_at=None,
        )
        assert record.to_dict() == {
            "id": 1,
            "date": "2024-01-15",
            "content": "Hello",
            "ratings": {"mood": 4},
            "createdAt": None,
            "updatedAt": None,
        }
