"""
test_account_deletion.py
------------------------
End-to-end account removal across the database and the blob store,
committed through DiariumDB sessions.
"""
from unittest.mock import patch

import pytest

from diarium.core.exceptions import BlobPermissionError
from diarium.database.models import Kind


@pytest.fixture
def populated_db(test_db):
    """Two owners with entries, terms of every kind and attachments."""
    with test_db.session_scope():
        for owner in ("alice", "bob"):
            for day in ("2024-01-15", "2024-01-16"):
                entry = test_db.entries.create(owner, day, f"{owner} on {day} #daily")
                test_db.associations.sync_tags_from_content(owner, entry.id, entry.content)
                test_db.associations.sync(owner, entry.id, Kind.SYMPTOM, ["Headache"])
                test_db.associations.sync(owner, entry.id, Kind.MEDICATION, ["Ibuprofen"])
                test_db.attachments.upload(
                    owner, entry.id, entry.entry_date, "scan.pdf", b"%PDF", "application/pdf"
                )
    return test_db


def owner_snapshot(db, owner):
    """Counts of everything an owner has, read in a fresh session."""
    with db.session_scope():
        entries = db.entries.get_all(owner)
        return {
            "entries": len(entries),
            "terms": sum(len(db.terms.terms_for_owner(owner, kind)) for kind in Kind),
            "attachments": sum(len(db.attachments.list_for_entry(e.id)) for e in entries),
            "links": sum(
                db.links.count(kind, entry_id=e.id) for kind in Kind for e in entries
            ),
        }


class TestAccountDeletion:
    """Owner removal through a committed session."""

    def test_removes_owner_and_spares_others(self, populated_db):
        """Alice is gone from rows and disk; Bob is intact."""
        with populated_db.session_scope():
            report = populated_db.cascade.handle_owner_removed("alice")

        assert report["errors"] == []
        assert report["links"] == {"tag": 2, "symptom": 2, "medication": 2}
        assert report["attachments"]["blobs_deleted"] == 2
        assert report["attachments"]["folder_removed"] is True
        assert owner_snapshot(populated_db, "alice") == {
            "entries": 0,
            "terms": 0,
            "attachments": 0,
            "links": 0,
        }
        assert owner_snapshot(populated_db, "bob") == {
            "entries": 2,
            "terms": 3,
            "attachments": 2,
            "links": 6,
        }
        assert not populated_db.blob_store.exists("alice", "Diarium")
        assert populated_db.blob_store.exists("bob", "Diarium/2024-01-15/scan.pdf")
        assert populated_db.health_report()["status"] == "healthy"

    def test_blob_failure_does_not_stop_removal(self, populated_db):
        """An undeletable file is counted; rows are removed regardless."""
        store = populated_db.blob_store
        real_delete = store.delete_file

        def flaky_delete(owner, relative):
            if relative.startswith("Diarium/2024-01-15/"):
                raise BlobPermissionError(f"Permission denied: {relative}")
            return real_delete(owner, relative)

        with patch.object(store, "delete_file", side_effect=flaky_delete):
            with populated_db.session_scope():
                report = populated_db.cascade.handle_owner_removed("alice")

        assert report["attachments"]["blob_failures"] == 1
        assert report["attachments"]["blobs_deleted"] == 1
        assert report["attachments"]["rows_deleted"] == 2
        assert report["errors"] == []
        assert owner_snapshot(populated_db, "alice")["entries"] == 0

    def test_failed_folder_step_is_reported(self, populated_db):
        """A failure removing the tree shows up under attachments.folder."""
        store = populated_db.blob_store

        with patch.object(store, "delete_dir", side_effect=BlobPermissionError("denied")):
            with populated_db.session_scope():
                report = populated_db.cascade.handle_owner_removed("alice")

        assert report["errors"] == ["attachments.folder"]
        assert owner_snapshot(populated_db, "alice") == {
            "entries": 0,
            "terms": 0,
            "attachments": 0,
            "links": 0,
        }

    def test_repeated_removal_is_harmless(self, populated_db):
        """Running the removal twice leaves the second run with nothing to do."""
        with populated_db.session_scope():
            populated_db.cascade.handle_owner_removed("alice")
        with populated_db.session_scope():
            report = populated_db.cascade.handle_owner_removed("alice")

        assert report["errors"] == []
        assert report["entries"] == 0
        assert report["attachments"]["folder_removed"] is False
