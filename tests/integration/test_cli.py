"""
test_cli.py
-----------
Integration tests for the diarium command-line interface.
"""
import json
import shutil
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from diarium.cli import cli
from diarium.core.paths import ALEMBIC_DIR
from diarium.database.manager import DiariumDB


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def invoke(runner, tmp_dir):
    """Invoke the CLI against a temporary database, blob store and log dir."""
    base_args = [
        "--db-path", str(tmp_dir / "cli.db"),
        "--blob-dir", str(tmp_dir / "blobs"),
        "--log-dir", str(tmp_dir / "logs"),
    ]

    def _invoke(*args, **kwargs):
        return runner.invoke(cli, base_args + list(args), **kwargs)

    return _invoke


class TestSetupCommands:
    """Test init."""

    def test_init(self, invoke, tmp_dir):
        """init creates the database file."""
        result = invoke("init")

        assert result.exit_code == 0, result.output
        assert "Database ready" in result.output
        assert (tmp_dir / "cli.db").exists()

    def test_init_with_alembic_dir(self, runner, tmp_dir):
        """--alembic-dir selects the migrations used for the database."""
        migrations = tmp_dir / "migrations"
        shutil.copytree(ALEMBIC_DIR, migrations)

        with patch("diarium.cli.DiariumDB", wraps=DiariumDB) as db_class:
            result = runner.invoke(cli, [
                "--db-path", str(tmp_dir / "cli.db"),
                "--alembic-dir", str(migrations),
                "--blob-dir", str(tmp_dir / "blobs"),
                "--log-dir", str(tmp_dir / "logs"),
                "init",
            ])

        assert result.exit_code == 0, result.output
        assert db_class.call_args.kwargs["alembic_dir"] == migrations


class TestEntryCommands:
    """Test entry-create, entry-delete and the term commands."""

    def test_entry_create_with_terms(self, invoke):
        """Terms given on the command line and hashtags are attached."""
        result = invoke(
            "entry-create", "alice", "2024-01-15",
            "--content", "Long day #Work",
            "--mood", "4",
            "--symptom", "Headache",
            "--hashtags",
        )
        assert result.exit_code == 0, result.output
        assert "Entry created: 1" in result.output

        cloud = invoke("terms-cloud", "alice", "tag", "--as-json")
        assert json.loads(cloud.output) == [{"id": 1, "name": "work", "count": 1}]

        symptoms = invoke("terms-cloud", "alice", "symptom")
        assert "Headache" in symptoms.output

    def test_entry_create_rejects_bad_date(self, invoke):
        """Validation errors exit with status 1 and a clean message."""
        result = invoke("entry-create", "alice", "15/01/2024")

        assert result.exit_code == 1
        assert "ValidationError" in result.output

    def test_terms_set_replaces(self, invoke):
        """terms-set replaces the entry's terms of one kind."""
        invoke("entry-create", "alice", "2024-01-15", "--medication", "Aspirin")

        result = invoke("terms-set", "alice", "1", "medication", "Ibuprofen", "Paracetamol")

        assert result.exit_code == 0, result.output
        assert "Ibuprofen, Paracetamol" in result.output
        cloud = invoke("terms-cloud", "alice", "medication", "--as-json")
        assert [item["name"] for item in json.loads(cloud.output)] == ["Ibuprofen", "Paracetamol"]

    def test_terms_set_on_foreign_entry(self, invoke):
        """Ownership is checked before syncing."""
        invoke("entry-create", "alice", "2024-01-15")

        result = invoke("terms-set", "bob", "1", "tag", "sneaky")

        assert result.exit_code == 1
        assert "OwnershipError" in result.output

    def test_terms_category(self, invoke):
        """Categories can be set on symptoms."""
        invoke("entry-create", "alice", "2024-01-15", "--symptom", "Headache")

        result = invoke("terms-category", "alice", "symptom", "Headache", "pain")

        assert result.exit_code == 0, result.output
        assert "Headache: pain" in result.output

    def test_entry_delete(self, invoke):
        """Deleted entries are gone; deleting again reports not found."""
        invoke("entry-create", "alice", "2024-01-15", "--tag", "work")

        assert invoke("entry-delete", "alice", "1").exit_code == 0
        assert "No tags in use" in invoke("terms-cloud", "alice", "tag").output

        again = invoke("entry-delete", "alice", "1")
        assert again.exit_code == 1
        assert "NotFoundError" in again.output


class TestAttachmentCommands:
    """Test attach, attachments and detach."""

    def test_attach_list_detach(self, invoke, tmp_dir):
        """A file round-trips through the blob store."""
        upload = tmp_dir / "notes.txt"
        upload.write_text("hello")
        invoke("entry-create", "alice", "2024-01-15")

        attached = invoke("attach", "alice", "1", str(upload))
        assert attached.exit_code == 0, attached.output
        assert "Diarium/2024-01-15/notes.txt" in attached.output
        assert (tmp_dir / "blobs" / "alice" / "Diarium" / "2024-01-15" / "notes.txt").exists()

        listed = invoke("attachments", "alice", "1")
        assert "notes.txt (5 bytes, text/plain)" in listed.output

        detached = invoke("detach", "alice", "1")
        assert detached.exit_code == 0, detached.output
        assert not (tmp_dir / "blobs" / "alice" / "Diarium" / "2024-01-15").exists()

    def test_attach_blocked_type(self, invoke, tmp_dir):
        """Blocked extensions are refused with the user-facing reason."""
        upload = tmp_dir / "evil.php"
        upload.write_text("<?php")
        invoke("entry-create", "alice", "2024-01-15")

        result = invoke("attach", "alice", "1", str(upload))

        assert result.exit_code == 1
        assert "File type not allowed." in result.output


class TestAccountCommands:
    """Test purge-owner and health."""

    def test_purge_owner(self, invoke, tmp_dir):
        """All of the owner's data is removed."""
        upload = tmp_dir / "scan.pdf"
        upload.write_bytes(b"%PDF")
        invoke("entry-create", "alice", "2024-01-15", "--tag", "work")
        invoke("attach", "alice", "1", str(upload))

        result = invoke("purge-owner", "alice", "--yes")

        assert result.exit_code == 0, result.output
        assert "entries: 1" in result.output
        assert not (tmp_dir / "blobs" / "alice" / "Diarium").exists()
        assert "No tags in use" in invoke("terms-cloud", "alice", "tag").output

    def test_purge_owner_requires_confirmation(self, invoke):
        """Declining the prompt aborts."""
        invoke("entry-create", "alice", "2024-01-15")

        result = invoke("purge-owner", "alice", input="n\n")

        assert result.exit_code == 1
        assert "Aborted" in result.output

    def test_health(self, invoke):
        """A fresh store is healthy."""
        invoke("init")

        result = invoke("health")

        assert result.exit_code == 0, result.output
        assert "Status: HEALTHY" in result.output
