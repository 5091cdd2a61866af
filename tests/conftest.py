"""
conftest.py
-----------
Shared pytest fixtures for Diarium tests.

Provides fixtures for:
- Temporary directories, database and blob store
- Session-bound managers sharing one session
- Test data factories
"""
import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from diarium.core.paths import ALEMBIC_DIR


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_db_path(tmp_dir):
    """Temporary test database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_blob_dir(tmp_dir):
    """Temporary blob store root."""
    return tmp_dir / "blobs"


# ----- Database Fixtures -----

@pytest.fixture
def test_db(test_db_path, test_blob_dir):
    """
    Create test database instance with schema.

    The database file does not exist yet, so the schema is created from
    the models and stamped. Engine is disposed after the test.
    """
    from diarium.database.manager import DiariumDB

    db = DiariumDB(
        db_path=test_db_path,
        alembic_dir=ALEMBIC_DIR,
        blob_dir=test_blob_dir,
    )

    yield db

    db.close()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    Managers are bound for the duration of the test; everything is
    rolled back afterwards.
    """
    with test_db.session_scope() as session:
        yield session
        session.rollback()


@pytest.fixture
def blob_store(test_db):
    """Blob store shared by the test database."""
    return test_db.blob_store


@pytest.fixture
def entry_manager(test_db, db_session):
    """EntryManager bound to the test session."""
    return test_db.entries


@pytest.fixture
def term_manager(test_db, db_session):
    """TermManager bound to the test session."""
    return test_db.terms


@pytest.fixture
def link_manager(test_db, db_session):
    """LinkManager bound to the test session."""
    return test_db.links


@pytest.fixture
def association_manager(test_db, db_session):
    """AssociationManager sharing the term and link managers."""
    return test_db.associations


@pytest.fixture
def attachment_manager(test_db, db_session):
    """AttachmentManager bound to the test session and blob store."""
    return test_db.attachments


@pytest.fixture
def cascade_manager(test_db, db_session):
    """CascadeManager bound to the test session."""
    return test_db.cascade


# ----- Factories -----

@pytest.fixture
def make_entry(entry_manager):
    """Factory creating entries (default owner alice, 2024-01-15)."""

    def _make(owner="alice", entry_date="2024-01-15", content="", ratings=None):
        return entry_manager.create(owner, entry_date, content, ratings)

    return _make


@pytest.fixture
def make_attachment(attachment_manager):
    """Factory uploading a small file to an entry."""

    def _make(entry, name="photo.jpg", content=b"\x89PNG data", mime_type="image/jpeg"):
        return attachment_manager.upload(
            entry.owner, entry.id, entry.entry_date, name, content, mime_type
        )

    return _make
