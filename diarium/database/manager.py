#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the Diarium journal.

Provides the DiariumDB class for interacting with the SQLite database and
the attachment blob store.
Handles:
    - Initialization of the database engine and sessionmaker
    - SAVEPOINT-capable SQLite connections
    - Session scopes exposing the session-bound managers
    - Migration management via Alembic
    - Logging with rotation

Core Operations:
    Entries:
        - entries.create / update / get_for_owner / get_by_date ...
    Associations:
        - associations.sync: replace an entry's tags, symptoms or medications
        - associations.term_cloud / terms_for_entry / entry_ids_by_term
    Attachments:
        - attachments.upload / content / delete / list_for_entry
    Deletion:
        - cascade.delete_entry: entry with its links and files
        - cascade.handle_owner_removed: whole account, best-effort
    Maintenance:
        - health_monitor.report / cleanup_dangling_links

Notes
==============
- The store is only relied upon for single-statement atomicity and
  unique constraints; no foreign key cascades exist
- All datetime fields are UTC-aware when written
- Retry logic handles SQLite lock contention
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

# --- Third party ---
from alembic import command
from alembic.config import Config
from sqlalchemy import Engine, create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker

# --- Local imports ---
from diarium.core.blob_store import BlobStore
from diarium.core.exceptions import DatabaseError
from diarium.core.logging_manager import DiariumLogger
from diarium.core.paths import ALEMBIC_DIR, ALEMBIC_INI, BLOB_DIR
from .cascade_manager import CascadeManager
from .decorators import handle_db_errors, log_database_operation
from .health_monitor import HealthMonitor
from .managers import (
    AssociationManager,
    AttachmentManager,
    EntryManager,
    LinkManager,
    TermManager,
)
from .models import Base


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let SQLAlchemy, not pysqlite, emit BEGIN.

    pysqlite's own transaction handling defers BEGIN and breaks
    SAVEPOINT; every nested step relies on working SAVEPOINTs.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# ----- Main Database Manager -----
class DiariumDB:
    """
    Main database manager for the Diarium journal.

    Attributes:
        - db_path (Path): Filesystem path to the SQLite database file.
        - alembic_dir (Path): Filesystem path to the Alembic directory.
        - blob_store (BlobStore): Attachment storage shared by all sessions.
        - engine (Engine): SQLAlchemy engine instance.
        - SessionLocal (sessionmaker): SQLAlchemy session factory.

    Usage:
        db = DiariumDB("~/diarium/diarium.db", blob_dir="~/diarium/blobs")
        with db.session_scope():
            entry = db.entries.create("alice", "2024-01-15", "Hello")
            db.associations.sync("alice", entry.id, Kind.TAG, ["hello"])
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        alembic_dir: Union[str, Path] = ALEMBIC_DIR,
        blob_dir: Union[str, Path] = BLOB_DIR,
        log_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        """
        Initialize database engine, session factory and blob store.

        Args:
            db_path (str | Path): Path to the SQLite file.
            alembic_dir (str | Path): Path to the Alembic directory.
            blob_dir (str | Path): Root of the attachment blob store.
            log_dir (str | Path): Directory for log files (optional)
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.alembic_dir = Path(alembic_dir).expanduser().resolve()

        # --- Logging ---
        if log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve() / "system"
            self.logger: Optional[DiariumLogger] = DiariumLogger(
                self.log_dir,
                component_name="database",
            )
        else:
            self.logger = None

        self.blob_store = BlobStore(blob_dir, logger=self.logger)
        self.health_monitor = HealthMonitor(self.logger)

        # Session-bound managers (set inside session_scope)
        self._session: Optional[Session] = None
        self._entry_manager: Optional[EntryManager] = None
        self._term_manager: Optional[TermManager] = None
        self._link_manager: Optional[LinkManager] = None
        self._association_manager: Optional[AssociationManager] = None
        self._attachment_manager: Optional[AttachmentManager] = None
        self._cascade_manager: Optional[CascadeManager] = None

        self._setup_engine()

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        try:
            if self.logger:
                self.logger.log_operation(
                    "database_init_start",
                    {
                        "db_path": str(self.db_path),
                        "alembic_dir": str(self.alembic_dir),
                    },
                )

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            is_new_file = not self.db_path.exists()

            self.engine: Engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                pool_pre_ping=True,
            )
            _enable_sqlite_savepoints(self.engine)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.alembic_cfg: Config = self._setup_alembic()

            if is_new_file:
                self.initialize_schema()

            if self.logger:
                self.logger.log_operation("database_init_complete", {"success": True})

        except DatabaseError:
            raise
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    # ---- Session Management ----
    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope around operations with logging.

        Commits on success, rolls back on any exception. Managers are
        available via properties (db.entries, db.associations, ...) for
        the lifetime of the scope.

        Usage:
            with db.session_scope() as session:
                db.cascade.delete_entry("alice", 42)
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self._bind_managers(session)

        if self.logger:
            self.logger.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
            if self.logger:
                self.logger.log_debug("session_commit", {"session_id": session_id})

        except Exception as e:
            session.rollback()
            if self.logger:
                self.logger.log_debug(
                    "session_rollback",
                    {"session_id": session_id, "error_type": type(e).__name__},
                )
            raise
        finally:
            self._bind_managers(None)
            session.close()
            if self.logger:
                self.logger.log_debug("session_close", {"session_id": session_id})

    def _bind_managers(self, session: Optional[Session]) -> None:
        """Create (or clear) the managers bound to ``session``."""
        self._session = session
        if session is None:
            self._entry_manager = None
            self._term_manager = None
            self._link_manager = None
            self._association_manager = None
            self._attachment_manager = None
            self._cascade_manager = None
            return

        self._entry_manager = EntryManager(session, self.logger)
        self._term_manager = TermManager(session, self.logger)
        self._link_manager = LinkManager(session, self.logger)
        self._association_manager = AssociationManager(
            session, self.logger, terms=self._term_manager, links=self._link_manager
        )
        self._attachment_manager = AttachmentManager(
            session, self.blob_store, self.logger
        )
        self._cascade_manager = CascadeManager(
            session,
            self._entry_manager,
            self._association_manager,
            self._attachment_manager,
            self.logger,
        )

    # -------------------------------------------------------------------------
    # Session-bound Manager Properties
    # -------------------------------------------------------------------------

    def _require(self, manager, name: str):
        if manager is None:
            raise DatabaseError(
                f"{name} requires active session. "
                "Use within session_scope: "
                f"with db.session_scope(): db.{name}..."
            )
        return manager

    @property
    def entries(self) -> EntryManager:
        """
        Access EntryManager for entry operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require(self._entry_manager, "entries")

    @property
    def terms(self) -> TermManager:
        """Access the term catalog (tags, symptoms, medications)."""
        return self._require(self._term_manager, "terms")

    @property
    def links(self) -> LinkManager:
        """Access the link tables."""
        return self._require(self._link_manager, "links")

    @property
    def associations(self) -> AssociationManager:
        """
        Access the association sync engine.

        Recommended usage:
            with db.session_scope():
                db.associations.sync("alice", entry_id, Kind.SYMPTOM, ["Headache"])
        """
        return self._require(self._association_manager, "associations")

    @property
    def attachments(self) -> AttachmentManager:
        """Access attachment storage."""
        return self._require(self._attachment_manager, "attachments")

    @property
    def cascade(self) -> CascadeManager:
        """Access the cascade deletion coordinator."""
        return self._require(self._cascade_manager, "cascade")

    # -------------------------------------------------------------------------
    # Alembic
    # -------------------------------------------------------------------------

    def _setup_alembic(self) -> Config:
        """Setup Alembic configuration."""
        try:
            if self.logger:
                self.logger.log_debug("Setting up Alembic configuration...")

            ini_path = self.alembic_dir / ALEMBIC_INI.name
            alembic_cfg: Config = Config(str(ini_path) if ini_path.exists() else None)
            alembic_cfg.set_main_option("script_location", str(self.alembic_dir))
            alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{self.db_path}")
            alembic_cfg.set_main_option(
                "file_template",
                "%%(year)d%%(month).2d%%(day).2d_%%(hour).2d%%(minute).2d_%%(slug)s",
            )

            if self.logger:
                self.logger.log_debug("Alembic configuration setup complete")
            return alembic_cfg
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "setup_alembic"})
            raise DatabaseError(f"Alembic configuration failed: {e}") from e

    def initialize_schema(self) -> None:
        """
        Initialize database - create tables if needed and run migrations.

        Actions:
            Checks if the database is fresh (no tables)
            If fresh,
                creates all tables from the ORM models
                stamps the Alembic revision to head
            If not,
                runs pending migrations to update schema
        """
        try:
            table_names = inspect(self.engine).get_table_names()
            is_fresh_db: bool = len(table_names) == 0

            if is_fresh_db:
                Base.metadata.create_all(bind=self.engine)
                try:
                    command.stamp(self.alembic_cfg, "head")
                    if self.logger:
                        self.logger.log_operation(
                            "fresh_database_created",
                            {"tables_created": len(Base.metadata.tables)},
                        )
                except Exception as e:
                    if self.logger:
                        self.logger.log_error(e, {"operation": "stamp_database"})
            else:
                self.upgrade_database()
                if self.logger:
                    self.logger.log_operation(
                        "existing_database_migrated",
                        {"table_count": len(table_names)},
                    )

        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """
        Upgrade the database schema to the specified Alembic revision.

        Args:
            revision (str, optional):
                The target revision to upgrade to.
                Defaults to 'head' (latest revision).
        """
        try:
            command.upgrade(self.alembic_cfg, revision)
        except Exception as e:
            raise DatabaseError(f"Database upgrade failed: {e}") from e

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def health_report(self) -> dict:
        """Run the integrity checks in a fresh session."""
        with self.session_scope() as session:
            return self.health_monitor.report(session, self.blob_store)

    def close(self) -> None:
        """Dispose of the engine and close log handlers."""
        self.engine.dispose()
        if self.logger:
            self.logger.close()
