#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and configuration for the Diarium project.

This module defines all project paths as Path objects for consistent path handling
across the codebase. Paths are relative to the project root directory.

The project structure:
    ROOT/
    ├── diarium/       # Package code (migrations live in diarium/migrations)
    ├── data/          # User data (database, attachment blobs)
    └── logs/          # Application logs
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/diarium/core/paths.py and navigates up
    the directory tree to find ROOT.

    Returns:
        Path object for project root
    """
    current_file = Path(__file__).resolve()

    # Navigate up: paths.py -> core/ -> diarium/ -> ROOT/
    return current_file.parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()
PACKAGE_DIR = ROOT / "diarium"
DATA_DIR = ROOT / "data"

# --- Database ---
ALEMBIC_DIR = PACKAGE_DIR / "migrations"
ALEMBIC_INI = ALEMBIC_DIR / "alembic.ini"
DB_DIR = DATA_DIR / "metadata"
DB_PATH = DB_DIR / "diarium.db"

# --- Attachments ---
BLOB_DIR = DATA_DIR / "blobs"

# ---- Logs ----
LOG_DIR = ROOT / "logs"
