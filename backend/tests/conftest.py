"""Shared fixtures: per-test SQLite databases and the project migrations."""

from pathlib import Path

import pytest

from spellclash.migrations import run_migrations
from spellclash.persistence import Database, DatabaseConfig

PROJECT_ROOT = Path(__file__).resolve().parents[2]
MIGRATIONS_ROOT = PROJECT_ROOT / "migrations"


@pytest.fixture
def sqlite_config(tmp_path):
    return DatabaseConfig(db_type="sqlite", path=str(tmp_path / "test.db"))


@pytest.fixture
def db(sqlite_config):
    database = Database(sqlite_config)
    database.connect()
    yield database
    database.close()


@pytest.fixture
def migrated_db(db):
    """Database with the full project schema applied."""
    run_migrations(db, MIGRATIONS_ROOT)
    return db
