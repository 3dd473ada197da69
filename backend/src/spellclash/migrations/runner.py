"""Forward-only SQL migration runner.

Migration files live under ``<root>/<dialect subdirectory>`` (or directly
under ``<root>`` for older layouts) and are applied in filename order.
Each applied filename is recorded in the ``migrations`` ledger table in
the same transaction as the file itself, so a file that fails is never
recorded and is retried on the next run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from spellclash.migrations.registry import MigrationRegistry, default_registry
from spellclash.persistence import Database, DatabaseError, MigrationError
from spellclash.persistence.dialect import Dialect

logger = logging.getLogger(__name__)

MIGRATION_PATTERN = "*.sql"


@dataclass
class MigrationInfo:
    """Info about a single migration file."""

    filename: str
    is_applied: bool
    applied_at: Any = None


def resolve_migrations_dir(root: str | Path, dialect: Dialect) -> Path:
    """Prefer the dialect's own subdirectory, fall back to the root."""
    root = Path(root)
    dialect_dir = root / dialect.migrations_subdir
    if dialect_dir.is_dir():
        return dialect_dir
    logger.warning(
        "Dialect-specific migrations not found at %s, using %s",
        dialect_dir,
        root,
    )
    return root


def list_migration_files(directory: Path) -> list[Path]:
    """SQL files in ``directory`` sorted by filename."""
    return sorted(
        (path for path in directory.glob(MIGRATION_PATTERN) if path.is_file()),
        key=lambda path: path.name,
    )


def ensure_ledger(db: Database) -> None:
    try:
        db.exec(db.dialect.ledger_ddl())
    except DatabaseError as exc:
        raise MigrationError("migrations", f"failed to create ledger table: {exc}") from exc


def applied_migrations(db: Database) -> set[str]:
    """Filenames recorded in the ledger."""
    ensure_ledger(db)
    return {row["filename"] for row in db.query("SELECT filename FROM migrations")}


def _apply(
    db: Database,
    path: Path,
    registry: MigrationRegistry,
) -> None:
    filename = path.name
    step = registry.get(filename)
    try:
        with db.begin() as tx:
            if step is not None:
                logger.info("Running programmatic migration: %s", filename)
                step(tx)
            else:
                logger.info("Running migration: %s", filename)
                tx.execute_script(path.read_text(encoding="utf-8"))
            tx.exec("INSERT INTO migrations (filename) VALUES (?)", [filename])
    except MigrationError:
        raise
    except Exception as exc:
        raise MigrationError(filename, str(exc)) from exc


def run_migrations(
    db: Database,
    migrations_path: str | Path,
    registry: MigrationRegistry | None = None,
) -> list[str]:
    """Apply every pending migration file in order.

    Returns the filenames applied by this call; an up-to-date database
    returns an empty list.

    Raises:
        MigrationError: The first file that fails. Files before it stay
            applied and recorded.
    """
    registry = registry if registry is not None else default_registry()
    directory = resolve_migrations_dir(migrations_path, db.dialect)
    if not directory.is_dir():
        raise MigrationError(str(directory), "migrations directory does not exist")

    applied = applied_migrations(db)
    newly_applied: list[str] = []
    for path in list_migration_files(directory):
        if path.name in applied:
            continue
        _apply(db, path, registry)
        applied.add(path.name)
        newly_applied.append(path.name)

    if newly_applied:
        logger.info("Applied %d migration(s)", len(newly_applied))
    else:
        logger.info("Database schema is up to date")
    return newly_applied


def get_migration_status(db: Database, migrations_path: str | Path) -> list[MigrationInfo]:
    """Applied/pending status for every migration file, in applied order."""
    ensure_ledger(db)
    recorded = {
        row["filename"]: row["executed_at"]
        for row in db.query("SELECT filename, executed_at FROM migrations")
    }

    directory = resolve_migrations_dir(migrations_path, db.dialect)
    files = [path.name for path in list_migration_files(directory)] if directory.is_dir() else []
    return [
        MigrationInfo(
            filename=name,
            is_applied=name in recorded,
            applied_at=recorded.get(name),
        )
        for name in sorted(set(files) | set(recorded))
    ]
