"""SQLite dialect.

Uses the standard library ``sqlite3`` driver through SQLAlchemy's pool.
SQLite's native placeholder is already ``?``, so queries pass through
unchanged and ``cursor.lastrowid`` gives the id of an inserted row.
"""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Any

from sqlalchemy.pool import QueuePool, StaticPool

from spellclash.persistence.dialect import (
    POOL_MAX_OVERFLOW,
    POOL_RECYCLE_SECONDS,
    POOL_SIZE,
    Dialect,
)
from spellclash.persistence.errors import ConfigurationError

if TYPE_CHECKING:
    from spellclash.persistence.config import DatabaseConfig

MEMORY_PATH = ":memory:"


def split_statements(script: str) -> list[str]:
    """Split a script into complete statements at line ends.

    Uses SQLite's own completeness check, so trigger bodies and
    semicolons inside literals stay intact. Comment-only chunks are dropped.
    """
    statements: list[str] = []
    buffer = ""
    for line in script.splitlines(keepends=True):
        buffer += line
        if sqlite3.complete_statement(buffer):
            statements.append(buffer.strip())
            buffer = ""
    if _has_sql(buffer):
        statements.append(buffer.strip())
    return statements


def _has_sql(chunk: str) -> bool:
    return any(
        line.strip() and not line.strip().startswith("--")
        for line in chunk.splitlines()
    )


class SQLiteDialect(Dialect):
    """Dialect for the embedded SQLite engine."""

    name = "sqlite"
    driver_name = "sqlite3"
    migrations_subdir = "sqlite"
    supports_last_insert_id = True

    def dsn(self, config: DatabaseConfig) -> str:
        if not config.path:
            raise ConfigurationError("sqlite requires a database path (DB_PATH)")
        return f"sqlite:///{config.path}"

    def rewrite(self, query: str) -> str:
        return query

    def ledger_ddl(self) -> str:
        return """
            CREATE TABLE IF NOT EXISTS migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                executed_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """

    def render_bool(self, value: bool) -> str:
        return "1" if value else "0"

    def connection_settings(self) -> list[str]:
        return [
            "PRAGMA journal_mode=WAL",
            "PRAGMA foreign_keys=ON",
        ]

    def engine_options(self, config: DatabaseConfig) -> dict[str, Any]:
        connect_args = {"check_same_thread": False}
        if config.path == MEMORY_PATH:
            # Every pooled connection to :memory: would be a separate,
            # empty database, so share one.
            return {"poolclass": StaticPool, "connect_args": connect_args}
        return {
            "poolclass": QueuePool,
            "pool_size": POOL_SIZE,
            "max_overflow": POOL_MAX_OVERFLOW,
            "pool_recycle": POOL_RECYCLE_SECONDS,
            "connect_args": connect_args,
        }

    def begin(self, raw_connection: Any) -> None:
        # sqlite3 only opens transactions implicitly before DML, so start
        # one explicitly to cover DDL and reads as well.
        cursor = raw_connection.cursor()
        try:
            cursor.execute("BEGIN")
        finally:
            cursor.close()

    def execute_script(self, raw_connection: Any, script: str) -> None:
        # executescript() commits any open transaction first, so run the
        # statements one at a time to keep them inside the caller's.
        cursor = raw_connection.cursor()
        try:
            for statement in split_statements(script):
                cursor.execute(statement)
        finally:
            cursor.close()
