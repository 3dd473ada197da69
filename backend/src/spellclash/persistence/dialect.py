"""Dialect base class and dispatch.

A Dialect captures everything that differs between database engines:
  - connection URL construction and pool sizing
  - per-connection settings (pragmas, session variables)
  - placeholder syntax; application SQL is always written with ``?``
  - how the id of an inserted row is retrieved
  - migrations subdirectory name and ledger table DDL
  - boolean literal rendering

Dialects are stateless. One instance is chosen from configuration when a
Database is opened and shared read-only by every query path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.pool import QueuePool

from spellclash.persistence.errors import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from spellclash.persistence.config import DatabaseConfig

CANONICAL_PLACEHOLDER = "?"

# max open = POOL_SIZE + POOL_MAX_OVERFLOW, max idle = POOL_SIZE
POOL_SIZE = 5
POOL_MAX_OVERFLOW = 20
POOL_RECYCLE_SECONDS = 300


def rewrite_placeholders(
    query: str,
    render: Callable[[int], str],
    escape_percent: bool = False,
    backslash_escapes: bool = False,
) -> str:
    """Replace each ``?`` placeholder with ``render(n)``, n counting from 1.

    Question marks inside single- or double-quoted literals and inside
    ``--`` or ``/* */`` comments are kept as-is. Quotes inside comments do
    not open a literal. With ``backslash_escapes``, ``\\'`` inside a literal
    does not close it. With ``escape_percent``, every ``%`` is doubled so
    that format-style drivers do not mistake it for a placeholder.
    """
    out: list[str] = []
    counter = 0
    quote: str | None = None
    i = 0
    length = len(query)

    def copy(segment: str) -> None:
        out.append(segment.replace("%", "%%") if escape_percent else segment)

    while i < length:
        char = query[i]
        if quote is not None:
            if backslash_escapes and char == "\\" and i + 1 < length:
                copy(query[i:i + 2])
                i += 2
                continue
            if char == quote:
                quote = None
            copy(char)
            i += 1
        elif query.startswith("--", i):
            end = query.find("\n", i)
            end = length if end == -1 else end
            copy(query[i:end])
            i = end
        elif query.startswith("/*", i):
            end = query.find("*/", i + 2)
            end = length if end == -1 else end + 2
            copy(query[i:end])
            i = end
        elif char in ("'", '"'):
            quote = char
            copy(char)
            i += 1
        elif char == CANONICAL_PLACEHOLDER:
            counter += 1
            out.append(render(counter))
            i += 1
        else:
            copy(char)
            i += 1
    return "".join(out)


class Dialect(ABC):
    """Engine-specific behaviour behind a single interface."""

    name: str = ""
    driver_name: str = ""
    migrations_subdir: str = ""
    supports_last_insert_id: bool = True

    @abstractmethod
    def dsn(self, config: DatabaseConfig) -> str:
        """Build the SQLAlchemy URL for this engine.

        File-based engines read ``config.path``; networked engines read
        ``config.url``. The other field is ignored.

        Raises:
            ConfigurationError: If the field this engine needs is empty.
        """

    @abstractmethod
    def rewrite(self, query: str) -> str:
        """Translate canonical ``?`` placeholders to the driver's syntax."""

    @abstractmethod
    def ledger_ddl(self) -> str:
        """CREATE TABLE IF NOT EXISTS statement for the migrations ledger."""

    def render_bool(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def connection_settings(self) -> list[str]:
        """Statements run on every new driver connection."""
        return []

    def engine_options(self, config: DatabaseConfig) -> dict[str, Any]:
        """Keyword arguments for ``sqlalchemy.create_engine``."""
        return {
            "poolclass": QueuePool,
            "pool_size": POOL_SIZE,
            "max_overflow": POOL_MAX_OVERFLOW,
            "pool_recycle": POOL_RECYCLE_SECONDS,
            "pool_pre_ping": True,
        }

    def configure(self, engine: Engine) -> None:
        """Apply connection settings to every connection the pool opens."""
        settings = self.connection_settings()
        if not settings:
            return

        def _apply(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            try:
                for statement in settings:
                    try:
                        cursor.execute(statement)
                    except Exception as exc:
                        raise ConfigurationError(
                            f"{self.name}: connection setting rejected ({statement}): {exc}"
                        ) from exc
            finally:
                cursor.close()

        event.listen(engine, "connect", _apply)

    def begin(self, raw_connection: Any) -> None:
        """Start a transaction on a pooled connection.

        psycopg and PyMySQL open one implicitly on the first statement.
        """

    def cursor(self, raw_connection: Any) -> Any:
        """Open a driver cursor that accepts this dialect's placeholders."""
        return raw_connection.cursor()

    def execute_script(self, raw_connection: Any, script: str) -> None:
        """Execute a possibly multi-statement SQL script verbatim."""
        cursor = raw_connection.cursor()
        try:
            cursor.execute(script)
        finally:
            cursor.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _registry() -> dict[str, type[Dialect]]:
    from spellclash.persistence.mysql import MySQLDialect
    from spellclash.persistence.postgresql import PostgreSQLDialect
    from spellclash.persistence.sqlite import SQLiteDialect

    return {
        "": SQLiteDialect,
        "sqlite": SQLiteDialect,
        "sqlite3": SQLiteDialect,
        "postgres": PostgreSQLDialect,
        "postgresql": PostgreSQLDialect,
        "mysql": MySQLDialect,
    }


def get_dialect(db_type: str | None) -> Dialect:
    """Return a Dialect for a configured database type string.

    Raises:
        ConfigurationError: For unsupported database types.
    """
    key = (db_type or "").strip().lower()
    dialect_cls = _registry().get(key)
    if dialect_cls is None:
        raise ConfigurationError(f"Unsupported database type: {db_type}")
    return dialect_cls()
