"""PostgreSQL dialect.

Uses psycopg v3 (psycopg[binary]>=3.2). Differences from SQLite:
  - ``$1, $2, ...`` placeholders, sent through psycopg's RawCursor so the
    server sees the numbered parameters directly
  - no driver-level last-insert-id; inserts append ``RETURNING id``
  - BIGSERIAL / TIMESTAMPTZ in the ledger table
  - foreign keys are always enforced, so no per-connection settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from spellclash.persistence.dialect import Dialect, rewrite_placeholders
from spellclash.persistence.errors import ConfigurationError

if TYPE_CHECKING:
    from spellclash.persistence.config import DatabaseConfig

_URL_PREFIXES = ("postgresql+psycopg://", "postgresql://", "postgres://")


def _numbered(n: int) -> str:
    return f"${n}"


class PostgreSQLDialect(Dialect):
    """Dialect for PostgreSQL via psycopg 3."""

    name = "postgres"
    driver_name = "psycopg"
    migrations_subdir = "postgres"
    supports_last_insert_id = False

    def dsn(self, config: DatabaseConfig) -> str:
        if not config.url:
            raise ConfigurationError("postgres requires a connection URL (DATABASE_URL)")
        for prefix in _URL_PREFIXES:
            if config.url.startswith(prefix):
                return "postgresql+psycopg://" + config.url[len(prefix):]
        raise ConfigurationError(
            f"postgres URL must start with postgres:// or postgresql://, got {config.url!r}"
        )

    def rewrite(self, query: str) -> str:
        return rewrite_placeholders(query, _numbered)

    def ledger_ddl(self) -> str:
        return """
            CREATE TABLE IF NOT EXISTS migrations (
                id BIGSERIAL PRIMARY KEY,
                filename TEXT UNIQUE NOT NULL,
                executed_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
            )
        """

    def cursor(self, raw_connection: Any) -> Any:
        from psycopg import RawCursor

        driver_connection = getattr(raw_connection, "driver_connection", raw_connection)
        return RawCursor(driver_connection)
