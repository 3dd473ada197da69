"""MySQL dialect.

Uses PyMySQL. The driver formats parameters client-side with ``%s``
markers, so ``?`` becomes ``%s`` and literal ``%`` signs are doubled.
Connections are opened with multi-statement support so migration files
can be sent in one round trip.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from spellclash.persistence.dialect import Dialect, rewrite_placeholders
from spellclash.persistence.errors import ConfigurationError

if TYPE_CHECKING:
    from spellclash.persistence.config import DatabaseConfig

_URL_PREFIXES = ("mysql+pymysql://", "mysql://")


def _format(n: int) -> str:
    return "%s"


class MySQLDialect(Dialect):
    """Dialect for MySQL / MariaDB via PyMySQL."""

    name = "mysql"
    driver_name = "pymysql"
    migrations_subdir = "mysql"
    supports_last_insert_id = True

    def dsn(self, config: DatabaseConfig) -> str:
        if not config.url:
            raise ConfigurationError("mysql requires a connection URL (DATABASE_URL)")
        for prefix in _URL_PREFIXES:
            if config.url.startswith(prefix):
                return "mysql+pymysql://" + config.url[len(prefix):]
        raise ConfigurationError(f"mysql URL must start with mysql://, got {config.url!r}")

    def rewrite(self, query: str) -> str:
        return rewrite_placeholders(
            query, _format, escape_percent=True, backslash_escapes=True
        )

    def ledger_ddl(self) -> str:
        return """
            CREATE TABLE IF NOT EXISTS migrations (
                id BIGINT AUTO_INCREMENT PRIMARY KEY,
                filename VARCHAR(255) UNIQUE NOT NULL,
                executed_at DATETIME(6) DEFAULT CURRENT_TIMESTAMP(6)
            )
        """

    def connection_settings(self) -> list[str]:
        return ["SET FOREIGN_KEY_CHECKS = 1"]

    def engine_options(self, config: DatabaseConfig) -> dict[str, Any]:
        from pymysql.constants import CLIENT

        options = super().engine_options(config)
        options["connect_args"] = {
            "client_flag": CLIENT.MULTI_STATEMENTS | CLIENT.FOUND_ROWS,
        }
        return options

    def execute_script(self, raw_connection: Any, script: str) -> None:
        cursor = raw_connection.cursor()
        try:
            cursor.execute(script)
            # Each statement produces a result set that must be consumed
            # before the connection can be reused.
            while cursor.nextset():
                pass
        finally:
            cursor.close()
