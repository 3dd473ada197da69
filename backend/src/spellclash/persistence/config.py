"""Database configuration and factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from spellclash.persistence.dialect import Dialect, get_dialect

if TYPE_CHECKING:
    from spellclash.persistence.connection import Database

DEFAULT_DB_PATH = "./spellclash.db"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    ``path`` is used by SQLite, ``url`` by PostgreSQL and MySQL.
    """

    db_type: str = "sqlite"
    path: str = ""
    url: str = ""

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Create config from environment variables.

        DB_TYPE selects the engine (default sqlite). DB_PATH is the SQLite
        file and DATABASE_URL the server URL for postgres/mysql.
        """
        return cls(
            db_type=os.environ.get("DB_TYPE") or "sqlite",
            path=os.environ.get("DB_PATH") or DEFAULT_DB_PATH,
            url=os.environ.get("DATABASE_URL", ""),
        )

    @property
    def dialect(self) -> Dialect:
        return get_dialect(self.db_type)

    @property
    def is_sqlite(self) -> bool:
        return self.dialect.name == "sqlite"


def create_database(config: DatabaseConfig) -> Database:
    """Create a Database for the configured engine (not yet connected).

    Raises:
        ConfigurationError: For unsupported database types or a missing
            path/URL.
    """
    from spellclash.persistence.connection import Database

    dialect = config.dialect
    # Validate the connection details now rather than on first use.
    dialect.dsn(config)
    return Database(config, dialect)
