"""Application configuration, read once from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from spellclash.persistence.config import DEFAULT_DB_PATH, DatabaseConfig

DEFAULT_PORT = 8080
DEFAULT_MIGRATIONS_PATH = "./migrations"
DEFAULT_STATIC_PATH = "./static"
DEFAULT_TEMPLATES_PATH = "./templates"
DEFAULT_SESSION_HOURS = 24
DEFAULT_UPLOAD_MAX_SIZE = 5 * 1024 * 1024


def _env(key: str, default: str) -> str:
    """Environment value, treating an empty string as unset."""
    return os.environ.get(key) or default


@dataclass(frozen=True)
class AppConfig:
    db_type: str = "sqlite"
    db_path: str = DEFAULT_DB_PATH
    database_url: str = ""
    migrations_path: str = DEFAULT_MIGRATIONS_PATH
    data_path: str = ""
    port: int = DEFAULT_PORT
    static_path: str = DEFAULT_STATIC_PATH
    templates_path: str = DEFAULT_TEMPLATES_PATH
    session_duration: timedelta = timedelta(hours=DEFAULT_SESSION_HOURS)
    upload_max_size: int = DEFAULT_UPLOAD_MAX_SIZE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> AppConfig:
        """Build the configuration from environment variables.

        Raises:
            ValueError: A numeric setting is not an integer.
        """
        return cls(
            db_type=_env("DB_TYPE", "sqlite"),
            db_path=_env("DB_PATH", DEFAULT_DB_PATH),
            database_url=_env("DATABASE_URL", ""),
            migrations_path=_env("MIGRATIONS_PATH", DEFAULT_MIGRATIONS_PATH),
            data_path=_env("DATA_PATH", ""),
            port=int(_env("PORT", str(DEFAULT_PORT))),
            static_path=_env("STATIC_PATH", DEFAULT_STATIC_PATH),
            templates_path=_env("TEMPLATES_PATH", DEFAULT_TEMPLATES_PATH),
            session_duration=timedelta(
                hours=int(_env("SESSION_DURATION_HOURS", str(DEFAULT_SESSION_HOURS)))
            ),
            upload_max_size=int(_env("UPLOAD_MAX_SIZE", str(DEFAULT_UPLOAD_MAX_SIZE))),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def database(self) -> DatabaseConfig:
        return DatabaseConfig(db_type=self.db_type, path=self.db_path, url=self.database_url)
