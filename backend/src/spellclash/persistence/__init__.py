"""Persistence layer - dialects, connection and transaction wrappers."""

from spellclash.persistence.adapter import Executor
from spellclash.persistence.config import DatabaseConfig, create_database
from spellclash.persistence.connection import (
    Database,
    ExecResult,
    Transaction,
    transaction_scope,
)
from spellclash.persistence.dialect import Dialect, get_dialect
from spellclash.persistence.errors import (
    ConfigurationError,
    ConnectivityError,
    DatabaseError,
    MigrationError,
    MisuseError,
    QueryError,
)

__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "Database",
    "DatabaseConfig",
    "DatabaseError",
    "Dialect",
    "ExecResult",
    "Executor",
    "MigrationError",
    "MisuseError",
    "QueryError",
    "Transaction",
    "create_database",
    "get_dialect",
    "transaction_scope",
]
