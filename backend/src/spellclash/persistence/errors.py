"""Database error taxonomy.

Driver exceptions are wrapped at each layer boundary with a description of
what was being attempted, and chained with ``raise ... from exc`` so the
original cause is never lost.
"""


class DatabaseError(Exception):
    """Base class for all persistence errors."""


class ConfigurationError(DatabaseError):
    """Unsupported database type, missing connection details, or a rejected
    connection setting. Fatal at startup."""


class ConnectivityError(DatabaseError):
    """The driver could not open or ping the database. Fatal at startup."""


class QueryError(DatabaseError):
    """A statement failed to execute."""

    def __init__(self, operation: str, sql: str, cause: Exception):
        self.operation = operation
        self.sql = sql
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class MigrationError(DatabaseError):
    """A migration file could not be applied or recorded."""

    def __init__(self, filename: str, message: str):
        self.filename = filename
        super().__init__(f"migration {filename}: {message}")


class MisuseError(DatabaseError):
    """Programming error, e.g. using a transaction after commit/rollback."""
