"""Dialect-aware connection and transaction wrappers.

Application code writes SQL with ``?`` placeholders; every statement is
passed through ``Dialect.rewrite`` before it reaches the driver, so the
same repository code runs unchanged on SQLite, PostgreSQL and MySQL.

Pooling is delegated to SQLAlchemy: ``Database`` owns an Engine and
borrows raw DB-API connections from its pool. Rows come back as dicts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from spellclash.persistence.config import DatabaseConfig
from spellclash.persistence.dialect import Dialect
from spellclash.persistence.errors import (
    ConfigurationError,
    ConnectivityError,
    DatabaseError,
    MisuseError,
    QueryError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ExecResult:
    """Outcome of a statement that does not return rows."""

    rowcount: int
    lastrowid: int | None = None


def _fetch_dicts(cursor: Any) -> list[dict[str, Any]]:
    if cursor.description is None:
        return []
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def returning_id_sql(sql: str) -> str:
    """Append ``RETURNING id`` to an INSERT, dropping any trailing ``;``."""
    return sql.rstrip().rstrip(";").rstrip() + " RETURNING id"


class _Executor:
    """Query surface shared by Database and Transaction.

    Subclasses provide ``_run``, which hands a raw connection to the
    callback and decides how the surrounding transaction ends.
    """

    _dialect: Dialect

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def _run(self, operation: str, sql: str, fn: Callable[[Any], T]) -> T:
        raise NotImplementedError

    def _statement(
        self,
        raw: Any,
        sql: str,
        params: Sequence[Any] | None,
    ) -> Any:
        cursor = self._dialect.cursor(raw)
        cursor.execute(sql, tuple(params or ()))
        return cursor

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Run a SELECT and return every row."""
        rewritten = self._dialect.rewrite(sql)

        def fetch(raw: Any) -> list[dict[str, Any]]:
            cursor = self._statement(raw, rewritten, params)
            try:
                return _fetch_dicts(cursor)
            finally:
                cursor.close()

        return self._run("query", rewritten, fetch)

    def query_one(self, sql: str, params: Sequence[Any] | None = None) -> dict[str, Any] | None:
        """Run a SELECT and return the first row, or None."""
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def query_value(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """Return the first column of the first row, or None."""
        row = self.query_one(sql, params)
        if row is None:
            return None
        return next(iter(row.values()))

    def exec(self, sql: str, params: Sequence[Any] | None = None) -> ExecResult:
        """Run a statement that does not return rows."""
        rewritten = self._dialect.rewrite(sql)

        def execute(raw: Any) -> ExecResult:
            cursor = self._statement(raw, rewritten, params)
            try:
                return ExecResult(
                    rowcount=cursor.rowcount,
                    lastrowid=getattr(cursor, "lastrowid", None),
                )
            finally:
                cursor.close()

        return self._run("exec", rewritten, execute)

    def exec_returning_id(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Run an INSERT and return the id of the new row.

        Engines with a driver-level last-insert-id use it directly. Others
        get ``RETURNING id`` appended and the id is read from the result.
        """
        rewritten = self._dialect.rewrite(sql)

        if self._dialect.supports_last_insert_id:

            def insert(raw: Any) -> int:
                cursor = self._statement(raw, rewritten, params)
                try:
                    return int(cursor.lastrowid)
                finally:
                    cursor.close()

            return self._run("insert", rewritten, insert)

        rewritten = returning_id_sql(rewritten)

        def insert_returning(raw: Any) -> int:
            cursor = self._statement(raw, rewritten, params)
            try:
                row = cursor.fetchone()
            finally:
                cursor.close()
            if row is None:
                raise RuntimeError("INSERT ... RETURNING id produced no row")
            return int(row[0])

        return self._run("insert", rewritten, insert_returning)

    def execute_script(self, script: str) -> None:
        """Run a multi-statement SQL script verbatim (no placeholder rewrite)."""
        self._run(
            "execute script",
            script,
            lambda raw: self._dialect.execute_script(raw, script),
        )


class Database(_Executor):
    """Connection wrapper holding the pool and the selected Dialect."""

    def __init__(self, config: DatabaseConfig, dialect: Dialect | None = None):
        self.config = config
        self._dialect = dialect or config.dialect
        self.engine: Engine | None = None

    def connect(self) -> None:
        """Create the pool, apply connection settings and ping the server.

        Raises:
            ConfigurationError: Bad URL, missing driver, or a rejected
                connection setting.
            ConnectivityError: The database could not be reached.
        """
        url = self._dialect.dsn(self.config)
        try:
            engine = create_engine(url, **self._dialect.engine_options(self.config))
        except Exception as exc:
            raise ConfigurationError(f"failed to create {self._dialect.name} engine: {exc}") from exc

        self._dialect.configure(engine)
        self.engine = engine

        try:
            self._ping()
        except ConfigurationError:
            self.close()
            raise
        except Exception as exc:
            self.close()
            raise ConnectivityError(f"failed to connect to {self._dialect.name} database: {exc}") from exc

        logger.info("Database connection established (type: %s)", self._dialect.name)

    def _ping(self) -> None:
        raw = self._raw_connection()
        try:
            cursor = raw.cursor()
            try:
                cursor.execute("SELECT 1")
                cursor.fetchall()
            finally:
                cursor.close()
        finally:
            raw.close()

    def close(self) -> None:
        """Dispose of the pool. Safe to call more than once."""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def _raw_connection(self) -> Any:
        if self.engine is None:
            raise MisuseError("Database not connected")
        return self.engine.raw_connection()

    def _run(self, operation: str, sql: str, fn: Callable[[Any], T]) -> T:
        raw = self._raw_connection()
        try:
            result = fn(raw)
            raw.commit()
            return result
        except Exception as exc:
            try:
                raw.rollback()
            except Exception:
                logger.warning("Rollback after failed %s also failed", operation, exc_info=True)
            if isinstance(exc, DatabaseError):
                raise
            raise QueryError(operation, sql, exc) from exc
        finally:
            raw.close()

    def begin(self) -> Transaction:
        """Open a transaction on a dedicated pooled connection."""
        raw = self._raw_connection()
        try:
            self._dialect.begin(raw)
        except Exception as exc:
            raw.close()
            raise QueryError("begin", "", exc) from exc
        return Transaction(raw, self._dialect)

    def __enter__(self) -> Database:
        if not self.is_connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class Transaction(_Executor):
    """A transaction bound to one pooled connection.

    Exactly one of commit() or rollback() must be called. Any use after
    that, including a second commit/rollback, raises MisuseError. As a
    context manager it commits on a clean exit and rolls back otherwise.
    Not safe to share between threads.
    """

    def __init__(self, raw_connection: Any, dialect: Dialect):
        self._raw = raw_connection
        self._dialect = dialect
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def _run(self, operation: str, sql: str, fn: Callable[[Any], T]) -> T:
        if not self._active:
            raise MisuseError(f"cannot {operation}: transaction already finished")
        try:
            return fn(self._raw)
        except DatabaseError:
            raise
        except Exception as exc:
            raise QueryError(operation, sql, exc) from exc

    @contextmanager
    def savepoint(self, name: str = "sp") -> Iterator[None]:
        """Scope a group of statements so a failure undoes only them.

        The transaction stays usable after the block raises; PostgreSQL
        would otherwise refuse every later statement.
        """
        self.exec(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            self.exec(f"ROLLBACK TO SAVEPOINT {name}")
            self.exec(f"RELEASE SAVEPOINT {name}")
            raise
        self.exec(f"RELEASE SAVEPOINT {name}")

    def commit(self) -> None:
        self._finish("commit")

    def rollback(self) -> None:
        self._finish("rollback")

    def _finish(self, action: str) -> None:
        if not self._active:
            raise MisuseError(f"cannot {action}: transaction already finished")
        self._active = False
        try:
            getattr(self._raw, action)()
        except Exception as exc:
            raise QueryError(action, "", exc) from exc
        finally:
            # Returning the connection to the pool resets any leftover state.
            self._raw.close()

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._active:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()


@contextmanager
def transaction_scope(executor: Database | Transaction) -> Iterator[Transaction]:
    """Yield a transaction for a unit of work.

    An existing Transaction is reused and left for its owner to finish;
    a Database opens a new one that commits when the block exits cleanly.
    """
    if isinstance(executor, Transaction):
        yield executor
        return
    with executor.begin() as tx:
        yield tx
