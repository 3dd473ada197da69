"""Executor Protocol: the query interface shared by Database and Transaction."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from spellclash.persistence.connection import ExecResult
from spellclash.persistence.dialect import Dialect


@runtime_checkable
class Executor(Protocol):
    """Interface used by repositories, migration steps and seed routines.

    Both Database (autocommit per call) and Transaction (explicit commit)
    conform, so the same code can run inside or outside a transaction.
    All SQL uses ``?`` placeholders.
    """

    @property
    def dialect(self) -> Dialect: ...

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]: ...

    def query_one(self, sql: str, params: Sequence[Any] | None = None) -> dict[str, Any] | None: ...

    def query_value(self, sql: str, params: Sequence[Any] | None = None) -> Any: ...

    def exec(self, sql: str, params: Sequence[Any] | None = None) -> ExecResult: ...

    def exec_returning_id(self, sql: str, params: Sequence[Any] | None = None) -> int: ...

    def execute_script(self, script: str) -> None: ...
