"""
Canonical protocol definitions for pgmigrate.

The engine never imports a database driver. It talks to a ``Connection``
(queries outside a transaction, plus ``transaction()``) and, inside an
apply, to the ``Transaction`` handle that context manager yields. The
adapters in :mod:`pgmigrate.adapters` implement both for SQLite and
PostgreSQL; tests may supply any object of the same shape.

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── Transaction   — execute_script(), execute() inside one unit
        └── Connection    — execute(), fetchone(), fetchall(), table_exists(),
                            commit(), close(), transaction(), lock statements

Guardrails:
    ❌ DON'T: Catch driver exceptions in the engine
    ✅ DO: Let adapters translate them into ``QueryError``

Tags:
    protocol, connection, transaction, pgmigrate, contracts
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transaction(Protocol):
    """Handle for statements that commit or roll back together."""

    def execute_script(self, sql: str) -> None:
        """Run ``sql`` as one batch of one or more statements."""
        ...

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Run a single parameterized statement."""
        ...


@runtime_checkable
class Connection(Protocol):
    """Synchronous database connection used by the migration engine.

    ``placeholder`` is the driver's parameter marker (``?`` or ``%s``).
    ``lock_sql`` / ``unlock_sql`` are the advisory lock statements taking a
    single integer key, or ``None`` when the backend has no such locks.
    """

    placeholder: str
    lock_sql: str | None
    unlock_sql: str | None

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement outside of any explicit transaction."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from the last executed statement."""
        ...

    def fetchall(self) -> list:
        """Fetch all remaining rows from the last executed statement."""
        ...

    def table_exists(self, name: str) -> bool:
        """True if table ``name`` (optionally schema-qualified) exists; read-only."""
        ...

    def commit(self) -> None:
        """Commit pending work from ``execute``."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...

    def transaction(self) -> AbstractContextManager[Transaction]:
        """Open a transaction: commit on normal exit, roll back on error."""
        ...


__all__ = ["Connection", "Transaction"]
