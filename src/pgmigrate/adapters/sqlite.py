"""SQLite connection adapter.

Wraps a raw :class:`sqlite3.Connection` to satisfy the
:class:`~pgmigrate.protocols.Connection` protocol.

The connection runs with ``isolation_level=None`` so that the module never
opens or commits transactions behind our back; every transaction is an
explicit ``BEGIN`` ... ``COMMIT``/``ROLLBACK``. This matters for
``executescript``, which commits any pending transaction before running:
the batch therefore carries its own ``BEGIN`` and must be the first
statement of a transaction.

Usage::

    from pgmigrate.adapters.sqlite import SqliteConnection

    conn = SqliteConnection(":memory:")
    with conn.transaction() as tx:
        tx.execute_script("CREATE TABLE t (id INTEGER); INSERT INTO t VALUES (1);")
        tx.execute("INSERT INTO t VALUES (?)", (2,))
    conn.close()
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pgmigrate.errors import DatabaseConnectionError, QueryError


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise QueryError(str(exc), cause=exc) from exc


class SqliteTransaction:
    """Statements executed between ``BEGIN`` and ``COMMIT``."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def execute_script(self, sql: str) -> None:
        if self._conn.in_transaction:
            raise QueryError("a SQLite batch must be the first statement of its transaction")
        with _translate_errors():
            self._conn.executescript(f"BEGIN;\n{sql}")

    def execute(self, sql: str, params: tuple = ()) -> Any:
        with _translate_errors():
            if not self._conn.in_transaction:
                self._conn.execute("BEGIN")
            return self._conn.execute(sql, params)


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    Maintains a single cursor so that ``execute`` / ``fetchone`` operate on
    the same result set.
    """

    placeholder = "?"
    lock_sql: str | None = None
    unlock_sql: str | None = None

    def __init__(self, path: str = ":memory:", *, timeout: float = 5.0) -> None:
        try:
            self._conn = sqlite3.connect(
                path,
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise DatabaseConnectionError(
                f"Failed to open SQLite database {path!r}: {exc}", cause=exc
            ) from exc
        self._cursor = self._conn.cursor()

    # -- Connection protocol -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        with _translate_errors():
            self._cursor.execute(sql, params)
        return self._cursor

    def fetchone(self) -> Any:
        with _translate_errors():
            return self._cursor.fetchone()

    def fetchall(self) -> list:
        with _translate_errors():
            return self._cursor.fetchall()

    def table_exists(self, name: str) -> bool:
        schema, _, table = name.rpartition(".")
        master = f"{schema}.sqlite_master" if schema else "sqlite_master"
        self.execute(
            f"SELECT EXISTS (SELECT 1 FROM {master} WHERE type = 'table' AND name = ?)",
            (table,),
        )
        return bool(self.fetchone()[0])

    def commit(self) -> None:
        with _translate_errors():
            self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[SqliteTransaction]:
        try:
            yield SqliteTransaction(self._conn)
        except BaseException:
            if self._conn.in_transaction:
                with _translate_errors():
                    self._conn.execute("ROLLBACK")
            raise
        if self._conn.in_transaction:
            try:
                with _translate_errors():
                    self._conn.execute("COMMIT")
            except QueryError:
                # A busy COMMIT leaves the transaction open.
                if self._conn.in_transaction:
                    with _translate_errors():
                        self._conn.execute("ROLLBACK")
                raise

    # -- convenience -------------------------------------------------------

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._conn!r})"
