"""PostgreSQL connection adapter using psycopg3.

The connection is opened in autocommit mode: control-table checks run as
single-statement transactions, and every apply is an explicit
``conn.transaction()`` block which psycopg commits on normal exit and rolls
back when the block raises.

A migration file is sent with ``execute()`` and no parameters, so psycopg
uses the simple query protocol and the file may hold several statements.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg

from pgmigrate.errors import DatabaseConnectionError, QueryError


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except psycopg.Error as exc:
        raise QueryError(str(exc).strip(), cause=exc) from exc


class PostgresTransaction:
    """Statements executed inside one ``conn.transaction()`` block."""

    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn

    def execute_script(self, sql: str) -> None:
        with _translate_errors():
            self._conn.execute(sql)

    def execute(self, sql: str, params: tuple = ()) -> Any:
        with _translate_errors():
            return self._conn.execute(sql, params or None)


class PostgresConnection:
    """Adapter: ``psycopg.Connection`` → ``Connection`` protocol."""

    placeholder = "%s"
    lock_sql: str | None = "SELECT pg_advisory_lock(%s)"
    unlock_sql: str | None = "SELECT pg_advisory_unlock(%s)"

    def __init__(self, url: str, *, connect_timeout: int | None = None) -> None:
        kwargs: dict[str, Any] = {"autocommit": True}
        if connect_timeout is not None:
            kwargs["connect_timeout"] = connect_timeout
        try:
            self._conn = psycopg.connect(url, **kwargs)
        except psycopg.Error as exc:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {exc}", cause=exc
            ) from exc
        self._cursor: Any = None

    def execute(self, sql: str, params: tuple = ()) -> Any:
        with _translate_errors():
            self._cursor = self._conn.execute(sql, params or None)
        return self._cursor

    def fetchone(self) -> Any:
        if self._cursor is None:
            return None
        with _translate_errors():
            return self._cursor.fetchone()

    def fetchall(self) -> list:
        if self._cursor is None:
            return []
        with _translate_errors():
            return self._cursor.fetchall()

    def table_exists(self, name: str) -> bool:
        """Resolved through ``search_path``, like an unqualified ``CREATE TABLE``."""
        self.execute("SELECT to_regclass(%s) IS NOT NULL", (name,))
        row = self.fetchone()
        return bool(row and row[0])

    def commit(self) -> None:
        with _translate_errors():
            self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[PostgresTransaction]:
        with _translate_errors():
            with self._conn.transaction():
                yield PostgresTransaction(self._conn)

    @property
    def raw(self) -> psycopg.Connection:
        """Access the underlying ``psycopg.Connection``."""
        return self._conn

    def __repr__(self) -> str:
        return f"PostgresConnection({self._conn!r})"
