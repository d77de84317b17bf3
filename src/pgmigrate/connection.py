"""Connection factory — create database connections from URL strings.

This is the single entry point for opening the connection a run uses.
The engine only sees the returned adapter through the
:class:`~pgmigrate.protocols.Connection` protocol.

Supported URL schemes
---------------------
==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:``                  SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/my.db`` or ``/tmp/app.db``          SQLite file
``postgresql``      ``postgresql://user:pw@host:port/db``        PostgreSQL
``postgres``        ``postgres://user:pw@host:port/db``          PostgreSQL
==================  ==========================================  ============

Unlike a development helper, a migrator must never silently fall back to a
different database: an unreachable server raises
:class:`~pgmigrate.errors.DatabaseConnectionError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pgmigrate.errors import ConfigError
from pgmigrate.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    """Backend identifier: ``"sqlite"`` or ``"postgresql"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the connection."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"

    def redacted_url(self) -> str:
        """The URL with any password replaced, safe for logs."""
        if "://" not in self.url or "@" not in self.url:
            return self.url
        scheme, rest = self.url.split("://", 1)
        userinfo, host = rest.rsplit("@", 1)
        user = userinfo.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}" if ":" in userinfo else self.url


# ── URL parsing ──────────────────────────────────────────────────────────


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into (scheme, target).

    Returns
    -------
    tuple[str, str]
        (scheme, target) where scheme is one of
        ``"memory"``, ``"sqlite"``, ``"postgresql"``, ``"file"``.
    """
    if db is None or not db.strip():
        raise ConfigError("no database URL configured (set PGMIGRATE_DATABASE_URL or --database)")

    if db in ("memory", ":memory:"):
        return "memory", ":memory:"

    if db.startswith("sqlite://"):
        path = db[len("sqlite:///"):] if db.startswith("sqlite:///") else db[len("sqlite://"):]
        if not path or path == ":memory:":
            return "memory", ":memory:"
        return "sqlite", path

    if db.startswith(("postgresql://", "postgres://")):
        return "postgresql", db

    if db.startswith(("postgresql+", "postgres+")):
        # SQLAlchemy-style driver suffix: postgresql+psycopg://...
        base = db.split("://", 1)
        scheme = base[0].split("+")[0]
        return "postgresql", f"{scheme}://{base[1]}" if len(base) > 1 else db

    return "file", db


# ── Main factory ─────────────────────────────────────────────────────────


def create_connection(db: str | None) -> tuple[Any, ConnectionInfo]:
    """Open a connection from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``"memory"``, a SQLite path or ``sqlite:///`` URL, or a
        ``postgresql://`` URL.

    Returns
    -------
    tuple[Connection, ConnectionInfo]

    Raises
    ------
    ConfigError
        No URL given.
    DatabaseConnectionError
        The database could not be opened or reached.
    """
    scheme, target = _parse_url(db)

    if scheme == "postgresql":
        from pgmigrate.adapters.postgresql import PostgresConnection

        conn: Any = PostgresConnection(target)
        info = ConnectionInfo(backend="postgresql", persistent=True, url=target)
    elif scheme == "memory":
        from pgmigrate.adapters.sqlite import SqliteConnection

        conn = SqliteConnection(":memory:")
        info = ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")
    else:
        from pgmigrate.adapters.sqlite import SqliteConnection

        resolved = str(Path(target).resolve())
        conn = SqliteConnection(resolved)
        info = ConnectionInfo(
            backend="sqlite",
            persistent=True,
            url=target,
            resolved_path=resolved,
        )

    logger.debug("connection.opened", backend=info.backend, url=info.redacted_url())
    return conn, info


__all__ = ["ConnectionInfo", "create_connection"]
