"""Top-level migrator: one object per database + migration directory.

``Migrator.migrate()`` is the run operation. It opens the connection,
takes the run lock, applies pending migrations and closes the connection,
raising the first error it meets.

Usage::

    from pgmigrate import default_migrator

    migrator = default_migrator("postgresql://app@localhost/app")
    outcomes = migrator.migrate()
    migrator.create_migration("add_users")
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pgmigrate.connection import create_connection
from pgmigrate.errors import ConfigError
from pgmigrate.logging import get_logger
from pgmigrate.migrations.creator import create_migration
from pgmigrate.migrations.executor import Executor
from pgmigrate.migrations.locks import RunLock
from pgmigrate.migrations.models import MigrationStatus, Outcome
from pgmigrate.migrations.reporter import Reporter
from pgmigrate.settings import MigrateSettings

logger = get_logger(__name__)


@dataclass
class Migrator:
    """Migration configuration plus the operations that use it.

    Attributes:
        database_url: Connection URL (PostgreSQL URL or SQLite path/URL)
        table: Control table for applied migration ids
        migration_dir: Directory holding the migrations
        extension: Extension given to files made by ``create_migration``
        lock: Hold an advisory lock for the whole run
    """

    database_url: str | None
    table: str = "migrations"
    migration_dir: Path | str = "migrations"
    extension: str = "pgsql"
    lock: bool = True

    @classmethod
    def from_settings(cls, settings: MigrateSettings, **overrides: Any) -> Migrator:
        """Build from settings; ``None`` overrides are ignored."""
        values = {
            "database_url": settings.database_url,
            "table": settings.table,
            "migration_dir": settings.migration_dir,
            "extension": settings.extension,
            "lock": settings.lock,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @contextmanager
    def _connect(self) -> Iterator[Any]:
        if not self.database_url:
            raise ConfigError("no database URL configured (set PGMIGRATE_DATABASE_URL or --database)")
        conn, _info = create_connection(self.database_url)
        try:
            yield conn
        finally:
            conn.close()

    def migrate(self, reporter: Reporter | None = None) -> list[Outcome]:
        """Apply all pending migrations.

        Pass a ``Reporter`` to keep the outcomes of a failed run for
        rendering; they are also on the raised error's ``outcomes``.
        """
        reporter = reporter or Reporter()
        with self._connect() as conn:
            executor = Executor(conn, self.migration_dir, table=self.table)
            if not self.lock:
                return executor.run(reporter)
            with RunLock(conn, self.table):
                return executor.run(reporter)

    def status(self) -> list[MigrationStatus]:
        """Applied/pending state of every migration on disk."""
        with self._connect() as conn:
            return Executor(conn, self.migration_dir, table=self.table).status()

    def create_migration(self, name: str) -> Path:
        """Create an empty, uniquely named migration file."""
        return create_migration(name, self.migration_dir, self.extension)


def default_migrator(database_url: str) -> Migrator:
    """A ``Migrator`` with the default table and directory (``migrations``)."""
    return Migrator(database_url=database_url)


__all__ = ["Migrator", "default_migrator"]
