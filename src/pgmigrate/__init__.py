"""
pgmigrate - apply versioned SQL migrations exactly once, in order.

Migrations are plain SQL files in a directory. Each run applies the ones
missing from the control table, one transaction per file, and stops at the
first failure.

Example:
    >>> from pgmigrate import Migrator
    >>> migrator = Migrator(database_url="sqlite:///app.db", migration_dir="migrations")
    >>> outcomes = migrator.migrate()  # doctest: +SKIP
"""

from pgmigrate.errors import MigrateError
from pgmigrate.migrations import Outcome, OutcomeStatus, Reporter, create_migration
from pgmigrate.migrator import Migrator, default_migrator

__version__ = "0.1.0"

__all__ = [
    "MigrateError",
    "Migrator",
    "Outcome",
    "OutcomeStatus",
    "Reporter",
    "create_migration",
    "default_migrator",
]
