"""SQL migration engine.

Applies migration files from a directory in id order, tracking which have
been applied in a control table, one transaction per migration.

Modules
-------
discovery   recursive, sorted file discovery
state       StateStore over the control table
executor    Executor.run() / pending() / status()
reporter    Reporter collecting and rendering outcomes
creator     create_migration() scaffolding
locks       RunLock advisory lock around a run

Tags:
    migrations, schema, database, idempotent, DDL
"""

from pgmigrate.migrations.creator import create_migration
from pgmigrate.migrations.discovery import discover_files, discover_migrations
from pgmigrate.migrations.executor import Executor
from pgmigrate.migrations.locks import RunLock
from pgmigrate.migrations.models import (
    AppliedRecord,
    Migration,
    MigrationFile,
    MigrationStatus,
    Outcome,
    OutcomeStatus,
)
from pgmigrate.migrations.reporter import Reporter
from pgmigrate.migrations.state import StateStore

__all__ = [
    "AppliedRecord",
    "Executor",
    "Migration",
    "MigrationFile",
    "MigrationStatus",
    "Outcome",
    "OutcomeStatus",
    "Reporter",
    "RunLock",
    "StateStore",
    "create_migration",
    "discover_files",
    "discover_migrations",
]
