"""
Migration executor: applies pending migrations in order, one transaction each.

Manifesto:
    A migration is applied exactly once. Its statements and the control
    table row recording it commit together or not at all, and a run stops
    at the first failure, so the control table always holds a contiguous
    prefix of the ordered migration list.

Architecture:
    ::

        for each discovered migration (ascending id)
        ┌────────────────────────────────────────────────────────────┐
        │ is_applied(id)? ── yes ──► Outcome(ALREADY_APPLIED)         │
        │       │ no                                                  │
        │ read file ──── error ──► FileReadError (abort)              │
        │       │                                                     │
        │ BEGIN                                                       │
        │   execute_script(content) ── error ─► ROLLBACK,             │
        │                                   Outcome(FAILED),          │
        │                                   SQLExecutionError (abort) │
        │   INSERT control row ──────── error ─► ROLLBACK,            │
        │                                   Outcome(FAILED),          │
        │                                   BookkeepingError (abort)  │
        │ COMMIT ──► Outcome(APPLIED_NOW)                             │
        └────────────────────────────────────────────────────────────┘

States per migration:
    Pending → AlreadyApplied
    Pending → Applying → Applied
    Pending → Applying → Failed (aborts the run)

Guardrails:
    ❌ DON'T: Continue past a failed migration
    ✅ DO: Raise immediately; later migrations get no Outcome

    ❌ DON'T: Record a migration outside its own transaction
    ✅ DO: Insert the control row through the same ``Transaction`` handle

Tags:
    migrations, executor, transactions, idempotent, fail-fast, pgmigrate

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from pathlib import Path

from pgmigrate.errors import (
    BookkeepingError,
    FileReadError,
    MigrateError,
    QueryError,
    SQLExecutionError,
)
from pgmigrate.logging import bind_context, get_logger, unbind_context
from pgmigrate.migrations.discovery import discover_migrations
from pgmigrate.migrations.models import (
    Migration,
    MigrationFile,
    MigrationStatus,
    Outcome,
    OutcomeStatus,
)
from pgmigrate.migrations.reporter import Reporter
from pgmigrate.migrations.state import StateStore
from pgmigrate.protocols import Connection

logger = get_logger(__name__)


def load_migration(migration_file: MigrationFile) -> Migration:
    """Read a discovered file fully into memory."""
    try:
        content = migration_file.path.read_bytes()
    except OSError as exc:
        raise FileReadError(
            f"Cannot read migration {migration_file.id}: {exc.strerror or exc}",
            cause=exc,
        ).with_context(migration=migration_file.id, path=str(migration_file.path)) from exc
    return Migration(id=migration_file.id, path=migration_file.path, content=content)


def _decode(migration: Migration) -> str:
    try:
        return migration.content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FileReadError(
            f"Migration {migration.id} is not valid UTF-8: {exc}", cause=exc
        ).with_context(migration=migration.id, path=str(migration.path)) from exc


class Executor:
    """Applies the migrations found in ``migration_dir`` through ``conn``.

    Parameters
    ----------
    conn
        Any object satisfying the ``Connection`` protocol.
    migration_dir
        Directory walked for migration files.
    table
        Control table name.
    """

    def __init__(
        self,
        conn: Connection,
        migration_dir: Path | str,
        *,
        table: str = "migrations",
    ) -> None:
        self._conn = conn
        self.migration_dir = Path(migration_dir)
        self.state = StateStore(conn, table)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, reporter: Reporter | None = None) -> list[Outcome]:
        """Apply every pending migration in order.

        Returns the outcomes of this run. On failure the error raised
        carries the outcomes produced so far in its ``outcomes`` attribute;
        ``reporter`` has them too.
        """
        reporter = reporter or Reporter()
        start = len(reporter.outcomes)
        bind_context(migration_dir=str(self.migration_dir), table=self.state.table)
        try:
            self.state.ensure_table()
            for migration_file in discover_migrations(self.migration_dir):
                reporter.record(self._process(migration_file, reporter))
        except MigrateError as exc:
            exc.outcomes = list(reporter.outcomes[start:])
            raise
        else:
            outcomes = reporter.outcomes[start:]
            logger.info(
                "run.completed",
                applied=sum(o.status is OutcomeStatus.APPLIED_NOW for o in outcomes),
                skipped=sum(o.status is OutcomeStatus.ALREADY_APPLIED for o in outcomes),
            )
            return list(outcomes)
        finally:
            unbind_context("migration_dir", "table")

    def pending(self, migrations: list[MigrationFile] | None = None) -> list[MigrationFile]:
        """Migrations not yet applied, in order. Read-only.

        ``migrations`` defaults to a fresh discovery. A missing control
        table means nothing has been applied; it is not created here.
        """
        if migrations is None:
            migrations = discover_migrations(self.migration_dir)
        if not self.state.exists():
            return list(migrations)
        applied = set(self.state.applied_ids())
        return [m for m in migrations if m.id not in applied]

    def status(self) -> list[MigrationStatus]:
        """Applied/pending state of every discovered migration. Read-only."""
        migrations = discover_migrations(self.migration_dir)
        pending = {m.id for m in self.pending(migrations)}
        return [MigrationStatus(id=m.id, applied=m.id not in pending) for m in migrations]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _process(self, migration_file: MigrationFile, reporter: Reporter) -> Outcome:
        if self.state.is_applied(migration_file.id):
            logger.debug("migration.skipped", migration=migration_file.id)
            return Outcome(migration_file.id, OutcomeStatus.ALREADY_APPLIED)

        migration = load_migration(migration_file)
        sql = _decode(migration)

        logger.info("migration.applying", migration=migration.id)
        try:
            self._apply(migration, sql)
        except (SQLExecutionError, BookkeepingError) as exc:
            reporter.record(Outcome(migration.id, OutcomeStatus.FAILED))
            logger.error(
                "migration.failed",
                migration=migration.id,
                error_type=type(exc).__name__,
                error=exc.message,
            )
            raise

        logger.info("migration.applied", migration=migration.id)
        return Outcome(migration.id, OutcomeStatus.APPLIED_NOW)

    def _apply(self, migration: Migration, sql: str) -> None:
        """Run ``sql`` and record ``migration`` as one transaction."""
        try:
            with self._conn.transaction() as tx:
                if sql.strip():
                    try:
                        tx.execute_script(sql)
                    except QueryError as exc:
                        raise SQLExecutionError(
                            f"Migration {migration.id} failed: {exc.message}", cause=exc
                        ).with_context(migration=migration.id) from exc
                else:
                    logger.debug("migration.empty", migration=migration.id)

                try:
                    self.state.record_applied(tx, migration.id)
                except QueryError as exc:
                    raise BookkeepingError(
                        f"Recording migration {migration.id} failed: {exc.message}",
                        cause=exc,
                    ).with_context(migration=migration.id, table=self.state.table) from exc
        except QueryError as exc:
            # The COMMIT (or ROLLBACK) itself failed.
            raise BookkeepingError(
                f"Committing migration {migration.id} failed: {exc.message}",
                cause=exc,
            ).with_context(migration=migration.id, table=self.state.table) from exc
