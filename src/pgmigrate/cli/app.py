"""
Root Typer application for the pgmigrate CLI.

    pgmigrate up        apply pending migrations
    pgmigrate status    list migrations as applied / pending
    pgmigrate create    scaffold an empty migration file
"""

from __future__ import annotations

from pathlib import Path

import typer

from pgmigrate.cli.utils import console, fail, make_migrator, print_json, print_rows
from pgmigrate.errors import MigrateError
from pgmigrate.migrations.reporter import Reporter

app = typer.Typer(
    name="pgmigrate",
    help="pgmigrate — apply versioned SQL migrations exactly once, in order.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

DatabaseOpt = typer.Option(None, "--database", "-d", help="Database URL or SQLite path")
TableOpt = typer.Option(None, "--table", "-t", help="Control table name")
DirOpt = typer.Option(None, "--dir", help="Migration directory")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from pgmigrate import __version__

        typer.echo(f"pgmigrate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """pgmigrate CLI — run and scaffold SQL migrations."""


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def up(
    database: str | None = DatabaseOpt,
    table: str | None = TableOpt,
    migration_dir: Path | None = DirOpt,
    lock: bool | None = typer.Option(
        None, "--lock/--no-lock", help="Hold an advisory lock for the whole run"
    ),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Apply every pending migration, in order."""
    reporter = Reporter()
    error: MigrateError | None = None
    try:
        make_migrator(database, table, migration_dir, lock=lock).migrate(reporter)
    except MigrateError as exc:
        error = exc

    if json_out:
        payload: dict = {"outcomes": reporter.to_dicts()}
        if error is not None:
            payload["error"] = error.to_dict()
        print_json(payload)
    else:
        reporter.render(console)

    if error is not None:
        fail(error)


@app.command()
def status(
    database: str | None = DatabaseOpt,
    table: str | None = TableOpt,
    migration_dir: Path | None = DirOpt,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show which migrations are applied and which are pending."""
    try:
        statuses = make_migrator(database, table, migration_dir).status()
    except MigrateError as exc:
        fail(exc)

    rows = [s.to_dict() for s in statuses]
    if json_out:
        print_json(rows)
    else:
        print_rows(rows, title="Migrations")


@app.command()
def create(
    name: str = typer.Argument(..., help="Descriptive name, e.g. add_users"),
    migration_dir: Path | None = DirOpt,
    extension: str | None = typer.Option(None, "--ext", help="File extension"),
) -> None:
    """Create an empty, timestamped migration file."""
    try:
        path = make_migrator(migration_dir=migration_dir, extension=extension).create_migration(name)
    except MigrateError as exc:
        fail(exc)
    console.print(f"created migration {path.name}")
