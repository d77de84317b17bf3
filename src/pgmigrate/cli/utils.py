"""
CLI utility helpers — settings, logging setup and output formatting.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import pydantic
import typer
from rich.console import Console
from rich.table import Table

from pgmigrate.errors import ConfigError, MigrateError
from pgmigrate.logging import configure_logging
from pgmigrate.migrator import Migrator
from pgmigrate.settings import get_settings

console = Console()
err_console = Console(stderr=True)


def make_migrator(
    database: str | None = None,
    table: str | None = None,
    migration_dir: Path | None = None,
    *,
    extension: str | None = None,
    lock: bool | None = None,
) -> Migrator:
    """Settings from env/.env, overridden by whichever CLI options were given."""
    try:
        settings = get_settings()
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}", cause=exc) from exc
    configure_logging(settings.log_level, json_format=settings.log_format == "json")
    return Migrator.from_settings(
        settings,
        database_url=database,
        table=table,
        migration_dir=migration_dir,
        extension=extension,
        lock=lock,
    )


def fail(exc: MigrateError) -> NoReturn:
    """Print ``exc`` to stderr and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(exc).__name__}): {exc.message}")
    raise typer.Exit(code=1)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_rows(rows: list[dict[str, str]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No migrations found.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*row.values())
    console.print(table)
