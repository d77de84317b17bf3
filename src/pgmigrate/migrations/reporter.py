"""Run report: collects per-migration outcomes and renders them."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from pgmigrate.logging import get_logger
from pgmigrate.migrations.models import Outcome, OutcomeStatus

logger = get_logger(__name__)

_STATUS_STYLE = {
    OutcomeStatus.ALREADY_APPLIED: "dim",
    OutcomeStatus.APPLIED_NOW: "green",
    OutcomeStatus.FAILED: "bold red",
}


class Reporter:
    """Accumulates ``Outcome`` values in the order the executor produces them.

    Rendering is separate from recording and happens after all database
    work; a failure while rendering is logged and otherwise ignored.
    """

    def __init__(self) -> None:
        self.outcomes: list[Outcome] = []

    def record(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    def to_dicts(self) -> list[dict[str, str]]:
        return [o.to_dict() for o in self.outcomes]

    def build_table(self, title: str | None = None) -> Table:
        table = Table(title=title, show_lines=False, pad_edge=False)
        table.add_column("migration", overflow="fold")
        table.add_column("status")
        for outcome in self.outcomes:
            style = _STATUS_STYLE[outcome.status]
            table.add_row(outcome.id, f"[{style}]{outcome.status.value}[/{style}]")
        return table

    def render(self, console: Console | None = None, *, title: str | None = None) -> None:
        """Print the two-column (migration, status) table."""
        console = console or Console()
        try:
            if not self.outcomes:
                console.print("[dim]No migrations found.[/dim]")
                return
            console.print(self.build_table(title))
        except Exception as exc:  # noqa: BLE001
            logger.warning("report.render_failed", error=str(exc))
