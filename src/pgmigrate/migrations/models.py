"""Data types shared by the migration engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class OutcomeStatus(str, Enum):
    """Terminal state of one migration within a run."""

    ALREADY_APPLIED = "already applied"
    APPLIED_NOW = "applied now"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class MigrationFile:
    """A discovered migration file whose content has not been read yet."""

    id: str
    path: Path


@dataclass(frozen=True, slots=True)
class Migration:
    """A migration loaded for application."""

    id: str
    path: Path
    content: bytes


@dataclass(frozen=True, slots=True)
class AppliedRecord:
    """One row of the control table."""

    id: str


@dataclass(frozen=True, slots=True)
class Outcome:
    """What happened to one migration during a run."""

    id: str
    status: OutcomeStatus

    def to_dict(self) -> dict[str, str]:
        return {"migration": self.id, "status": self.status.value}


@dataclass(frozen=True, slots=True)
class MigrationStatus:
    """Applied/pending state of a discovered migration, for ``status``."""

    id: str
    applied: bool

    def to_dict(self) -> dict[str, str]:
        return {"migration": self.id, "status": "applied" if self.applied else "pending"}
