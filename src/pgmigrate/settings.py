"""Configuration management using Pydantic Settings.

Every field can come from a ``PGMIGRATE_``-prefixed environment variable or
a ``.env`` file; CLI options override individual fields.

Examples:
    >>> s = MigrateSettings(database_url="postgresql://app@localhost/app")
    >>> s.table, s.extension
    ('migrations', 'pgsql')
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Optionally schema-qualified SQL identifier: ``migrations`` or ``ops.migrations``.
TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class MigrateSettings(BaseSettings):
    """Settings for a migrator, loaded from environment variables.

    Fields
    ──────
    database_url   : Connection URL (PostgreSQL URL or SQLite path/URL)
    table          : Control table holding applied migration ids
    migration_dir  : Directory walked for migration files
    extension      : File extension used by ``create``
    lock           : Serialize concurrent runs with an advisory lock
    log_level      : Structlog log level
    log_format     : ``console`` or ``json``
    """

    model_config = SettingsConfigDict(
        env_prefix="PGMIGRATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str | None = None
    table: str = "migrations"

    # ── Files ────────────────────────────────────────────────────
    migration_dir: Path = Field(
        default=Path("migrations"),
        description="Directory holding the migration files",
    )
    extension: str = "pgsql"

    # ── Concurrency ──────────────────────────────────────────────
    lock: bool = True

    # ── Observability ────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_format: Literal["json", "console"] = "console"

    @field_validator("table")
    @classmethod
    def _check_table(cls, value: str) -> str:
        if not TABLE_NAME_RE.match(value):
            raise ValueError(f"invalid control table name: {value!r}")
        return value

    @field_validator("extension")
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        return value.lstrip(".")


_settings: MigrateSettings | None = None


def get_settings() -> MigrateSettings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = MigrateSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
