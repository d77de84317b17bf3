"""
Shared pytest fixtures for pgmigrate tests.

This module provides:
- Settings isolation (no PGMIGRATE_* env vars, no stray .env, default structlog)
- An in-memory SQLite connection
- A temporary migration directory plus a helper to write migrations
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog

from pgmigrate.adapters.sqlite import SqliteConnection
from pgmigrate.settings import reset_settings


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Run every test from an empty directory with no pgmigrate env vars."""
    for key in list(os.environ):
        if key.startswith("PGMIGRATE_") and key != "PGMIGRATE_TEST_DATABASE_URL":
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()
    structlog.reset_defaults()


@pytest.fixture()
def conn() -> Iterator[SqliteConnection]:
    """In-memory SQLite connection."""
    c = SqliteConnection(":memory:")
    yield c
    c.close()


@pytest.fixture()
def migration_dir(tmp_path: Path) -> Path:
    d = tmp_path / "migrations"
    d.mkdir()
    return d


@pytest.fixture()
def write_migration(migration_dir: Path) -> Callable[[str, str], Path]:
    """Write ``sql`` to ``migration_dir / name`` (parents created)."""

    def _write(name: str, sql: str) -> Path:
        path = migration_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(sql, encoding="utf-8")
        return path

    return _write

