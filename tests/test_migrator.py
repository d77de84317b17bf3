"""Tests for the top-level Migrator."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pgmigrate import Migrator, OutcomeStatus, Reporter, default_migrator
from pgmigrate.errors import ConfigError, SQLExecutionError
from pgmigrate.settings import MigrateSettings


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "app.db"


class TestDefaultMigrator:
    def test_defaults(self):
        m = default_migrator("postgresql://app@db/app")
        assert m.database_url == "postgresql://app@db/app"
        assert m.table == "migrations"
        assert m.migration_dir == "migrations"
        assert m.extension == "pgsql"
        assert m.lock is True


class TestFromSettings:
    def test_copies_settings(self):
        settings = MigrateSettings(database_url="app.db", table="schema_log", lock=False)
        m = Migrator.from_settings(settings)
        assert m.database_url == "app.db"
        assert m.table == "schema_log"
        assert m.migration_dir == Path("migrations")
        assert m.lock is False

    def test_overrides_win_and_none_is_ignored(self):
        settings = MigrateSettings(database_url="app.db", table="schema_log")
        m = Migrator.from_settings(settings, database_url="other.db", table=None)
        assert m.database_url == "other.db"
        assert m.table == "schema_log"


class TestMigrate:
    def test_applies_and_closes(self, db_path, migration_dir, write_migration):
        write_migration("001_init.sql", "CREATE TABLE users (id INTEGER PRIMARY KEY);")
        m = Migrator(str(db_path), migration_dir=migration_dir)

        outcomes = m.migrate()

        assert [(o.id, o.status) for o in outcomes] == [("001_init.sql", OutcomeStatus.APPLIED_NOW)]
        with sqlite3.connect(db_path) as raw:
            assert raw.execute("SELECT id FROM migrations").fetchall() == [("001_init.sql",)]

    def test_second_run_reports_already_applied(self, db_path, migration_dir, write_migration):
        write_migration("001_init.sql", "CREATE TABLE users (id INTEGER PRIMARY KEY);")
        m = Migrator(str(db_path), migration_dir=migration_dir)
        m.migrate()

        outcomes = m.migrate()

        assert [o.status for o in outcomes] == [OutcomeStatus.ALREADY_APPLIED]

    def test_without_lock(self, db_path, migration_dir, write_migration):
        write_migration("001_init.sql", "CREATE TABLE users (id INTEGER);")
        m = Migrator(str(db_path), migration_dir=migration_dir, lock=False)
        assert len(m.migrate()) == 1

    def test_failure_keeps_outcomes(self, db_path, migration_dir, write_migration):
        write_migration("001_ok.sql", "CREATE TABLE a (id INTEGER);")
        write_migration("002_bad.sql", "CREATE TABLEX b;")
        reporter = Reporter()

        with pytest.raises(SQLExecutionError) as excinfo:
            Migrator(str(db_path), migration_dir=migration_dir).migrate(reporter)

        expected = [
            ("001_ok.sql", OutcomeStatus.APPLIED_NOW),
            ("002_bad.sql", OutcomeStatus.FAILED),
        ]
        assert [(o.id, o.status) for o in reporter.outcomes] == expected
        assert [(o.id, o.status) for o in excinfo.value.outcomes] == expected

    def test_connection_closed_after_failure(self, migration_dir, write_migration):
        write_migration("001_bad.sql", "nonsense")
        fake_conn = MagicMock()

        with patch(
            "pgmigrate.migrator.create_connection", return_value=(fake_conn, MagicMock())
        ), patch("pgmigrate.migrator.Executor") as executor_cls:
            executor_cls.return_value.run.side_effect = SQLExecutionError("boom")
            with pytest.raises(SQLExecutionError):
                Migrator("memory", migration_dir=migration_dir, lock=False).migrate()

        fake_conn.close.assert_called_once()

    @pytest.mark.parametrize("url", [None, ""])
    def test_missing_url(self, url, migration_dir):
        with pytest.raises(ConfigError):
            Migrator(url, migration_dir=migration_dir).migrate()


class TestStatus:
    def test_reports_applied_and_pending(self, db_path, migration_dir, write_migration):
        write_migration("001_init.sql", "CREATE TABLE a (id INTEGER);")
        m = Migrator(str(db_path), migration_dir=migration_dir)
        m.migrate()
        write_migration("002_next.sql", "CREATE TABLE b (id INTEGER);")

        assert [(s.id, s.applied) for s in m.status()] == [
            ("001_init.sql", True),
            ("002_next.sql", False),
        ]


class TestCreateMigration:
    def test_uses_configured_dir_and_extension(self, migration_dir):
        m = Migrator(None, migration_dir=migration_dir, extension="sql")

        path = m.create_migration("add_users")

        assert path.parent == migration_dir
        assert path.name.endswith("_add_users.sql")


class TestStatusIsReadOnly:
    def test_fresh_database_stays_empty(self, db_path, migration_dir, write_migration):
        write_migration("001_init.sql", "CREATE TABLE a (id INTEGER);")

        statuses = Migrator(str(db_path), migration_dir=migration_dir).status()

        assert [(s.id, s.applied) for s in statuses] == [("001_init.sql", False)]
        with sqlite3.connect(db_path) as raw:
            assert raw.execute("SELECT name FROM sqlite_master").fetchall() == []
