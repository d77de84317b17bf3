"""Tests for the control table StateStore."""

from __future__ import annotations

import pytest

from pgmigrate.errors import QueryError, ValidationError
from pgmigrate.migrations.state import StateStore


@pytest.fixture()
def store(conn) -> StateStore:
    s = StateStore(conn)
    s.ensure_table()
    return s


class TestEnsureTable:
    def test_creates_single_column_table(self, conn, store):
        columns = conn.raw.execute("PRAGMA table_info(migrations)").fetchall()
        assert [(c[1], c[5]) for c in columns] == [("id", 1)]  # name, pk

    def test_idempotent(self, conn, store):
        store.ensure_table()
        store.ensure_table()
        assert conn.raw.execute("SELECT COUNT(*) FROM migrations").fetchone()[0] == 0

    def test_custom_table_name(self, conn):
        StateStore(conn, "schema_log").ensure_table()
        row = conn.raw.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_log'"
        ).fetchone()
        assert row is not None


class TestIsApplied:
    def test_false_when_absent(self, store):
        assert store.is_applied("001_a.sql") is False

    def test_true_after_record(self, conn, store):
        with conn.transaction() as tx:
            store.record_applied(tx, "001_a.sql")
        assert store.is_applied("001_a.sql") is True
        assert store.is_applied("002_b.sql") is False

    def test_query_failure_is_an_error_not_false(self, conn):
        store = StateStore(conn, "never_created")
        with pytest.raises(QueryError, match="no such table"):
            store.is_applied("001_a.sql")


class TestRecordApplied:
    def test_rolled_back_with_transaction(self, conn, store):
        with pytest.raises(RuntimeError):
            with conn.transaction() as tx:
                store.record_applied(tx, "001_a.sql")
                raise RuntimeError("abort")
        assert store.is_applied("001_a.sql") is False

    def test_duplicate_violates_primary_key(self, conn, store):
        with conn.transaction() as tx:
            store.record_applied(tx, "001_a.sql")

        with pytest.raises(QueryError, match="UNIQUE"):
            with conn.transaction() as tx:
                store.record_applied(tx, "001_a.sql")

        assert store.applied_ids() == ["001_a.sql"]


class TestAppliedIds:
    def test_sorted(self, conn, store):
        for migration_id in ("b.sql", "c.sql", "a.sql"):
            with conn.transaction() as tx:
                store.record_applied(tx, migration_id)
        assert store.applied_ids() == ["a.sql", "b.sql", "c.sql"]


class TestTableValidation:
    @pytest.mark.parametrize("table", ["migrations", "_m", "ops.migrations", "Schema_Log2"])
    def test_valid_names(self, conn, table):
        assert StateStore(conn, table).table == table

    @pytest.mark.parametrize(
        "table", ["", "1migrations", "migrations; DROP TABLE users", "a.b.c", "my-table"]
    )
    def test_invalid_names(self, conn, table):
        with pytest.raises(ValidationError):
            StateStore(conn, table)


class TestExists:
    def test_false_before_ensure_table(self, conn):
        assert StateStore(conn).exists() is False

    def test_true_after_ensure_table(self, store):
        assert store.exists() is True

    def test_does_not_create(self, conn):
        StateStore(conn, "schema_log").exists()
        assert conn.raw.execute("SELECT COUNT(*) FROM sqlite_master").fetchone() == (0,)
