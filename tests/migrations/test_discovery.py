"""Tests for migration file discovery."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from pgmigrate.errors import DirectoryError
from pgmigrate.migrations.discovery import discover_files, discover_migrations, migration_id


class TestDiscoverFiles:
    def test_sorted_by_relative_path(self, migration_dir, write_migration):
        write_migration("003_c.sql", "")
        write_migration("001_a.sql", "")
        write_migration("002_b.sql", "")

        files = discover_files(migration_dir)

        assert [p.name for p in files] == ["001_a.sql", "002_b.sql", "003_c.sql"]

    def test_recursive_and_excludes_directories(self, migration_dir, write_migration):
        write_migration("001_a.sql", "")
        write_migration("nested/deeper/002_b.sql", "")
        (migration_dir / "empty_dir").mkdir()

        files = discover_files(migration_dir)

        assert [migration_id(migration_dir, p) for p in files] == [
            "001_a.sql",
            "nested/deeper/002_b.sql",
        ]

    def test_no_extension_filter(self, migration_dir, write_migration):
        write_migration("001_a.pgsql", "")
        write_migration("002_b.sql", "")
        write_migration("README", "")

        assert len(discover_files(migration_dir)) == 3

    def test_order_independent_of_walk_order(self, migration_dir, write_migration, monkeypatch):
        for name in ("b.sql", "c.sql", "a.sql"):
            write_migration(name, "")
        real_walk = os.walk

        def reversed_walk(top, *args, **kwargs):
            for dirpath, dirnames, filenames in real_walk(top, *args, **kwargs):
                yield dirpath, dirnames, sorted(filenames, reverse=True)

        monkeypatch.setattr(os, "walk", reversed_walk)

        assert [p.name for p in discover_files(migration_dir)] == ["a.sql", "b.sql", "c.sql"]

    def test_empty_directory(self, migration_dir):
        assert discover_files(migration_dir) == []

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(DirectoryError) as excinfo:
            discover_files(tmp_path / "does-not-exist")
        assert excinfo.value.context.path == str(tmp_path / "does-not-exist")

    def test_file_instead_of_directory(self, tmp_path: Path):
        f = tmp_path / "file.sql"
        f.write_text("", encoding="utf-8")
        with pytest.raises(DirectoryError):
            discover_files(f)

    def test_unreadable_directory(self, migration_dir, write_migration, monkeypatch):
        write_migration("001_a.sql", "")

        def _denied(path):
            raise PermissionError(13, "Permission denied", os.fspath(path))

        monkeypatch.setattr(os, "scandir", _denied)

        with pytest.raises(DirectoryError, match="Permission denied"):
            discover_files(migration_dir)


class TestDiscoverMigrations:
    def test_pairs_paths_with_ids(self, migration_dir, write_migration):
        path = write_migration("sub/001_a.sql", "SELECT 1;")

        [migration] = discover_migrations(migration_dir)

        assert migration.id == "sub/001_a.sql"
        assert migration.path == path

    def test_accepts_str_directory(self, migration_dir, write_migration):
        write_migration("001_a.sql", "")
        assert [m.id for m in discover_migrations(str(migration_dir))] == ["001_a.sql"]
