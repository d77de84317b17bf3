"""Migration file discovery.

Walks the migration directory recursively and returns every file (no
extension filter) sorted by its path relative to the directory. The sort
is explicit: ``os.walk`` yields entries in whatever order the filesystem
returns them.
"""

from __future__ import annotations

import os
from pathlib import Path

from pgmigrate.errors import DirectoryError
from pgmigrate.logging import get_logger
from pgmigrate.migrations.models import MigrationFile

logger = get_logger(__name__)


def migration_id(directory: Path, path: Path) -> str:
    """Id of ``path``: its location relative to ``directory``, ``/``-separated."""
    return path.relative_to(directory).as_posix()


def _raise_walk_error(exc: OSError) -> None:
    raise DirectoryError(
        f"Cannot read migration directory {exc.filename}: {exc.strerror}",
        cause=exc,
    ).with_context(path=str(exc.filename))


def discover_files(directory: Path | str) -> list[Path]:
    """Return every non-directory entry under ``directory``, in id order.

    Raises:
        DirectoryError: ``directory`` is missing, not a directory, or some
            part of the tree cannot be listed.
    """
    root = Path(directory)
    if not root.is_dir():
        raise DirectoryError(
            f"Migration directory not found: {root}"
        ).with_context(path=str(root))

    files: list[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        files.extend(Path(dirpath) / name for name in filenames)

    return sorted(files, key=lambda p: migration_id(root, p))


def discover_migrations(directory: Path | str) -> list[MigrationFile]:
    """Discovered files paired with their migration ids, in application order."""
    root = Path(directory)
    migrations = [MigrationFile(id=migration_id(root, p), path=p) for p in discover_files(root)]
    logger.debug("migration.discovered", directory=str(root), count=len(migrations))
    return migrations
