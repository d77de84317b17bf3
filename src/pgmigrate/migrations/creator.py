"""Scaffolding for new migration files.

Generated names are ``<timestamp>_<name>.<ext>`` where the timestamp is
RFC 3339 in UTC with a fixed-width nanosecond fraction, e.g.
``2024-05-01T09:30:00.123456789Z_add_users.pgsql``. Fixed width keeps
lexical order equal to creation order.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

from pgmigrate.errors import DirectoryError, MigrationExistsError, ValidationError
from pgmigrate.logging import get_logger

logger = get_logger(__name__)

_last_ns = 0
_ns_lock = threading.Lock()


def _next_timestamp_ns() -> int:
    """Current time in ns, strictly greater than any value returned before."""
    global _last_ns
    with _ns_lock:
        now = time.time_ns()
        _last_ns = now if now > _last_ns else _last_ns + 1
        return _last_ns


def format_timestamp(ns: int) -> str:
    """RFC 3339 UTC timestamp with nanoseconds for ``ns`` since the epoch."""
    seconds, fraction = divmod(ns, 1_000_000_000)
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(seconds)) + f".{fraction:09d}Z"


def migration_filename(name: str, extension: str = "pgsql", *, timestamp_ns: int | None = None) -> str:
    """Build the filename for a new migration called ``name``.

    Raises:
        ValidationError: ``name`` is empty/blank or contains a path separator.
    """
    if not name or not name.strip():
        raise ValidationError("missing migration name")
    if "/" in name or "\\" in name:
        raise ValidationError(f"migration name must not contain a path separator: {name!r}")

    ns = _next_timestamp_ns() if timestamp_ns is None else timestamp_ns
    ext = extension.lstrip(".")
    suffix = f".{ext}" if ext else ""
    return f"{format_timestamp(ns)}_{name}{suffix}"


def create_migration(
    name: str,
    migration_dir: Path | str = "migrations",
    extension: str = "pgsql",
) -> Path:
    """Create an empty migration file and return its path.

    Raises:
        ValidationError: Invalid ``name``; no file is created.
        DirectoryError: ``migration_dir`` does not exist.
        MigrationExistsError: A file with the generated name already exists.
    """
    filename = migration_filename(name, extension)

    directory = Path(migration_dir)
    if not directory.is_dir():
        raise DirectoryError(
            f"Migration directory not found: {directory}"
        ).with_context(path=str(directory))

    path = directory / filename
    try:
        path.touch(exist_ok=False)
    except FileExistsError as exc:
        raise MigrationExistsError(
            f"Migration file already exists: {filename}", cause=exc
        ).with_context(path=str(path)) from exc
    except OSError as exc:
        raise DirectoryError(
            f"Cannot create migration in {directory}: {exc.strerror or exc}", cause=exc
        ).with_context(path=str(directory)) from exc

    logger.info("migration.created", migration=filename, path=str(path))
    return path
