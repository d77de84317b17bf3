"""Run lock: serializes migrator processes sharing one database.

Without it, two migrators racing on the same pending migration are only
stopped by the control table's primary key, which turns the lost race into
a rolled-back ``BookkeepingError``. With it, the second migrator waits for
the first to finish and then sees every migration as already applied.

PostgreSQL uses a session-level advisory lock keyed by the control table
name. Backends without advisory locks (SQLite) make the lock a no-op.
"""

from __future__ import annotations

import hashlib
from types import TracebackType

from pgmigrate.errors import LockError, QueryError
from pgmigrate.logging import get_logger
from pgmigrate.protocols import Connection

logger = get_logger(__name__)


def lock_key(name: str) -> int:
    """Stable signed 64-bit key for ``name`` (PostgreSQL ``bigint`` range)."""
    digest = hashlib.blake2b(name.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class RunLock:
    """Context manager holding the advisory lock for the duration of a run.

    Example::

        with RunLock(conn, "migrations"):
            executor.run(reporter)
    """

    def __init__(self, conn: Connection, name: str) -> None:
        self._conn = conn
        self.name = name
        self.key = lock_key(name)
        self.held = False

    def acquire(self) -> None:
        if self._conn.lock_sql is None:
            logger.debug("run_lock.unsupported", lock=self.name)
            return
        try:
            self._conn.execute(self._conn.lock_sql, (self.key,))
        except QueryError as exc:
            raise LockError(
                f"Failed to acquire run lock for {self.name!r}: {exc.message}", cause=exc
            ).with_context(table=self.name) from exc
        self.held = True
        logger.info("run_lock.acquired", lock=self.name, key=self.key)

    def release(self) -> None:
        if not self.held or self._conn.unlock_sql is None:
            return
        try:
            self._conn.execute(self._conn.unlock_sql, (self.key,))
        except QueryError as exc:
            raise LockError(
                f"Failed to release run lock for {self.name!r}: {exc.message}", cause=exc
            ).with_context(table=self.name) from exc
        finally:
            self.held = False
        logger.info("run_lock.released", lock=self.name)

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is None:
            self.release()
            return
        # Keep the run's own error; an unlock failure only gets logged.
        try:
            self.release()
        except LockError as unlock_exc:
            logger.warning("run_lock.release_failed", lock=self.name, error=unlock_exc.message)
