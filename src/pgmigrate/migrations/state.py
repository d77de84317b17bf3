"""Control table access.

The control table has exactly one column, ``id VARCHAR PRIMARY KEY``, and
is the single source of truth for "has this migration run". Rows are only
ever inserted, inside the same transaction as the migration they record.
"""

from __future__ import annotations

from pgmigrate.errors import ValidationError
from pgmigrate.logging import get_logger
from pgmigrate.protocols import Connection, Transaction
from pgmigrate.settings import TABLE_NAME_RE

logger = get_logger(__name__)


class StateStore:
    """Reads and writes the control table through a ``Connection``.

    The table name is interpolated into SQL, so it is validated as an
    identifier (optionally schema-qualified) up front.
    """

    def __init__(self, conn: Connection, table: str = "migrations") -> None:
        if not TABLE_NAME_RE.match(table or ""):
            raise ValidationError(f"Invalid control table name: {table!r}").with_context(
                table=table
            )
        self._conn = conn
        self.table = table

    def ensure_table(self) -> None:
        """Create the control table if it doesn't exist."""
        self._conn.execute(f"CREATE TABLE IF NOT EXISTS {self.table} (id VARCHAR PRIMARY KEY)")
        self._conn.commit()

    def exists(self) -> bool:
        """Whether the control table exists; never creates it."""
        return self._conn.table_exists(self.table)

    def is_applied(self, migration_id: str) -> bool:
        """True iff ``migration_id`` has a row in the control table.

        ``SELECT EXISTS`` always yields exactly one row, so "not found" is a
        plain ``False``; driver failures propagate as ``QueryError``.
        """
        p = self._conn.placeholder
        self._conn.execute(
            f"SELECT EXISTS (SELECT 1 FROM {self.table} WHERE id = {p})",
            (migration_id,),
        )
        row = self._conn.fetchone()
        return bool(row[0]) if row is not None else False

    def record_applied(self, tx: Transaction, migration_id: str) -> None:
        """Insert the row for ``migration_id`` within ``tx``.

        A duplicate id violates the primary key and fails ``tx``.
        """
        p = self._conn.placeholder
        tx.execute(f"INSERT INTO {self.table} (id) VALUES ({p})", (migration_id,))

    def applied_ids(self) -> list[str]:
        """All recorded ids, ascending."""
        self._conn.execute(f"SELECT id FROM {self.table} ORDER BY id")
        return [row[0] for row in self._conn.fetchall()]
