"""
Structured error types for pgmigrate.

Every failure the engine can hit is a typed ``MigrateError`` carrying a
category, structured context (migration id, path, table) and the chained
driver or OS exception. Nothing in the core terminates the process: errors
travel up to the caller of ``Migrator.migrate()``, which decides how to
report them.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind of a run
    - **Rich Context:** Errors carry the migration id for reporting
    - **Error Chaining:** The original driver exception is kept as ``cause``
    - **No Exits:** The core raises, the CLI decides the exit status

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        MigrateError                          │
        │             (category, context, cause, outcomes)             │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  DatabaseError            StorageError       ValidationError │
        │  (DATABASE)               (STORAGE)          (VALIDATION)    │
        │       │                        │                             │
        │  DatabaseConnectionError  DirectoryError     ConfigError     │
        │  QueryError               FileReadError      (CONFIG)        │
        │  SQLExecutionError        MigrationExistsError               │
        │  BookkeepingError                                            │
        │  LockError                                                   │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = SQLExecutionError("syntax error").with_context(migration="a.sql")
    >>> err.context.migration
    'a.sql'
    >>> err.to_dict()["category"]
    'DATABASE'

Tags:
    error-handling, exception-hierarchy, error-context, pgmigrate

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pgmigrate.migrations.models import Outcome


class ErrorCategory(str, Enum):
    """Error categories used for reporting and exit handling."""

    DATABASE = "DATABASE"         # Connectivity, queries, transactions
    STORAGE = "STORAGE"           # Migration directory and files
    VALIDATION = "VALIDATION"     # Bad names, bad identifiers
    CONFIG = "CONFIG"             # Missing or invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        migration: Id of the migration being processed
        path: Filesystem path involved (file or directory)
        table: Control table name
        metadata: Additional key-value pairs
    """

    migration: str | None = None
    path: str | None = None
    table: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["migration", "path", "table"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MigrateError(Exception):
    """
    Base exception for all pgmigrate errors.

    Subclasses set ``default_category``. ``outcomes`` is filled in by the
    executor when a run aborts, so callers can still report every migration
    attempted before the failure.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        self.outcomes: list[Outcome] = []

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MigrateError:
        """
        Add context to this error (fluent API).

        Usage:
            raise FileReadError("unreadable").with_context(path=str(path))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(MigrateError):
    """Base for errors raised while talking to the database."""

    default_category = ErrorCategory.DATABASE


class DatabaseConnectionError(DatabaseError):
    """The database could not be reached or refused the credentials.

    Raised before any migration work starts.
    """


class QueryError(DatabaseError):
    """A driver-level failure outside the apply transaction.

    Covers control-table creation and the "is applied" check. A missing row
    is never a ``QueryError``.
    """


class SQLExecutionError(DatabaseError):
    """A migration's own statements failed; its transaction was rolled back."""


class BookkeepingError(DatabaseError):
    """Recording a migration as applied failed; its transaction was rolled back.

    The usual cause is a primary-key violation after losing a race against
    another migrator applying the same migration.
    """


class LockError(DatabaseError):
    """The run lock could not be acquired or released."""


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageError(MigrateError):
    """Base for filesystem errors."""

    default_category = ErrorCategory.STORAGE


class DirectoryError(StorageError):
    """The migration directory is missing or cannot be walked."""


class FileReadError(StorageError):
    """A discovered migration file cannot be read or decoded."""


class MigrationExistsError(StorageError):
    """A generated migration filename is already taken on disk."""


# =============================================================================
# VALIDATION / CONFIG ERRORS
# =============================================================================


class ValidationError(MigrateError):
    """Invalid input: empty migration name, bad table identifier."""

    default_category = ErrorCategory.VALIDATION


class ConfigError(MigrateError):
    """Missing or invalid configuration (e.g. no database URL)."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "BookkeepingError",
    "ConfigError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DirectoryError",
    "ErrorCategory",
    "ErrorContext",
    "FileReadError",
    "LockError",
    "MigrateError",
    "MigrationExistsError",
    "QueryError",
    "SQLExecutionError",
    "StorageError",
    "ValidationError",
]
