"""Persistence layer exceptions.

All of them inherit from PersistenceError so callers can catch database
failures with one clause. The lifecycle layer translates the lookup and
integrity errors into business errors; anything else surfaces unchanged.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Database connection or initialization failed."""

    pass


class RecordNotFoundError(PersistenceError):
    """The requested record does not exist."""

    pass


class RecordExcludedError(PersistenceError):
    """The record exists but is excluded by a filter (e.g. an inactive posting).

    Kept distinct from RecordNotFoundError so callers can tell "missing" from
    "retired".
    """

    pass


class DataIntegrityError(PersistenceError):
    """A database constraint was violated."""

    pass


class DuplicateRecordError(DataIntegrityError):
    """A uniqueness constraint was violated (e.g. second application to a posting)."""

    pass


class StaleRecordError(PersistenceError):
    """A guarded update matched no row because the record changed underneath it."""

    pass
