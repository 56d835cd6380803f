"""Persistence layer: SQLAlchemy engine, session lifecycle and repositories.

Repositories take a session from ``get_session()`` and never commit on their
own, so a unit of work (insert plus counter increment) commits as one
transaction.
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    DuplicateRecordError,
    PersistenceError,
    RecordExcludedError,
    RecordNotFoundError,
    StaleRecordError,
)
from .repositories import (
    ApplicationRepository,
    JobPostingRepository,
    UserRepository,
    new_id,
)

__all__ = [
    # Database management
    "init_database",
    "get_session",
    "get_engine",
    "close_database",
    # Repositories
    "ApplicationRepository",
    "JobPostingRepository",
    "UserRepository",
    "new_id",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "RecordExcludedError",
    "StaleRecordError",
]
