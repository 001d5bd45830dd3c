"""Persistence layer for the correction log.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - CorrectionRepository: append and query correction records

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from combine_normalizer.persistence import init_database, get_session, CorrectionRepository
    >>>
    >>> init_database("sqlite:///./data/corrections.db")
    >>>
    >>> with get_session() as session:
    ...     recent = CorrectionRepository(session).list_recent(limit=10)
"""

from .database import close_database, get_engine, get_session, init_database, is_initialized
from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError
from .repositories import CorrectionRepository
from .schema import CorrectionRecordModel

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "is_initialized",
    "CorrectionRepository",
    "CorrectionRecordModel",
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
