"""Destinations for recorded corrections.

A sink only appends; it never reads back into the resolver. Curation of
new variants and aliases from the correction log happens offline and
produces a new reference data snapshot.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from combine_normalizer.domain.models import CorrectionRecord
from combine_normalizer.persistence import CorrectionRepository, PersistenceError, get_session


class CorrectionSink(ABC):
    """Base class for correction sinks.

    Implementations must be safe to call from several threads and signal
    failure by raising PersistenceError.
    """

    @abstractmethod
    def append(self, record: CorrectionRecord) -> None:
        """Append one correction record.

        Raises:
            PersistenceError: If the record could not be stored
        """


class InMemoryCorrectionSink(CorrectionSink):
    """Keeps corrections in a list. The default when no database is configured."""

    def __init__(self) -> None:
        self._records: List[CorrectionRecord] = []
        self._lock = threading.Lock()

    def append(self, record: CorrectionRecord) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> List[CorrectionRecord]:
        """Snapshot of recorded corrections, oldest first."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class DatabaseCorrectionSink(CorrectionSink):
    """Appends corrections to the ``normalization_corrections`` table.

    Uses one short transaction per record. ``init_database`` must have been
    called before the first append.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], AbstractContextManager[Session]]] = None,
    ):
        """
        Args:
            session_factory: Context manager factory yielding a session
                (defaults to persistence.get_session)
        """
        self.session_factory = session_factory or get_session

    def append(self, record: CorrectionRecord) -> None:
        try:
            with self.session_factory() as session:
                CorrectionRepository(session).add(record)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store correction {record.record_id}: {e}") from e
