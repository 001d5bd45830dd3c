"""Data access layer for recorded corrections.

Repositories wrap a session, return domain models rather than ORM models,
and convert SQLAlchemy errors into persistence exceptions.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from combine_normalizer.domain.models import CorrectionRecord

from .exceptions import DataIntegrityError, PersistenceError
from .schema import CorrectionRecordModel

logger = logging.getLogger(__name__)


class CorrectionRepository:
    """Repository for the append-only correction log."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, record: CorrectionRecord) -> CorrectionRecord:
        """Append a correction record.

        Adding a record whose ``record_id`` already exists returns the stored
        record instead (replays are idempotent).

        Args:
            record: CorrectionRecord to persist

        Returns:
            Persisted CorrectionRecord

        Raises:
            DataIntegrityError: If a constraint fails for another reason
            PersistenceError: If a database error occurs
        """
        try:
            existing = self.session.get(CorrectionRecordModel, record.record_id)
            if existing is not None:
                logger.debug(f"Correction {record.record_id} already recorded")
                return existing.to_domain()

            model = CorrectionRecordModel.from_domain(record)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            self.session.rollback()
            existing = self.session.get(CorrectionRecordModel, record.record_id)
            if existing is not None:
                return existing.to_domain()
            raise DataIntegrityError(f"Failed to record correction: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error recording correction {record.record_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record correction: {e}") from e

    def get_by_id(self, record_id: str) -> Optional[CorrectionRecord]:
        """Retrieve a correction by id, or None.

        Raises:
            PersistenceError: If a database error occurs
        """
        try:
            model = self.session.get(CorrectionRecordModel, record_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving correction {record_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve correction: {e}") from e

    def list_for_input(self, canonical_input: str) -> List[CorrectionRecord]:
        """All corrections for one canonicalized input, newest first.

        Raises:
            PersistenceError: If a database error occurs
        """
        try:
            stmt = (
                select(CorrectionRecordModel)
                .where(CorrectionRecordModel.canonical_input == canonical_input)
                .order_by(CorrectionRecordModel.recorded_at.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing corrections for '{canonical_input}': {e}", exc_info=True)
            raise PersistenceError(f"Failed to list corrections: {e}") from e

    def list_recent(self, limit: int = 100) -> List[CorrectionRecord]:
        """Most recent corrections, newest first.

        Raises:
            PersistenceError: If a database error occurs
        """
        try:
            stmt = (
                select(CorrectionRecordModel)
                .order_by(CorrectionRecordModel.recorded_at.desc())
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing recent corrections: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list corrections: {e}") from e

    def count(self) -> int:
        try:
            stmt = select(func.count()).select_from(CorrectionRecordModel)
            return int(self.session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            logger.error(f"Error counting corrections: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count corrections: {e}") from e
