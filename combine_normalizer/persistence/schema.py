"""ORM model for recorded corrections and schema creation."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Index, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from combine_normalizer.domain.models import CorrectionRecord
from combine_normalizer.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


class CorrectionRecordModel(Base):
    """ORM model for the normalization_corrections table.

    Append-only log of user confirmations and corrections. Curation jobs read
    it to promote new variants and aliases into reference data.
    """

    __tablename__ = "normalization_corrections"

    record_id = Column(String(64), primary_key=True, nullable=False)

    original_input = Column(Text, nullable=False)
    canonical_input = Column(Text, nullable=False)
    rejected_canonical = Column(String(255), nullable=True)
    accepted_canonical = Column(String(255), nullable=False)
    user_id = Column(String(255), nullable=True)

    # Stored as ISO 8601 strings (UTC, Z suffix)
    recorded_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_corrections_canonical_input", "canonical_input"),
        Index("idx_corrections_recorded_at", "recorded_at"),
        Index("idx_corrections_accepted", "accepted_canonical"),
    )

    def to_domain(self) -> CorrectionRecord:
        return CorrectionRecord(
            record_id=self.record_id,
            original_input=self.original_input,
            canonical_input=self.canonical_input,
            rejected_canonical=self.rejected_canonical,
            accepted_canonical=self.accepted_canonical,
            recorded_at=_parse_datetime(self.recorded_at),
            user_id=self.user_id,
        )

    @classmethod
    def from_domain(cls, record: CorrectionRecord) -> "CorrectionRecordModel":
        return cls(
            record_id=record.record_id,
            original_input=record.original_input,
            canonical_input=record.canonical_input,
            rejected_canonical=record.rejected_canonical,
            accepted_canonical=record.accepted_canonical,
            recorded_at=_format_datetime(record.recorded_at),
            user_id=record.user_id,
        )

    def __repr__(self) -> str:
        return (
            f"<CorrectionRecordModel(record_id={self.record_id!r}, "
            f"canonical_input={self.canonical_input!r}, accepted={self.accepted_canonical!r})>"
        )


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format as ISO 8601 UTC with microseconds and a Z suffix.

    The fixed width keeps lexical order equal to chronological order.
    """
    if dt is None:
        return None
    return format_timestamp(dt, include_microseconds=True)


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    return parse_iso_datetime(dt_str)


def create_schema(engine: Engine) -> None:
    """Create tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
