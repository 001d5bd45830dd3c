"""Hashing utilities for correction record identifiers."""

import hashlib
from datetime import datetime
from typing import Optional

from .timestamps import format_timestamp


def compute_correction_id(
    original_input: str,
    rejected_canonical: Optional[str],
    accepted_canonical: str,
    recorded_at: datetime,
) -> str:
    """Compute a deterministic identifier for a correction record.

    The identifier is a SHA256 hash of
    ``original_input|rejected|accepted|recorded_at`` so that replaying the
    same correction at the same instant produces the same key and the
    persistence layer can de-duplicate it.

    Args:
        original_input: Raw input as typed by the user
        rejected_canonical: Suggestion the user rejected (None if none)
        accepted_canonical: Identifier the user confirmed
        recorded_at: When the correction was recorded

    Returns:
        Hexadecimal SHA256 digest (64 characters)
    """
    composite = "|".join(
        [
            original_input.strip(),
            (rejected_canonical or "").strip(),
            accepted_canonical.strip(),
            format_timestamp(recorded_at, include_microseconds=True),
        ]
    )
    return hash_string(composite)


def hash_string(value: str) -> str:
    """Compute SHA256 hash of a string value.

    Args:
        value: String to hash

    Returns:
        Hexadecimal string representation of SHA256 hash (64 characters)
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
