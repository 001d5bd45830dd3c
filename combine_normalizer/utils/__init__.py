"""Utility functions for hashing and time handling."""

from .hashing import compute_correction_id, hash_string
from .timestamps import ensure_utc, format_timestamp, parse_iso_datetime, utc_now

__all__ = [
    # Hashing
    "compute_correction_id",
    "hash_string",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "format_timestamp",
]
