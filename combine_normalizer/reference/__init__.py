"""Reference data: known models, brand aliases, model variants and typo patterns."""

from .loader import DEFAULT_REFERENCE_PATH, load_reference_data, parse_reference_data
from .store import (
    CANONICAL_BRAND_WEIGHT,
    AliasEntry,
    FuzzyCandidate,
    ReferenceData,
    build_reference_data,
)

__all__ = [
    "ReferenceData",
    "AliasEntry",
    "FuzzyCandidate",
    "build_reference_data",
    "load_reference_data",
    "parse_reference_data",
    "DEFAULT_REFERENCE_PATH",
    "CANONICAL_BRAND_WEIGHT",
]
