"""Input canonicalization.

This module provides:
- Canonicalizer: lowercases, strips and rewrites raw input with typo patterns
- canonicalize: one-off canonicalization with an explicit pattern list
- to_identifier / identifier_to_text: convert between text and identifier spelling
"""

from .canonicalizer import (
    MAX_PATTERN_PASSES,
    Canonicalizer,
    canonicalize,
    clean_text,
    identifier_to_text,
    to_identifier,
)

__all__ = [
    "Canonicalizer",
    "canonicalize",
    "clean_text",
    "identifier_to_text",
    "to_identifier",
    "MAX_PATTERN_PASSES",
]
