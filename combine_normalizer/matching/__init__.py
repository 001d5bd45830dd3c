"""Match resolution: staged lookup, confidence scoring and response payloads.

This module provides:
- MatchResolver: exact / variant / brand alias / fuzzy resolution
- score and its helpers: confidence for fuzzy candidates
- ScoredCandidate: ranking record for fuzzy candidates
- Utility functions for building response payloads
"""

from .models import ScoredCandidate
from .resolver import FUZZY_CONFIDENCE_CEILING, MatchResolver
from .scoring import count_context_clues, is_plausible_year, length_similarity, score
from .utils import build_correction_payload, build_error_payload, build_response_payload

__all__ = [
    "MatchResolver",
    "ScoredCandidate",
    "FUZZY_CONFIDENCE_CEILING",
    "score",
    "count_context_clues",
    "is_plausible_year",
    "length_similarity",
    "build_response_payload",
    "build_error_payload",
    "build_correction_payload",
]
