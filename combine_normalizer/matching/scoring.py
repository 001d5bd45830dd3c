"""Confidence scoring for fuzzy candidates.

``score`` is a fixed-weight linear combination of the signals in
``ConfidenceFactors``. It is pure and total: it never raises and always
returns a value in [0, 1].
"""

import math
import re
from datetime import date
from typing import Optional

from combine_normalizer.domain.models import ConfidenceFactors

WEIGHTS = {
    "edit_distance": 0.4,
    "length_similarity": 0.2,
    "brand_match": 0.2,
    "year_plausible": 0.1,
    "context_clues": 0.1,
}

# Distances at or beyond this saturate the edit-distance penalty
DISTANCE_SATURATION = 10
CLUES_FOR_FULL_CREDIT = 3

MIN_PLAUSIBLE_YEAR = 1990

_SERIES_TOKEN = re.compile(r"[a-z]\d+")
_NUMBER = re.compile(r"\d+")


def _finite(value: float) -> Optional[float]:
    """``value`` as a float, or None when it is not a finite number."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def score(factors: ConfidenceFactors) -> float:
    """Combine confidence factors into a single score in [0, 1].

    Terms:
    - edit distance (0.4): ``1 - d / max(d, 10)``, so large distances
      saturate instead of going negative
    - length similarity (0.2): taken as given, clamped to [0, 1]
    - brand match (0.2) and year plausibility (0.1): booleans
    - context clues (0.1): ``min(clues / 3, 1)``

    Non-finite or negative numeric inputs contribute zero.
    """
    distance = _finite(factors.edit_distance)
    if distance is None or distance < 0:
        distance_score = 0.0
    else:
        distance_score = 1.0 - distance / max(distance, DISTANCE_SATURATION)

    length = _finite(factors.length_similarity)
    length_score = _clamp(length) if length is not None else 0.0

    clues = _finite(factors.context_clues)
    clue_score = _clamp(clues / CLUES_FOR_FULL_CREDIT) if clues is not None else 0.0

    brand_score = 1.0 if factors.brand_match else 0.0
    year_score = 1.0 if factors.year_plausible else 0.0

    total = (
        distance_score * WEIGHTS["edit_distance"]
        + length_score * WEIGHTS["length_similarity"]
        + brand_score * WEIGHTS["brand_match"]
        + year_score * WEIGHTS["year_plausible"]
        + clue_score * WEIGHTS["context_clues"]
    )
    return _clamp(total)


def length_similarity(a: str, b: str, distance: int) -> float:
    """Normalized similarity ``1 - distance / max(len(a), len(b))``.

    Two empty strings are identical (1.0).
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return _clamp(1.0 - distance / longest)


def is_plausible_year(
    year: Optional[int], min_year: int = MIN_PLAUSIBLE_YEAR, today: Optional[date] = None
) -> bool:
    """True when no year is given, or it falls in ``[min_year, this year + 1]``."""
    if year is None:
        return True
    current_year = (today or date.today()).year
    return min_year <= year <= current_year + 1


def count_context_clues(text: str, candidate: str) -> int:
    """Count structural tokens of ``text`` that also appear in ``candidate``.

    Series tokens are a letter immediately followed by digits (``x9``,
    ``s790``); numeric tokens are bare digit runs. Each occurrence in
    ``text`` counts once. This is a heuristic: callers should rely on the
    relative ordering it produces, not on exact counts.
    """
    clues = 0

    candidate_series = set(_SERIES_TOKEN.findall(candidate))
    clues += sum(1 for token in _SERIES_TOKEN.findall(text) if token in candidate_series)

    candidate_numbers = set(_NUMBER.findall(candidate))
    clues += sum(1 for token in _NUMBER.findall(text) if token in candidate_numbers)

    return clues
