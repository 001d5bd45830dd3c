"""Data structures used while ranking fuzzy candidates."""

from dataclasses import dataclass
from typing import Tuple

from combine_normalizer.domain.models import CanonicalIdentifier, MatchKind, MatchResult


@dataclass(frozen=True)
class ScoredCandidate:
    """A fuzzy candidate after scoring.

    Attributes:
        canonical: Identifier the compared spelling belongs to
        brand: Brand token of that identifier
        score: Confidence from the scorer, already capped below 1.0
        distance: Levenshtein distance to the canonicalized input
        context_clues: Shared series/numeric tokens
        order: Position of the spelling in the reference universe
    """

    canonical: CanonicalIdentifier
    brand: str
    score: float
    distance: int
    context_clues: int
    order: int

    @property
    def sort_key(self) -> Tuple[float, int, int, int]:
        """Best first: higher score, more clues, shorter distance, earlier in load order."""
        return (-self.score, -self.context_clues, self.distance, self.order)

    def to_result(self, medium_threshold: float) -> MatchResult:
        return MatchResult(
            canonical=self.canonical,
            confidence=self.score,
            distance=self.distance,
            match_kind=MatchKind.FUZZY,
            needs_confirmation=self.score < medium_threshold,
            brand=self.brand,
        )
