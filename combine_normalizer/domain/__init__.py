"""Domain models for the combine normalizer."""

from .models import (
    BrandAlias,
    CanonicalIdentifier,
    CombineModel,
    ConfidenceFactors,
    ConfidenceLevel,
    CorrectionRecord,
    MatchContext,
    MatchKind,
    MatchResult,
    ModelVariant,
    TypoPattern,
)

__all__ = [
    "CanonicalIdentifier",
    "BrandAlias",
    "CombineModel",
    "ModelVariant",
    "TypoPattern",
    "MatchContext",
    "MatchKind",
    "MatchResult",
    "ConfidenceFactors",
    "ConfidenceLevel",
    "CorrectionRecord",
]
