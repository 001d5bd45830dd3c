"""Core domain models for reference data, match results, and corrections.

This module defines the data structures used throughout the engine:
- BrandAlias / ModelVariant / TypoPattern: reference data records
- MatchContext: optional caller-supplied context for a lookup
- MatchResult: immutable output unit of a resolution
- ConfidenceFactors: per-comparison inputs to the confidence scorer
- CorrectionRecord: a user confirmation or correction, emitted to persistence
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from combine_normalizer.utils.timestamps import ensure_utc

CanonicalIdentifier = str

TOKEN_PATTERN = re.compile(r"^[a-z0-9]+(_[a-z0-9]+)*$")


class MatchKind(str, Enum):
    """Which resolver stage produced a result."""

    EXACT = "exact"
    VARIANT = "variant"
    BRAND_ALIAS = "brand_alias"
    FUZZY = "fuzzy"


class ConfidenceLevel(str, Enum):
    """Coarse confidence buckets used by the confirmation UI."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BrandAlias(BaseModel):
    """Alternate brand spelling mapped to a canonical brand token.

    The alias is stored as typed by the curator; the reference store keys it
    by its canonicalized form.
    """

    alias: str = Field(..., description="Alternate brand spelling")
    canonical: str = Field(..., description="Canonical brand token (e.g. john_deere)")
    confidence: float = Field(0.9, ge=0.0, le=1.0, description="Alias weight")
    is_active: bool = Field(True, description="Inactive aliases are ignored by the resolver")
    source: Literal["manual", "learned"] = Field("manual", description="Where the alias came from")

    @field_validator("alias")
    @classmethod
    def strip_alias(cls, v: str) -> str:
        """Strip whitespace from the alias."""
        if not v or not v.strip():
            raise ValueError("alias cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("canonical")
    @classmethod
    def validate_brand_token(cls, v: str) -> str:
        """Brand tokens are lowercase, underscore-joined."""
        v = v.strip().lower()
        if not TOKEN_PATTERN.match(v):
            raise ValueError(f"canonical brand must match {TOKEN_PATTERN.pattern}, got: {v!r}")
        return v

    model_config = {"frozen": True, "json_schema_extra": {"example": {
        "alias": "jd",
        "canonical": "john_deere",
        "confidence": 0.95,
        "is_active": True,
        "source": "manual",
    }}}


class ModelVariant(BaseModel):
    """Alternate model spelling mapped to a canonical brand + model pair."""

    variant: str = Field(..., description="Alternate model spelling")
    canonical_brand: str = Field(..., description="Canonical brand token")
    canonical_model: str = Field(..., description="Canonical model token (e.g. x9_1100)")
    confidence: float = Field(
        0.95,
        ge=0.0,
        le=1.0,
        description="Curator confidence; curation metadata only, lookups use the configured variant confidence",
    )
    source: Literal["manual", "learned", "fuzzy"] = Field("manual")
    usage_count: int = Field(0, ge=0, description="Times this variant resolved a lookup")

    @field_validator("variant")
    @classmethod
    def strip_variant(cls, v: str) -> str:
        """Strip whitespace from the variant."""
        if not v or not v.strip():
            raise ValueError("variant cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("canonical_brand", "canonical_model")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Brand and model tokens are lowercase, underscore-joined."""
        v = v.strip().lower()
        if not TOKEN_PATTERN.match(v):
            raise ValueError(f"token must match {TOKEN_PATTERN.pattern}, got: {v!r}")
        return v

    @property
    def canonical_id(self) -> CanonicalIdentifier:
        """Canonical identifier this variant resolves to."""
        return f"{self.canonical_brand}_{self.canonical_model}"

    model_config = {"frozen": True}


class CombineModel(BaseModel):
    """A known combine: one member of the matchable universe."""

    brand: str = Field(..., description="Canonical brand token")
    model: str = Field(..., description="Canonical model token")

    @field_validator("brand", "model")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Brand and model tokens are lowercase, underscore-joined."""
        v = v.strip().lower()
        if not TOKEN_PATTERN.match(v):
            raise ValueError(f"token must match {TOKEN_PATTERN.pattern}, got: {v!r}")
        return v

    @property
    def canonical_id(self) -> CanonicalIdentifier:
        return f"{self.brand}_{self.model}"

    model_config = {"frozen": True}


class TypoPattern(BaseModel):
    """Ordered rewrite rule applied during canonicalization."""

    pattern: str = Field(..., description="Regular expression (Python syntax)")
    replacement: str = Field("", description="Replacement template (\\1 style groups)")
    description: str = Field("", description="What the rule fixes")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Reject patterns that do not compile."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regular expression {v!r}: {e}") from e
        return v

    model_config = {"frozen": True}


class MatchContext(BaseModel):
    """Optional context supplied alongside a raw input."""

    year: Optional[int] = Field(None, description="Manufacturing year, if known")
    region: Optional[str] = Field(None, description="Region label, e.g. western_canada")
    user_id: Optional[str] = Field(None, description="Requesting user, for logs only")

    model_config = {"frozen": True}


@dataclass(frozen=True)
class MatchResult:
    """Immutable output unit of a resolution.

    Attributes:
        canonical: Canonical identifier, e.g. ``john_deere_x9_1100``
        confidence: Score in [0, 1]; exactly 1.0 for exact matches
        distance: Edit distance (fuzzy matches only, else 0)
        match_kind: Resolver stage that produced the result
        needs_confirmation: True when the caller should ask the user to confirm
        alternative_matches: Up to two runner-up results (primary only)
        cached_at: When the primary result was stored in the cache
        brand: Canonical brand token, when known
    """

    canonical: CanonicalIdentifier
    confidence: float
    distance: int = 0
    match_kind: MatchKind = MatchKind.EXACT
    needs_confirmation: bool = False
    alternative_matches: Tuple["MatchResult", ...] = field(default_factory=tuple)
    cached_at: Optional[datetime] = None
    brand: Optional[str] = None

    @property
    def model(self) -> Optional[str]:
        """Model part of the identifier, when the brand is known."""
        if self.brand and self.canonical.startswith(f"{self.brand}_"):
            return self.canonical[len(self.brand) + 1:]
        return None

    def stamped(self, when: datetime) -> "MatchResult":
        """Return a copy carrying the given cache timestamp."""
        return replace(self, cached_at=ensure_utc(when))

    def candidates(self) -> Tuple["MatchResult", ...]:
        """Primary result followed by its alternatives."""
        return (self,) + tuple(self.alternative_matches)

    def to_dict(self) -> dict:
        """Serialize to plain data (for CLI / API payloads)."""
        return {
            "canonical": self.canonical,
            "brand": self.brand,
            "model": self.model,
            "confidence": round(self.confidence, 4),
            "distance": self.distance,
            "match_kind": self.match_kind.value,
            "needs_confirmation": self.needs_confirmation,
            "alternative_matches": [alt.to_dict() for alt in self.alternative_matches],
            "cached_at": self.cached_at.isoformat() if self.cached_at else None,
        }


@dataclass(frozen=True)
class ConfidenceFactors:
    """Signals for one input/candidate comparison. Never persisted."""

    edit_distance: int
    length_similarity: float
    brand_match: bool
    year_plausible: bool
    context_clues: int


class CorrectionRecord(BaseModel):
    """A user confirmation or correction of a suggested match.

    ``rejected_canonical`` is None when the user picked a match without a
    prior suggestion; when it equals ``accepted_canonical`` the record is a
    confirmation rather than a correction.
    """

    record_id: str = Field(..., description="Deterministic hash of the record contents")
    original_input: str = Field(..., description="Raw input as typed by the user")
    canonical_input: str = Field(..., description="Canonicalized form of original_input")
    rejected_canonical: Optional[str] = Field(None, description="Suggestion the user rejected")
    accepted_canonical: str = Field(..., description="Identifier the user confirmed")
    recorded_at: datetime = Field(..., description="When the correction was recorded (UTC)")
    user_id: Optional[str] = Field(None, description="User who made the correction")

    @field_validator("original_input", "accepted_canonical")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Required text fields cannot be blank."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("rejected_canonical")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty rejected suggestion as absent."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("recorded_at")
    @classmethod
    def recorded_at_in_utc(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @property
    def was_accepted(self) -> bool:
        """True when the user confirmed the suggestion instead of correcting it."""
        return self.rejected_canonical is None or self.rejected_canonical == self.accepted_canonical

    model_config = {"frozen": True, "json_schema_extra": {"example": {
        "record_id": "9f2c...",
        "original_input": "x9 1100",
        "canonical_input": "x9 1100",
        "rejected_canonical": "john_deere_x9_1000",
        "accepted_canonical": "john_deere_x9_1100",
        "recorded_at": "2025-09-01T12:00:00Z",
        "user_id": None,
    }}}
