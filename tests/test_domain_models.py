"""Unit tests for domain models."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from combine_normalizer.domain.models import (
    BrandAlias,
    CombineModel,
    CorrectionRecord,
    MatchContext,
    MatchKind,
    MatchResult,
    ModelVariant,
    TypoPattern,
)
from combine_normalizer.errors import (
    DEFAULT_HINTS,
    InvalidInput,
    NormalizationError,
    NormalizationFailed,
    ReferenceDataError,
)


class TestBrandAlias:
    """Tests for BrandAlias model."""

    def test_defaults(self):
        alias = BrandAlias(alias=" JD ", canonical="john_deere")

        assert alias.alias == "JD"
        assert alias.confidence == 0.9
        assert alias.is_active is True
        assert alias.source == "manual"

    def test_canonical_is_lowercased(self):
        assert BrandAlias(alias="jd", canonical="John_Deere").canonical == "john_deere"

    @pytest.mark.parametrize("canonical", ["john deere", "john-deere", "_claas", ""])
    def test_rejects_malformed_brand_token(self, canonical):
        with pytest.raises(ValidationError):
            BrandAlias(alias="jd", canonical=canonical)

    def test_rejects_blank_alias(self):
        with pytest.raises(ValidationError):
            BrandAlias(alias="   ", canonical="john_deere")

    def test_confidence_range(self):
        with pytest.raises(ValidationError):
            BrandAlias(alias="jd", canonical="john_deere", confidence=1.5)

    def test_is_frozen(self):
        alias = BrandAlias(alias="jd", canonical="john_deere")
        with pytest.raises(ValidationError):
            alias.confidence = 0.5


class TestModelVariant:
    """Tests for ModelVariant model."""

    def test_canonical_id(self):
        variant = ModelVariant(variant="s-790", canonical_brand="John_Deere", canonical_model="S790")
        assert variant.canonical_id == "john_deere_s790"

    def test_usage_count_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            ModelVariant(variant="s790", canonical_brand="john_deere", canonical_model="s790", usage_count=-1)

    def test_unknown_source_rejected(self):
        with pytest.raises(ValidationError):
            ModelVariant(variant="s790", canonical_brand="john_deere", canonical_model="s790", source="guess")


class TestCombineModel:
    def test_canonical_id(self):
        assert CombineModel(brand="case_ih", model="af_8250").canonical_id == "case_ih_af_8250"

    def test_rejects_spaces(self):
        with pytest.raises(ValidationError):
            CombineModel(brand="case ih", model="af_8250")


class TestTypoPattern:
    def test_valid_pattern(self):
        pattern = TypoPattern(pattern=r"(?<=\d)o(?=\d)", replacement="0")
        assert pattern.description == ""

    def test_invalid_pattern_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            TypoPattern(pattern="([a-z]", replacement="")

        assert "invalid regular expression" in str(exc_info.value)


class TestMatchContext:
    def test_all_optional(self):
        assert MatchContext() == MatchContext(year=None, region=None, user_id=None)

    def test_year_must_be_integer(self):
        with pytest.raises(ValidationError):
            MatchContext(year="recent")


class TestMatchResult:
    """Tests for MatchResult."""

    def test_brand_and_model(self):
        result = MatchResult(canonical="new_holland_cr_10_90", confidence=1.0, brand="new_holland")

        assert result.model == "cr_10_90"

    def test_model_unknown_without_brand(self):
        assert MatchResult(canonical="john_deere_s790", confidence=1.0).model is None

    def test_candidates(self):
        alt = MatchResult(canonical="john_deere_x9_1000", confidence=0.63, match_kind=MatchKind.FUZZY)
        primary = MatchResult(
            canonical="john_deere_x9_1100",
            confidence=0.7,
            match_kind=MatchKind.FUZZY,
            alternative_matches=(alt,),
        )

        assert primary.candidates() == (primary, alt)

    def test_stamped_returns_copy_in_utc(self):
        result = MatchResult(canonical="john_deere_s790", confidence=0.98)
        local = datetime(2025, 6, 1, 6, 0, 0, tzinfo=timezone(timedelta(hours=-6)))

        stamped = result.stamped(local)

        assert result.cached_at is None
        assert stamped.cached_at == datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert stamped.cached_at.tzinfo == timezone.utc
        assert stamped.canonical == result.canonical

    def test_is_frozen(self):
        result = MatchResult(canonical="john_deere_s790", confidence=0.98)
        with pytest.raises(FrozenInstanceError):
            result.confidence = 1.0

    def test_to_dict(self):
        alt = MatchResult(canonical="john_deere_x9_1000", confidence=0.62951, match_kind=MatchKind.FUZZY, distance=2)
        primary = MatchResult(
            canonical="john_deere_x9_1100",
            confidence=0.69809,
            distance=1,
            match_kind=MatchKind.FUZZY,
            needs_confirmation=True,
            alternative_matches=(alt,),
            brand="john_deere",
        )

        data = primary.to_dict()

        assert data["canonical"] == "john_deere_x9_1100"
        assert data["model"] == "x9_1100"
        assert data["confidence"] == 0.6981
        assert data["match_kind"] == "fuzzy"
        assert data["cached_at"] is None
        assert data["alternative_matches"][0]["canonical"] == "john_deere_x9_1000"


class TestCorrectionRecord:
    """Tests for CorrectionRecord model."""

    def make(self, **overrides):
        values = {
            "record_id": "a" * 64,
            "original_input": " x9 1101 ",
            "canonical_input": "x9 1101",
            "rejected_canonical": "john_deere_x9_1000",
            "accepted_canonical": "john_deere_x9_1100",
            "recorded_at": datetime(2025, 6, 1, 12, 0, 0),
        }
        values.update(overrides)
        return CorrectionRecord(**values)

    def test_strips_and_normalizes(self):
        record = self.make()

        assert record.original_input == "x9 1101"
        assert record.recorded_at.tzinfo == timezone.utc

    def test_correction_is_not_accepted(self):
        assert self.make().was_accepted is False

    def test_blank_rejection_is_absent(self):
        record = self.make(rejected_canonical="  ")

        assert record.rejected_canonical is None
        assert record.was_accepted is True

    def test_same_suggestion_is_accepted(self):
        assert self.make(rejected_canonical="john_deere_x9_1100").was_accepted is True

    @pytest.mark.parametrize("field", ["original_input", "accepted_canonical"])
    def test_required_text_fields(self, field):
        with pytest.raises(ValidationError):
            self.make(**{field: "  "})


class TestErrors:
    """Tests for engine error types."""

    def test_codes(self):
        assert InvalidInput("x").code == "INVALID_INPUT"
        assert NormalizationFailed("x").code == "NORMALIZATION_FAILED"
        assert ReferenceDataError("x").code == "REFERENCE_DATA_INVALID"
        assert issubclass(InvalidInput, NormalizationError)

    def test_normalization_failed_default_hints(self):
        error = NormalizationFailed("No match", input="zzz")
        assert error.hints == DEFAULT_HINTS

    def test_to_dict(self):
        error = InvalidInput("Input must be a string", input=42, hints=["Pass text"])

        assert error.to_dict() == {
            "code": "INVALID_INPUT",
            "message": "Input must be a string",
            "details": {"input": "42", "hints": ["Pass text"]},
        }

    def test_reference_data_error_message(self):
        error = ReferenceDataError(
            "Reference data failed integrity checks",
            errors=["variant 'x9' references unknown model 'john_deere_x9_1100'"],
            suggestions=["Add the model first"],
        )

        text = str(error)
        assert text.startswith("Reference data failed integrity checks")
        assert "  1. variant 'x9'" in text
        assert "  - Add the model first" in text
        assert error.hints == ["Add the model first"]
