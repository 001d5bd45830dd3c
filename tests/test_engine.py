"""Tests for the CombineNormalizer facade."""

import pytest

from combine_normalizer.cache import ResultCache
from combine_normalizer.config import AppConfig, EnvironmentConfig, parse_app_config
from combine_normalizer.domain.models import CombineModel, ConfidenceLevel, MatchContext, MatchKind
from combine_normalizer.engine import CombineNormalizer
from combine_normalizer.errors import InvalidInput, NormalizationFailed
from combine_normalizer.feedback import DatabaseCorrectionSink, InMemoryCorrectionSink
from combine_normalizer.persistence import CorrectionRepository, get_session
from combine_normalizer.reference import build_reference_data


@pytest.fixture
def cache(clock):
    return ResultCache(ttl_seconds=3600, clock=clock)


@pytest.fixture
def normalizer(reference_data, cache, clock):
    return CombineNormalizer(reference_data, cache=cache, clock=clock)


class TestNormalize:
    """End-to-end lookups through the facade."""

    def test_variant_lookup(self, normalizer):
        results = normalizer.normalize("jd s790")

        assert len(results) == 1
        assert results[0].canonical == "john_deere_s790"
        assert results[0].match_kind == MatchKind.VARIANT

    def test_fuzzy_lookup_returns_primary_and_alternatives(self, normalizer):
        results = normalizer.normalize("x9 1101")

        assert [r.canonical for r in results] == ["john_deere_x9_1100", "john_deere_x9_1000"]
        assert results[0].alternative_matches == (results[1],)

    def test_invalid_input_is_logged_and_raised(self, normalizer, caplog):
        with caplog.at_level("WARNING", logger="combine_normalizer.engine"):
            with pytest.raises(InvalidInput):
                normalizer.normalize("   ")

        assert any(getattr(r, "event", None) == "normalization.invalid_input" for r in caplog.records)

    def test_no_match_raises(self, normalizer):
        with pytest.raises(NormalizationFailed):
            normalizer.normalize("zzz99 unknown tractor")

    def test_context_as_mapping(self, normalizer):
        results = normalizer.normalize("x9 1101", {"year": 2024, "region": "western_canada"})
        assert results[0].canonical == "john_deere_x9_1100"

    def test_context_as_model(self, reference_data):
        normalizer = CombineNormalizer(reference_data)
        with pytest.raises(NormalizationFailed):
            normalizer.normalize("x9 1101", MatchContext(year=1980))

    def test_invalid_context(self, normalizer):
        with pytest.raises(InvalidInput) as exc_info:
            normalizer.normalize("x9 1101", {"year": "last spring"})

        assert "Invalid match context" in exc_info.value.message

    def test_resolved_event_logged(self, normalizer, caplog):
        with caplog.at_level("INFO", logger="combine_normalizer.engine"):
            normalizer.normalize("jd s790")

        record = next(r for r in caplog.records if getattr(r, "event", None) == "normalization.resolved")
        assert record.canonical == "john_deere_s790"
        assert record.cached is False
        assert record.component == "engine"


class TestCaching:
    """Result cache integration."""

    def test_cache_hit_is_identical(self, normalizer):
        first = normalizer.normalize("x9 1101")
        second = normalizer.normalize("x9 1101")

        assert second == first
        assert second[0] is first[0]

    def test_cache_key_is_canonical_input(self, normalizer, cache):
        first = normalizer.normalize("X9 1101")
        second = normalizer.normalize("  x9   1101! ")

        assert second[0] is first[0]
        assert len(cache) == 1
        assert "x9 1101" in cache

    def test_primary_is_stamped_with_clock(self, normalizer, clock):
        results = normalizer.normalize("jd s790")
        assert results[0].cached_at == clock.now

    def test_cache_hit_logged(self, normalizer, caplog):
        normalizer.normalize("jd s790")

        with caplog.at_level("DEBUG", logger="combine_normalizer.engine"):
            normalizer.normalize("jd s790")

        events = [getattr(r, "event", None) for r in caplog.records]
        assert "normalization.cache.hit" in events

    def test_expired_entry_is_recomputed(self, normalizer, clock):
        first = normalizer.normalize("jd s790")
        clock.advance(3600)
        second = normalizer.normalize("jd s790")

        assert second[0] is not first[0]
        assert second[0].cached_at == clock.now
        assert second[0].canonical == first[0].canonical

    def test_identifiers_bypass_cache(self, normalizer, cache):
        results = normalizer.normalize("john_deere_x9_1100")

        assert results[0].match_kind == MatchKind.EXACT
        assert results[0].cached_at is None
        assert len(cache) == 0

    def test_failures_are_not_cached(self, normalizer, cache):
        with pytest.raises(NormalizationFailed):
            normalizer.normalize("zzz99 unknown tractor")

        assert len(cache) == 0

    def test_without_cache(self, reference_data):
        normalizer = CombineNormalizer(reference_data)

        results = normalizer.normalize("jd s790")

        assert normalizer.cache is None
        assert results[0].cached_at is None


class TestFindBestMatches:
    def test_limit(self, normalizer):
        assert len(normalizer.find_best_matches("x9 1101", limit=1)) == 1
        assert len(normalizer.find_best_matches("x9 1101")) == 2

    def test_limit_must_be_positive(self, normalizer):
        with pytest.raises(ValueError):
            normalizer.find_best_matches("x9 1101", limit=0)


class TestConfidenceHelpers:
    @pytest.mark.parametrize(
        "score, level",
        [
            (1.0, ConfidenceLevel.HIGH),
            (0.95, ConfidenceLevel.HIGH),
            (0.94, ConfidenceLevel.MEDIUM),
            (0.8, ConfidenceLevel.MEDIUM),
            (0.79, ConfidenceLevel.LOW),
            (0.0, ConfidenceLevel.LOW),
        ],
    )
    def test_confidence_level(self, normalizer, score, level):
        assert normalizer.confidence_level(score) == level

    def test_requires_confirmation(self, normalizer):
        assert normalizer.requires_confirmation(0.8) is False
        assert normalizer.requires_confirmation(0.7999) is True


class TestRecordCorrection:
    """Feedback through the facade."""

    def test_correction_invalidates_cache(self, normalizer, cache):
        normalizer.normalize("x9 1101")
        assert "x9 1101" in cache

        record = normalizer.record_correction("x9 1101", "john_deere_x9_1100", "john_deere_x9_1000")

        assert "x9 1101" not in cache
        assert normalizer.correction_sink.records == [record]

    def test_correction_does_not_change_reference_data(self, normalizer):
        normalizer.record_correction("x9 1101", "john_deere_x9_1100", "john_deere_x9_1000")

        results = normalizer.normalize("x9 1101")

        assert results[0].canonical == "john_deere_x9_1100"

    def test_blank_accepted_raises(self, normalizer):
        with pytest.raises(InvalidInput):
            normalizer.record_correction("x9 1101", None, "  ")


class TestReplaceReferenceData:
    def test_swap_clears_cache_and_uses_new_snapshot(self, normalizer, cache):
        normalizer.normalize("jd s790")
        assert len(cache) == 1

        normalizer.replace_reference_data(
            build_reference_data(models=[CombineModel(brand="john_deere", model="x9_1100")])
        )

        assert len(cache) == 0
        assert len(normalizer.reference_data) == 1
        with pytest.raises(NormalizationFailed):
            normalizer.normalize("jd s790")

    def test_lookup_finishing_after_swap_is_not_cached(self, normalizer, cache, monkeypatch):
        old_resolver = normalizer._resolver
        resolve_canonical = old_resolver.resolve_canonical
        replacement = build_reference_data(models=[CombineModel(brand="claas", model="lexion_8900")])

        def resolve_then_swap(*args, **kwargs):
            results = resolve_canonical(*args, **kwargs)
            normalizer.replace_reference_data(replacement)
            return results

        monkeypatch.setattr(old_resolver, "resolve_canonical", resolve_then_swap)

        results = normalizer.normalize("jd s790")

        assert results[0].canonical == "john_deere_s790"
        assert normalizer.reference_data is replacement
        assert "jd s790" not in cache
        assert len(cache) == 0

    def test_feedback_uses_new_canonicalizer(self, normalizer):
        normalizer.replace_reference_data(
            build_reference_data(models=[CombineModel(brand="claas", model="lexion_8900")])
        )

        # Without typo patterns the glued word is not split
        record = normalizer.record_correction("Lexion8900", None, "claas_lexion_8900")
        assert record.canonical_input == "lexion8900"


class TestFromConfig:
    def test_defaults(self):
        normalizer = CombineNormalizer.from_config(AppConfig())

        assert len(normalizer.reference_data) == 11
        assert isinstance(normalizer.cache, ResultCache)
        assert normalizer.cache.get_stats()["ttl_seconds"] == 86400
        assert isinstance(normalizer.correction_sink, InMemoryCorrectionSink)

    def test_cache_disabled(self):
        with pytest.warns(UserWarning):
            config = parse_app_config({"cache": {"enabled": False}})

        assert CombineNormalizer.from_config(config).cache is None

    def test_matching_config_is_applied(self):
        config = parse_app_config({"matching": {"max_results": 1}})
        normalizer = CombineNormalizer.from_config(config)

        assert len(normalizer.normalize("x9 1101")) == 1

    def test_database_url_selects_database_sink(self, tmp_path):
        from combine_normalizer.persistence import close_database

        env = EnvironmentConfig(database_url=f"sqlite:///{tmp_path / 'corrections.db'}")
        try:
            normalizer = CombineNormalizer.from_config(AppConfig(), env)
            assert isinstance(normalizer.correction_sink, DatabaseCorrectionSink)

            record = normalizer.record_correction("jd s790", None, "john_deere_s790")

            with get_session() as session:
                assert CorrectionRepository(session).get_by_id(record.record_id) == record
        finally:
            close_database()

    def test_custom_reference_file(self, tmp_path):
        path = tmp_path / "reference.yaml"
        path.write_text("models:\n  - {brand: claas, model: lexion_8900}\n")

        normalizer = CombineNormalizer.from_config(AppConfig(reference_data_path=path))

        assert normalizer.normalize("claas lexion 8900")[0].canonical == "claas_lexion_8900"
