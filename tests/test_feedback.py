"""Tests for correction recording and sinks."""

import pytest

from combine_normalizer.cache import ResultCache
from combine_normalizer.domain.models import CorrectionRecord, MatchKind, MatchResult
from combine_normalizer.errors import InvalidInput
from combine_normalizer.feedback import (
    CorrectionSink,
    DatabaseCorrectionSink,
    FeedbackRecorder,
    InMemoryCorrectionSink,
)
from combine_normalizer.persistence import CorrectionRepository, PersistenceError, get_session


class FailingSink(CorrectionSink):
    def __init__(self):
        self.calls = 0

    def append(self, record: CorrectionRecord) -> None:
        self.calls += 1
        raise PersistenceError("disk full")


@pytest.fixture
def sink():
    return InMemoryCorrectionSink()


@pytest.fixture
def recorder(reference_data, sink, clock):
    return FeedbackRecorder(reference_data.canonicalizer.canonicalize, sink=sink, clock=clock)


class TestFeedbackRecorder:
    """Building and appending correction records."""

    def test_records_correction(self, recorder, sink, clock):
        record = recorder.record("x9 1101", "john_deere_x9_1000", "john_deere_x9_1100", user_id="u-1")

        assert sink.records == [record]
        assert record.original_input == "x9 1101"
        assert record.canonical_input == "x9 1101"
        assert record.rejected_canonical == "john_deere_x9_1000"
        assert record.accepted_canonical == "john_deere_x9_1100"
        assert record.recorded_at == clock.now
        assert record.user_id == "u-1"
        assert record.was_accepted is False
        assert len(record.record_id) == 64

    def test_confirmation_without_rejection(self, recorder):
        record = recorder.record("jd s790", None, "john_deere_s790")

        assert record.rejected_canonical is None
        assert record.was_accepted is True

    def test_confirmation_of_same_suggestion(self, recorder):
        record = recorder.record("jd s790", "john_deere_s790", "john_deere_s790")
        assert record.was_accepted is True

    def test_canonical_input_uses_typo_patterns(self, recorder):
        record = recorder.record("Lexion8900", None, "claas_lexion_8900")
        assert record.canonical_input == "lexion 8900"

    def test_record_id_is_deterministic(self, reference_data, clock):
        first = FeedbackRecorder(reference_data.canonicalizer.canonicalize, clock=clock)
        second = FeedbackRecorder(reference_data.canonicalizer.canonicalize, clock=clock)

        a = first.record("x9 1101", "john_deere_x9_1000", "john_deere_x9_1100")
        b = second.record("x9 1101", "john_deere_x9_1000", "john_deere_x9_1100")

        assert a.record_id == b.record_id

    def test_record_id_changes_with_time(self, recorder, clock):
        a = recorder.record("x9 1101", None, "john_deere_x9_1100")
        clock.advance(1)
        b = recorder.record("x9 1101", None, "john_deere_x9_1100")

        assert a.record_id != b.record_id

    @pytest.mark.parametrize(
        "original, accepted",
        [("", "john_deere_s790"), ("   ", "john_deere_s790"), ("jd s790", ""), (None, "john_deere_s790")],
    )
    def test_blank_fields_rejected(self, recorder, sink, original, accepted):
        with pytest.raises(InvalidInput):
            recorder.record(original, None, accepted)

        assert len(sink) == 0

    def test_input_without_content_rejected(self, recorder):
        with pytest.raises(InvalidInput):
            recorder.record("!!!", None, "john_deere_s790")

    def test_invalidates_cached_result(self, reference_data, sink, clock):
        cache = ResultCache(clock=clock)
        cache.put(
            "x9 1101",
            MatchResult(canonical="john_deere_x9_1000", confidence=0.7, match_kind=MatchKind.FUZZY),
        )
        recorder = FeedbackRecorder(
            reference_data.canonicalizer.canonicalize, sink=sink, cache=cache, clock=clock
        )

        recorder.record("X9 1101", "john_deere_x9_1000", "john_deere_x9_1100")

        assert "x9 1101" not in cache

    def test_sink_failure_is_logged_and_swallowed(self, reference_data, clock, caplog):
        sink = FailingSink()
        recorder = FeedbackRecorder(reference_data.canonicalizer.canonicalize, sink=sink, clock=clock)

        with caplog.at_level("ERROR", logger="combine_normalizer.feedback.recorder"):
            record = recorder.record("jd s790", None, "john_deere_s790")

        assert sink.calls == 1
        assert record.accepted_canonical == "john_deere_s790"
        failures = [r for r in caplog.records if getattr(r, "event", None) == "feedback.sink.failed"]
        assert len(failures) == 1
        assert failures[0].record_id == record.record_id

    def test_cache_invalidated_even_when_sink_fails(self, reference_data, clock):
        cache = ResultCache(clock=clock)
        cache.put("jd s790", MatchResult(canonical="john_deere_s780", confidence=0.98))
        recorder = FeedbackRecorder(
            reference_data.canonicalizer.canonicalize, sink=FailingSink(), cache=cache, clock=clock
        )

        recorder.record("jd s790", "john_deere_s780", "john_deere_s790")

        assert "jd s790" not in cache

    def test_default_sink_is_in_memory(self, reference_data):
        recorder = FeedbackRecorder(reference_data.canonicalizer.canonicalize)
        assert isinstance(recorder.sink, InMemoryCorrectionSink)


class TestDatabaseCorrectionSink:
    """Appending to the correction table."""

    def test_append_persists_record(self, database, recorder, clock):
        sink = DatabaseCorrectionSink()
        record = recorder.record("x9 1101", "john_deere_x9_1000", "john_deere_x9_1100")

        sink.append(record)

        with get_session() as session:
            stored = CorrectionRepository(session).get_by_id(record.record_id)
        assert stored == record

    def test_replayed_record_is_stored_once(self, database, recorder):
        sink = DatabaseCorrectionSink()
        record = recorder.record("jd s790", None, "john_deere_s790")

        sink.append(record)
        sink.append(record)

        with get_session() as session:
            assert CorrectionRepository(session).count() == 1

    def test_uninitialized_database_raises_persistence_error(self, recorder):
        record = recorder.record("jd s790", None, "john_deere_s790")

        with pytest.raises(PersistenceError):
            DatabaseCorrectionSink().append(record)

    def test_recorder_with_database_sink(self, database, reference_data, clock):
        recorder = FeedbackRecorder(
            reference_data.canonicalizer.canonicalize, sink=DatabaseCorrectionSink(), clock=clock
        )

        record = recorder.record("class 8900 lexion", None, "claas_lexion_8900", user_id="grower-7")

        with get_session() as session:
            stored = CorrectionRepository(session).list_for_input("class 8900 lexion")
        assert [r.record_id for r in stored] == [record.record_id]
        assert stored[0].user_id == "grower-7"
