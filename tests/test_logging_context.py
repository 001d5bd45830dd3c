"""Tests for logging context propagation."""

import threading

import pytest

from combine_normalizer.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


def test_empty_context():
    """Test that context starts empty."""
    assert get_log_context() == {}


def test_push_single_field():
    """Test pushing a single field to context."""
    token = push_log_context(request_id="req-1")
    assert get_log_context() == {"request_id": "req-1"}
    pop_log_context(token)
    assert get_log_context() == {}


def test_push_multiple_fields():
    """Test pushing multiple fields at once."""
    token = push_log_context(request_id="req-1", canonical_input="jd s790", user_id="grower-7")
    assert get_log_context() == {
        "request_id": "req-1",
        "canonical_input": "jd s790",
        "user_id": "grower-7",
    }
    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_context():
    """Test nested context pushes and pops."""
    outer = push_log_context(request_id="req-1")
    inner = push_log_context(canonical_input="x9 1101")
    assert get_log_context() == {"request_id": "req-1", "canonical_input": "x9 1101"}

    pop_log_context(inner)
    assert get_log_context() == {"request_id": "req-1"}

    pop_log_context(outer)
    assert get_log_context() == {}


def test_context_override():
    """Test inner values shadow outer values until popped."""
    outer = push_log_context(canonical_input="jd s790")
    inner = push_log_context(canonical_input="jd s780")
    assert get_log_context()["canonical_input"] == "jd s780"

    pop_log_context(inner)
    assert get_log_context()["canonical_input"] == "jd s790"
    pop_log_context(outer)


def test_context_manager_nested():
    """Test nested log_context blocks."""
    with log_context(request_id="req-1"):
        with log_context(canonical_input="x9 1101"):
            assert get_log_context() == {"request_id": "req-1", "canonical_input": "x9 1101"}
        assert get_log_context() == {"request_id": "req-1"}
    assert get_log_context() == {}


def test_context_manager_exception():
    """Test context is restored when the block raises."""
    with pytest.raises(ValueError):
        with log_context(request_id="req-1"):
            raise ValueError("boom")

    assert get_log_context() == {}


def test_clear_context():
    """Test clearing all context."""
    push_log_context(request_id="req-1")
    assert get_log_context() != {}

    clear_log_context()
    assert get_log_context() == {}


def test_context_isolation():
    """Test that get_log_context returns a copy, not the actual dict."""
    with log_context(request_id="req-1"):
        context = get_log_context()
        context["canonical_input"] = "modified"

        assert get_log_context() == {"request_id": "req-1"}


def test_context_is_per_thread():
    """Test fields pushed on another thread do not leak into this one."""
    seen = {}

    def worker():
        with log_context(request_id="worker-thread"):
            seen["worker"] = get_log_context()["request_id"]

    with log_context(request_id="main-thread"):
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert get_log_context() == {"request_id": "main-thread"}

    assert seen["worker"] == "worker-thread"
