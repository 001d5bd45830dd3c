"""Shared fixtures for the combine normalizer test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from combine_normalizer.logging.context import clear_log_context
from combine_normalizer.persistence import close_database
from combine_normalizer.reference import load_reference_data


class FakeClock:
    """Controllable UTC clock for cache and correction timestamps."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def reference_data():
    """Fresh snapshot of the packaged reference data (usage counters start at zero)."""
    return load_reference_data()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment variables read by the config loader."""
    for name in ("DATABASE_URL", "LOG_LEVEL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def database(tmp_path):
    """Initialized SQLite correction database in a temp directory."""
    from combine_normalizer.persistence import init_database

    db_url = f"sqlite:///{tmp_path / 'corrections.db'}"
    init_database(db_url)
    yield db_url
    close_database()


@pytest.fixture(autouse=True)
def reset_log_context():
    clear_log_context()
    yield
    clear_log_context()
