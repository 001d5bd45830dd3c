"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

from combine_normalizer.utils.timestamps import (
    ensure_utc,
    format_timestamp,
    parse_iso_datetime,
    utc_now,
)


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_utc_datetime(self):
        """Test that utc_now returns a timezone-aware datetime in UTC."""
        assert utc_now().tzinfo == timezone.utc

    def test_utc_now_is_recent(self):
        """Test that utc_now returns a recent timestamp."""
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_ensure_utc_with_none(self):
        assert ensure_utc(None) is None

    def test_ensure_utc_with_naive_datetime(self):
        """Test that naive datetime is treated as UTC."""
        result = ensure_utc(datetime(2025, 6, 1, 12, 0, 0))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_ensure_utc_with_utc_datetime(self):
        utc_dt = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert ensure_utc(utc_dt) == utc_dt

    def test_ensure_utc_with_other_timezone(self):
        """Test that datetime with other timezone is converted to UTC."""
        cst = timezone(timedelta(hours=-6))
        result = ensure_utc(datetime(2025, 6, 1, 12, 0, 0, tzinfo=cst))

        assert result.tzinfo == timezone.utc
        # 12:00 CST is 18:00 UTC
        assert result.hour == 18


class TestParseIsoDatetime:
    """Tests for parse_iso_datetime function."""

    def test_parse_iso_datetime_with_z_suffix(self):
        result = parse_iso_datetime("2025-06-01T12:00:00Z")

        assert result == datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_parse_iso_datetime_with_microseconds(self):
        """Test the stored correction timestamp format parses back exactly."""
        result = parse_iso_datetime("2025-06-01T12:00:00.123456Z")

        assert result.microsecond == 123456
        assert result.tzinfo == timezone.utc

    def test_parse_iso_datetime_with_offset(self):
        """Test offsets are converted to UTC."""
        result = parse_iso_datetime("2025-06-01T14:00:00+02:00")

        assert result == datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc

    def test_parse_iso_datetime_without_timezone(self):
        """Test parsing ISO datetime without timezone (treated as UTC)."""
        result = parse_iso_datetime("2025-06-01T12:00:00")

        assert result.tzinfo == timezone.utc

    def test_parse_iso_datetime_with_empty_string(self):
        assert parse_iso_datetime("") is None
        assert parse_iso_datetime("   ") is None
        assert parse_iso_datetime(None) is None

    def test_parse_iso_datetime_with_invalid_format(self):
        """Test that invalid format returns None."""
        assert parse_iso_datetime("not a date") is None
        assert parse_iso_datetime("2025/06/01") is None


class TestFormatTimestamp:
    """Tests for format_timestamp function."""

    def test_format_timestamp_basic(self):
        dt = datetime(2025, 6, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2025-06-01T12:00:00Z"

    def test_format_timestamp_with_microseconds(self):
        dt = datetime(2025, 6, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)
        assert format_timestamp(dt, include_microseconds=True) == "2025-06-01T12:00:00.500000Z"

    def test_format_timestamp_converts_to_utc(self):
        dt = datetime(2025, 6, 1, 7, 0, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert format_timestamp(dt) == "2025-06-01T12:00:00Z"

    def test_format_timestamp_with_naive_datetime(self):
        assert format_timestamp(datetime(2025, 6, 1, 12, 0, 0)) == "2025-06-01T12:00:00Z"

    def test_round_trip(self):
        dt = datetime(2025, 6, 1, 12, 0, 0, 42, tzinfo=timezone.utc)
        assert parse_iso_datetime(format_timestamp(dt, include_microseconds=True)) == dt
