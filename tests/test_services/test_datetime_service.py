"""Tests for timestamp parsing and conversion."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from assetguard.services.datetime_service import format_iso, from_ns, parse_datetime, to_utc


class TestDatetimeParsing:
    def test_parse_iso_with_z(self) -> None:
        result = parse_datetime("2026-02-02T22:21:29.975359Z")
        assert result == datetime(2026, 2, 2, 22, 21, 29, 975359, tzinfo=UTC)

    def test_parse_lax_offset(self) -> None:
        result = parse_datetime("2026-02-02 22:21:29+00")
        assert result == datetime(2026, 2, 2, 22, 21, 29, tzinfo=UTC)

    def test_parse_converts_offset_to_utc(self) -> None:
        result = parse_datetime("2026-02-02T12:00:00+02:00")
        assert result.hour == 10
        assert result.tzinfo is UTC

    def test_parse_missing_timezone_is_utc(self) -> None:
        result = parse_datetime("2026-02-02 10:30")
        assert result == datetime(2026, 2, 2, 10, 30, tzinfo=UTC)

    def test_parse_returns_plain_datetime(self) -> None:
        result = parse_datetime("2026-02-02T10:30:00Z")
        assert type(result) is datetime

    def test_parse_date_only_is_midnight(self) -> None:
        result = parse_datetime("2026-02-02")
        assert result == datetime(2026, 2, 2, tzinfo=UTC)

    def test_parse_duration_rejected(self) -> None:
        with pytest.raises(ValueError, match="date and time"):
            parse_datetime("P1D")

    def test_parse_garbage_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_datetime("not a timestamp")

    def test_parse_datetime_naive_adds_utc(self) -> None:
        result = parse_datetime(datetime(2026, 1, 1, 12, 0))
        assert result.tzinfo is UTC


class TestConversions:
    def test_from_ns_keeps_microseconds(self) -> None:
        result = from_ns(1_767_225_600_123_456_789)
        assert result == datetime(2026, 1, 1, 0, 0, 0, 123456, tzinfo=UTC)

    def test_to_utc_from_other_zone(self) -> None:
        dt = datetime(2026, 1, 1, 5, 0, tzinfo=timezone(timedelta(hours=5)))
        assert to_utc(dt) == datetime(2026, 1, 1, 0, 0, tzinfo=UTC)

    def test_format_iso(self) -> None:
        dt = datetime(2026, 2, 2, 22, 21, 29, 5, tzinfo=UTC)
        assert format_iso(dt) == "2026-02-02T22:21:29.000005Z"

    def test_format_then_parse_is_exact(self) -> None:
        dt = from_ns(1_767_225_600_987_654_000)
        assert parse_datetime(format_iso(dt)) == dt
