"""
core/utils/timezone.py 테스트
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.utils.timezone import ensure_utc, format_iso, parse_timestamp, to_timestamp_ms

EXPECTED = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


class TestParseTimestamp:

    @pytest.mark.parametrize(
        "value",
        [
            1705314600,
            1705314600000,
            1705314600000000,
            1705314600000000000,
            "1705314600000",
            "2024-01-15T10:30:00Z",
            "2024-01-15 10:30:00",
            "2024-01-15T19:30:00+09:00",
        ],
    )
    def test_formats(self, value) -> None:
        assert parse_timestamp(value) == EXPECTED

    def test_fractional_seconds(self) -> None:
        result = parse_timestamp("1705314600.25")
        assert result == EXPECTED + timedelta(milliseconds=250)

    @pytest.mark.parametrize("value", [None, True, "", "yesterday", []])
    def test_invalid(self, value) -> None:
        with pytest.raises(ValueError):
            parse_timestamp(value)


class TestConversions:

    def test_ensure_utc_naive(self) -> None:
        assert ensure_utc(datetime(2024, 1, 15, 10, 30)) == EXPECTED

    def test_to_timestamp_ms(self) -> None:
        assert to_timestamp_ms(EXPECTED) == 1705314600000

    def test_format_iso(self) -> None:
        assert format_iso(EXPECTED + timedelta(microseconds=123456)) == "2024-01-15T10:30:00.123Z"
