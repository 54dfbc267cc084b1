"""Tests for MM:SS timestamp formatting and parsing."""

import pytest

from lesson_assistant.timecode import format_timestamp, ms_to_seconds, parse_timestamp


class TestFormatTimestamp:
    @pytest.mark.parametrize(
        ("ms", "expected"),
        [
            (0, "00:00"),
            (999, "00:00"),
            (7000, "00:07"),
            (65_500, "01:05"),
            (3_599_000, "59:59"),
        ],
    )
    def test_format(self, ms: int, expected: str) -> None:
        assert format_timestamp(ms) == expected

    def test_minutes_do_not_wrap_into_hours(self) -> None:
        """Two hours renders as 120 minutes."""
        assert format_timestamp(7_200_000) == "120:00"

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError, match="Negative"):
            format_timestamp(-1)


class TestParseTimestamp:
    def test_parse(self) -> None:
        assert parse_timestamp("01:05") == 65_000

    def test_surrounding_whitespace_ignored(self) -> None:
        assert parse_timestamp(" 00:07 ") == 7000

    def test_seconds_taken_at_face_value(self) -> None:
        """01:75 is 60 + 75 seconds, no range check on seconds."""
        assert parse_timestamp("01:75") == 135_000

    @pytest.mark.parametrize("bad", ["1:05", "01:5", "0105", "aa:bb", "", "01:05:00"])
    def test_invalid_rejected(self, bad: str) -> None:
        with pytest.raises(ValueError, match="Invalid timestamp"):
            parse_timestamp(bad)

    def test_round_trip_on_whole_seconds(self) -> None:
        """format then parse is the identity on whole-second offsets."""
        for ms in (0, 7000, 59_000, 61_000, 600_000, 5_999_000):
            assert parse_timestamp(format_timestamp(ms)) == ms


class TestMsToSeconds:
    def test_floors(self) -> None:
        assert ms_to_seconds(64_999) == 64
        assert ms_to_seconds(0) == 0
