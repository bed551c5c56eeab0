"""Tests for date, clock-time and number normalization."""

import math

import pytest

from core.normalize import (
    is_iso_date,
    normalize_date,
    parse_hour_of_day,
    parse_iso_date,
    time_to_minutes,
    to_number,
)


class TestNormalizeDate:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2025-06-02", "2025-06-02"),
            ("6/2/2025", "2025-06-02"),
            ("06/02/2025", "2025-06-02"),
            ("6/2/25", "2025-06-02"),
            ("1/15/99", "1999-01-15"),
            ("1/15/50", "1950-01-15"),
            ("1/15/49", "2049-01-15"),
            ("  2025-06-02  ", "2025-06-02"),
            ("2025-06-02T08:30:00Z", "2025-06-02"),
            ("June 2, 2025", "2025-06-02"),
            ("Jun 2 2025", "2025-06-02"),
            ("2 June 2025", "2025-06-02"),
        ],
    )
    def test_known_formats(self, raw, expected):
        assert normalize_date(raw) == expected

    def test_blank_and_none_are_empty(self):
        assert normalize_date(None) == ""
        assert normalize_date("   ") == ""

    def test_unparseable_passes_through_stripped(self):
        assert normalize_date("  sometime last week ") == "sometime last week"

    def test_iso_shape_is_not_validated(self):
        # Canonical shape passes through even if it names no real day
        assert normalize_date("2025-13-45") == "2025-13-45"
        assert not is_iso_date("2025-13-45")


def test_parse_iso_date():
    assert parse_iso_date("2025-06-02").isoformat() == "2025-06-02"
    assert parse_iso_date("6/2/2025") is None
    assert parse_iso_date(None) is None


class TestTimeToMinutes:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("08:00", 480),
            ("8:05", 485),
            ("17:30:15", 1050),
            ("12:00 AM", 0),
            ("12:15 AM", 15),
            ("12:00 PM", 720),
            ("1:30 pm", 810),
            ("11:59PM", 1439),
            ("0:00", 0),
        ],
    )
    def test_valid(self, raw, expected):
        assert time_to_minutes(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "noon", "24:00", "12:60", "13:00 PM", "0:30 AM", "8"])
    def test_invalid_is_none(self, raw):
        assert time_to_minutes(raw) is None

    def test_hour_of_day(self):
        assert parse_hour_of_day("7:45 PM") == 19
        assert parse_hour_of_day("bad") is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        ("", 0.0),
        ("  ", 0.0),
        ("abc", 0.0),
        ("7.5", 7.5),
        (" 8 ", 8.0),
        (4, 4.0),
        (2.25, 2.25),
        (True, 0.0),
        (float("nan"), 0.0),
        ("inf", 0.0),
        ("8 hrs", 8.0),
        ("7.5h", 7.5),
        ("-1.5 h", -1.5),
        ("hrs 8", 0.0),
        ("1e999", 0.0),
    ],
)
def test_to_number(raw, expected):
    value = to_number(raw)
    assert math.isfinite(value)
    assert value == expected
