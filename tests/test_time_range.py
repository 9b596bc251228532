"""
Tests for time-range and short-date parsing.
"""

from datetime import date

import pytest

from court_booker.time_range import parse_time_range, resolve_date, to_24_hour


def test_evening_range_shares_period():
    result = parse_time_range("9-11p")

    assert result.start_time == "21:00"
    assert result.end_time == "23:00"
    assert result.start_display == "9:00 PM"
    assert result.end_display == "11:00 PM"


def test_noon_start_is_not_midnight():
    result = parse_time_range("12-2p")

    assert result.start_hour == 12
    assert result.start_display == "12:00 PM"
    assert result.end_time == "14:00"
    assert result.end_display == "2:00 PM"


def test_range_crossing_noon_flips_start_period():
    result = parse_time_range("11-1p")

    assert result.start_time == "11:00"
    assert result.start_display == "11:00 AM"
    assert result.end_time == "13:00"
    assert result.end_display == "1:00 PM"


def test_start_marker_is_ignored_in_favour_of_trailing_marker():
    result = parse_time_range("11a-1p")

    assert result.start_time == "11:00"
    assert result.end_time == "13:00"

    # The trailing marker decides; "9p" on the start is overridden by the flip rule.
    morning = parse_time_range("9p-11a")
    assert morning.start_time == "09:00"
    assert morning.end_time == "11:00"


def test_minutes_and_long_period_markers():
    result = parse_time_range("9:30 - 11:00pm")

    assert result.start_time == "21:30"
    assert result.start_minute == "30"
    assert result.start_display == "9:30 PM"
    assert result.end_time == "23:00"


def test_morning_range():
    result = parse_time_range("7-9A")

    assert result.start_time == "07:00"
    assert result.end_display == "9:00 AM"


@pytest.mark.parametrize(
    "text",
    ["", "tonight", "9-11", "13-2p", "0-2p", "9:75-11p", "10-12a", "10:5-11p", "109-11p", "at 9-11p please"],
)
def test_unparseable_ranges_return_none(text):
    assert parse_time_range(text) is None


@pytest.mark.parametrize("period", ["a", "p"])
def test_every_valid_range_moves_forward(period):
    for start in range(1, 13):
        for end in range(1, 13):
            result = parse_time_range(f"{start}-{end}{period}")
            if result is None:
                # Morning ranges that would have to wrap past midnight are rejected.
                assert period == "a"
                continue
            assert result.start_hour < result.end_hour
            assert 0 <= result.start_hour <= 23
            assert 0 <= result.end_hour <= 23


def test_twelve_oclock_conversion():
    assert to_24_hour(12, "a") == 0
    assert to_24_hour(12, "p") == 12
    assert to_24_hour(1, "p") == 13
    assert to_24_hour(11, "a") == 11


def test_resolve_date_rolls_to_next_year_once_passed():
    assert resolve_date("2/24", today=date(2026, 3, 1)) == date(2027, 2, 24)


def test_resolve_date_keeps_current_year_on_or_before():
    assert resolve_date("2/24", today=date(2026, 2, 24)) == date(2026, 2, 24)
    assert resolve_date("2/24", today=date(2026, 1, 5)) == date(2026, 2, 24)


@pytest.mark.parametrize("text", ["", "24/2", "2-24", "13/1", "2/30"])
def test_resolve_date_rejects_invalid(text):
    assert resolve_date(text, today=date(2026, 1, 1)) is None
