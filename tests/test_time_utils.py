from datetime import date, datetime

import pytest

from utils.time_utils import (
    add_days, add_months, day_of_week, format_datetime, format_month, is_same_day,
    is_valid_time, minutes_to_time,
    month_bounds, month_days, months_between, normalize_time, operating_window,
    parse_date, parse_hours_range, safe_int, time_to_minutes,
)


@pytest.mark.parametrize("value, expected", [
    ("00:00", 0),
    ("09:30", 570),
    ("23:59", 1439),
    ("9:05", 545),
    (" 10:00 ", 600),
])
def test_time_to_minutes(value, expected):
    assert time_to_minutes(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "12:xx", "aa:10", "1200", None, 570])
def test_time_to_minutes_malformed_falls_back_to_zero(value):
    assert time_to_minutes(value) == 0


@pytest.mark.parametrize("minutes, expected", [
    (0, "00:00"),
    (570, "09:30"),
    (1440, "00:00"),
    (1500, "01:00"),
    (-60, "23:00"),
])
def test_minutes_to_time_wraps_past_midnight(minutes, expected):
    assert minutes_to_time(minutes) == expected


@pytest.mark.parametrize("value", ["abc", None, float("nan")])
def test_minutes_to_time_non_numeric(value):
    assert minutes_to_time(value) == "00:00"


def test_round_trip_for_every_minute_of_day():
    for hour in range(24):
        for minute in range(60):
            value = f"{hour:02d}:{minute:02d}"
            assert minutes_to_time(time_to_minutes(value)) == value


def test_operating_window_same_day():
    assert operating_window("09:00", "17:00") == (540, 1020)


def test_operating_window_overnight():
    open_minutes, close_minutes = operating_window("22:00", "02:00")
    assert close_minutes - open_minutes == 240


def test_operating_window_equal_times_means_full_day():
    open_minutes, close_minutes = operating_window("08:00", "08:00")
    assert close_minutes - open_minutes == 1440


def test_strict_validation():
    assert is_valid_time("23:59")
    assert not is_valid_time("24:00")
    assert not is_valid_time("12:60")
    assert not is_valid_time("noon")
    assert normalize_time("9:5") == "09:05"
    with pytest.raises(ValueError):
        normalize_time("25:00")


def test_parse_hours_range():
    assert parse_hours_range("10:00-22:00") == ("10:00", "22:00")
    assert parse_hours_range("20:00 – 2:00") == ("20:00", "02:00")


@pytest.mark.parametrize("text", ["", "10:00", "10:00-10:00", "10-22", "10:00-22:00-23:00"])
def test_parse_hours_range_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_hours_range(text)


def test_safe_int():
    assert safe_int("15") == 15
    assert safe_int(None) == 0
    assert safe_int("x", default=-1) == -1


def test_calendar_helpers_at_boundaries():
    assert add_days(date(2024, 12, 31), 1) == date(2025, 1, 1)
    assert add_days(date(2024, 3, 1), -1) == date(2024, 2, 29)
    assert add_months(2024, 12, 1) == (2025, 1)
    assert add_months(2025, 1, -1) == (2024, 12)
    assert add_months(2024, 5, 14) == (2025, 7)
    assert months_between((2024, 11), (2025, 2)) == 3
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2023, 2)[1] == date(2023, 2, 28)


def test_month_days():
    days = month_days(2025, 4)
    assert len(days) == 30
    assert days[0] == date(2025, 4, 1)
    assert days[-1] == date(2025, 4, 30)


def test_day_of_week_and_same_day():
    assert day_of_week(date(2024, 1, 1)) == 0
    assert day_of_week(date(2024, 1, 7)) == 6
    assert is_same_day(datetime(2024, 1, 1, 23, 59), date(2024, 1, 1))
    assert not is_same_day(date(2024, 1, 1), date(2024, 1, 2))
    assert parse_date("2024-02-29") == date(2024, 2, 29)


def test_display_formatting():
    assert format_datetime(datetime(2030, 1, 5, 7, 3)) == "05.01.2030 07:03"
    assert format_month(2030, 1) == "Январь 2030"
