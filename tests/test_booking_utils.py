from datetime import date, datetime

import pytest

from database.models import Tank
from scheduling.slots import generate_session_timetable
from utils.booking_utils import (
    find_session, free_sessions, is_month_bookable, normalize_phone, session_start_datetime,
)

DAY = date(2030, 6, 1)


@pytest.fixture
def timetable(operating, tanks):
    return generate_session_timetable(
        DAY, operating.default_open_time, operating.default_close_time,
        operating.session_duration_minutes, operating.cleaning_buffer_minutes,
        operating.tank_stagger_interval_minutes, tanks,
    )


def test_free_sessions_skip_taken_and_started(timetable):
    now = datetime(2030, 6, 1, 9, 10)
    sessions = free_sessions(timetable, taken={(2, "09:20"), (1, "10:15")}, now=now)

    keys = [(s.tank_id, s.session_number) for s in sessions]
    assert (1, 1) not in keys  # уже начался
    assert (2, 1) not in keys
    assert (1, 2) not in keys
    assert keys[0] == (3, 1)
    assert sessions[0].start_time == "09:40"
    assert len(sessions) == 3 * 6 - 3


def test_free_sessions_sorted_by_start(timetable):
    sessions = free_sessions(timetable, taken=set(), now=datetime(2030, 5, 31, 12, 0))
    offsets = [s.start_offset_minutes for s in sessions]
    assert offsets == sorted(offsets)
    assert [s.tank_id for s in sessions[:3]] == [1, 2, 3]


def test_session_after_midnight_starts_next_day():
    assert generate_session_timetable(DAY, "22:00", "02:00", 60, 0, 0, []) == []

    timetable = generate_session_timetable(
        DAY, "22:00", "02:00", 60, 0, 0, [Tank(id=1, name="Камера 1")],
    )
    last = timetable[0].sessions[-1]
    assert last.start_time == "01:00"
    assert last.is_next_day
    assert session_start_datetime(DAY, last) == datetime(2030, 6, 2, 1, 0)


def test_find_session(timetable):
    session = find_session(timetable, tank_id=2, session_number=3)
    assert session.start_time == "11:50"
    assert find_session(timetable, tank_id=4, session_number=1) is None
    assert find_session(timetable, tank_id=1, session_number=99) is None


@pytest.mark.parametrize("year, month, expected", [
    (2030, 6, True),
    (2030, 8, True),
    (2030, 9, False),
    (2030, 5, False),
])
def test_is_month_bookable(year, month, expected):
    assert is_month_bookable(year, month, today=date(2030, 6, 15)) is expected


def test_month_range_crosses_year():
    assert is_month_bookable(2031, 1, today=date(2030, 11, 30))
    assert not is_month_bookable(2031, 2, today=date(2030, 11, 30))


@pytest.mark.parametrize("text, expected", [
    ("+7 (900) 123-45-67", "+7 (900) 123-45-67"),
    ("  89001234567 ", "89001234567"),
    ("12345", None),
    ("", None),
    (None, None),
])
def test_normalize_phone(text, expected):
    assert normalize_phone(text) == expected
