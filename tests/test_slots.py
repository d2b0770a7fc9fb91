from datetime import date

import pytest

from database.models import Tank, TANK_MAINTENANCE
from scheduling.slots import calculate_staggered_sessions, generate_session_timetable

DAY = date(2030, 5, 14)


def test_single_tank_fills_window():
    result = calculate_staggered_sessions("09:00", "17:00", 60, 15, 1, 0)
    assert result.sessions_per_tank == 6
    assert result.sessions_by_tank == (6,)
    # 09:00 + 6 * 75 мин
    assert result.actual_close_time == "16:30"


def test_staggered_tanks_report_best_tank():
    result = calculate_staggered_sessions("09:00", "17:00", 60, 15, 3, 20)
    assert result.sessions_by_tank == (6, 6, 5)
    assert result.sessions_per_tank == 6
    assert result.uniform_capacity == 18
    assert result.fitted_capacity == 17
    assert result.capacity() == 18
    assert result.capacity(fit_each_tank=True) == 17
    # камера 2: 09:20 + 6 * 75 мин
    assert result.actual_close_time == "16:50"


def test_overnight_window():
    result = calculate_staggered_sessions("22:00", "02:00", 60, 0, 1, 0)
    assert result.sessions_per_tank == 4
    assert result.actual_close_time == "02:00"


def test_tank_starting_after_close_gets_nothing():
    result = calculate_staggered_sessions("09:00", "10:00", 30, 0, 3, 60)
    assert result.sessions_by_tank == (2, 0, 0)
    assert result.sessions_per_tank == 2
    assert result.actual_close_time == "10:00"


def test_zero_cleaning_buffer_is_valid():
    result = calculate_staggered_sessions("09:00", "12:00", 60, 0, 1, 0)
    assert result.sessions_per_tank == 3


@pytest.mark.parametrize("args", [
    ("09:00", "17:00", 0, 15, 3, 20),
    ("09:00", "17:00", -30, 15, 3, 20),
    ("09:00", "17:00", 60, -15, 3, 20),
    ("09:00", "17:00", 60, 15, 3, -5),
    ("09:00", "17:00", 60, 15, 0, 20),
    ("09:00", "17:00", 60, 15, -1, 20),
    ("09:00", "17:00", None, None, 3, None),
])
def test_degenerate_inputs_give_zero_capacity(args):
    result = calculate_staggered_sessions(*args)
    assert result.sessions_per_tank == 0
    assert result.uniform_capacity == 0
    assert result.actual_close_time == "17:00"


def test_missing_times():
    assert calculate_staggered_sessions("", "17:00", 60, 15, 2, 0).sessions_per_tank == 0
    result = calculate_staggered_sessions("09:00", None, 60, 15, 2, 0)
    assert result.sessions_per_tank == 0
    assert result.actual_close_time == "00:00"


def test_more_stagger_never_adds_sessions():
    previous = None
    for stagger in range(0, 300, 5):
        sessions = calculate_staggered_sessions("09:00", "17:00", 60, 15, 4, stagger).sessions_per_tank
        if previous is not None:
            assert sessions <= previous
        previous = sessions


def test_timetable_skips_maintenance_tanks():
    tanks = [
        Tank(id=10, name="Лотос"),
        Tank(id=11, name="Океан", status=TANK_MAINTENANCE),
        Tank(id=12, name="Космос"),
    ]
    timetable = generate_session_timetable(DAY, "09:00", "17:00", 60, 15, 20, tanks)

    assert [tank.tank_id for tank in timetable] == [10, 12]
    assert [tank.tank_number for tank in timetable] == [1, 2]
    assert all(len(tank.sessions) == 6 for tank in timetable)

    second = timetable[1].sessions[0]
    assert second.tank_index == 1
    assert second.tank_name == "Космос"
    assert second.session_number == 1
    assert (second.start_time, second.end_time) == ("09:20", "10:20")
    assert (second.cleaning_start, second.cleaning_end) == ("10:20", "10:35")
    assert [s.session_number for s in timetable[0].sessions] == [1, 2, 3, 4, 5, 6]
    assert timetable[0].sessions[-1].start_time == "15:15"


def test_timetable_applies_best_tank_count_to_every_tank():
    tanks = [Tank(id=i, name=f"Камера {i}") for i in (1, 2, 3)]
    timetable = generate_session_timetable(DAY, "09:00", "17:00", 60, 15, 20, tanks)

    last_tank = timetable[2]
    assert len(last_tank.sessions) == 6
    # последний сеанс третьей камеры выходит за время закрытия
    assert last_tank.sessions[-1].start_time == "15:55"
    assert last_tank.sessions[-1].cleaning_end == "17:10"


def test_timetable_can_fit_each_tank():
    tanks = [Tank(id=i, name=f"Камера {i}") for i in (1, 2, 3)]
    timetable = generate_session_timetable(DAY, "09:00", "17:00", 60, 15, 20, tanks, fit_each_tank=True)
    assert [len(tank.sessions) for tank in timetable] == [6, 6, 5]


def test_timetable_across_midnight():
    timetable = generate_session_timetable(DAY, "22:00", "02:00", 60, 15, 0, [Tank(id=1, name="A")])
    sessions = timetable[0].sessions
    assert [s.start_time for s in sessions] == ["22:00", "23:15", "00:30"]
    assert sessions[-1].start_offset_minutes == 24 * 60 + 30
    assert sessions[-1].is_next_day
    assert not sessions[0].is_next_day
    assert timetable[0].date == DAY


def test_timetable_degenerate_settings():
    tanks = [Tank(id=1, name="A"), Tank(id=2, name="B")]
    timetable = generate_session_timetable(DAY, "09:00", "17:00", 0, 15, 20, tanks)
    assert [tank.sessions for tank in timetable] == [[], []]
    assert generate_session_timetable(DAY, "09:00", "17:00", 60, 15, 20, []) == []
