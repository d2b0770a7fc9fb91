import dataclasses
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta

import pytest

from database.models import (
    Booking, Hold, OVERRIDE_BOOKABLE, OVERRIDE_CLOSED, TANK_MAINTENANCE, TANK_READY,
)
from database.repository import (
    BookingRepository, HoldRepository, OverrideRepository, SettingsRepository, TankRepository,
)

DAY = date(2030, 6, 1)


def make_booking(tank_id=1, session_number=1, day=DAY, user_id=100, start_time="08:00"):
    return Booking(
        id=None,
        user_id=user_id,
        username="client",
        tank_id=tank_id,
        date=day,
        session_number=session_number,
        start_time=start_time,
        phone="+7 900 000-00-00",
        created_at=datetime.now(),
    )


def test_init_seeds_defaults(db):
    operating = SettingsRepository.get_settings()
    assert operating.session_duration_minutes == 60
    assert operating.cleaning_buffer_minutes == 30
    assert operating.tank_stagger_interval_minutes == 30
    assert (operating.default_open_time, operating.default_close_time) == ("08:00", "22:00")

    tanks = TankRepository.list_tanks()
    assert [tank.name for tank in tanks] == ["Камера 1", "Камера 2", "Камера 3"]
    assert all(tank.status == TANK_READY for tank in tanks)


def test_update_settings(db):
    operating = dataclasses.replace(SettingsRepository.get_settings(),
                                    cleaning_buffer_minutes=0, default_close_time="2:00")
    SettingsRepository.update_settings(operating)

    stored = SettingsRepository.get_settings()
    assert stored.cleaning_buffer_minutes == 0
    assert stored.default_close_time == "02:00"


@pytest.mark.parametrize("changes", [
    {"session_duration_minutes": 0},
    {"cleaning_buffer_minutes": -1},
    {"tank_stagger_interval_minutes": -10},
    {"default_open_time": "25:00"},
])
def test_update_settings_rejects_invalid_values(db, changes):
    operating = dataclasses.replace(SettingsRepository.get_settings(), **changes)
    with pytest.raises(ValueError):
        SettingsRepository.update_settings(operating)
    assert SettingsRepository.get_settings().session_duration_minutes == 60


def test_tank_crud(db):
    tank_id = TankRepository.create_tank("  Лотос ")
    assert TankRepository.get_tank_by_id(tank_id).name == "Лотос"

    assert TankRepository.set_status(tank_id, TANK_MAINTENANCE)
    assert TankRepository.get_tank_by_id(tank_id).status == TANK_MAINTENANCE
    assert not TankRepository.set_status(9999, TANK_READY)

    with pytest.raises(ValueError):
        TankRepository.set_status(tank_id, "Occupied")
    with pytest.raises(ValueError):
        TankRepository.create_tank("   ")


def test_override_upsert_is_visible_immediately(db):
    OverrideRepository.set_override(DAY, OVERRIDE_CLOSED, None, None, 0)
    assert OverrideRepository.get_override(DAY).is_closed

    OverrideRepository.set_override(DAY, OVERRIDE_BOOKABLE, "10:00", "1:30", 12)
    overrides = OverrideRepository.get_overrides(DAY, DAY)
    assert len(overrides) == 1
    assert overrides[0].status == OVERRIDE_BOOKABLE
    assert (overrides[0].open_time, overrides[0].close_time) == ("10:00", "01:30")
    assert overrides[0].sessions_to_sell == 12


def test_override_range_and_delete(db):
    OverrideRepository.set_override(date(2030, 5, 31), OVERRIDE_CLOSED, None, None, 0)
    OverrideRepository.set_override(date(2030, 6, 15), OVERRIDE_CLOSED, None, None, 0)
    OverrideRepository.set_override(date(2030, 7, 1), OVERRIDE_CLOSED, None, None, 0)

    in_june = OverrideRepository.get_overrides(date(2030, 6, 1), date(2030, 6, 30))
    assert [override.date for override in in_june] == [date(2030, 6, 15)]

    assert OverrideRepository.delete_override(date(2030, 6, 15))
    assert not OverrideRepository.delete_override(date(2030, 6, 15))
    assert OverrideRepository.get_override(date(2030, 6, 15)) is None


def test_override_validation(db):
    with pytest.raises(ValueError):
        OverrideRepository.set_override(DAY, "Holiday", None, None, 0)
    with pytest.raises(ValueError):
        OverrideRepository.set_override(DAY, OVERRIDE_BOOKABLE, None, None, 5)


def test_booking_counts(db):
    BookingRepository.create_booking(make_booking(tank_id=1, session_number=1))
    BookingRepository.create_booking(make_booking(tank_id=2, session_number=1))
    cancelled_id = BookingRepository.create_booking(make_booking(tank_id=3, session_number=1))
    BookingRepository.create_booking(make_booking(day=date(2030, 6, 30)))
    BookingRepository.create_booking(make_booking(day=date(2030, 7, 1)))
    assert BookingRepository.cancel_booking(cancelled_id)

    counts = BookingRepository.get_booking_counts(date(2030, 6, 1), date(2030, 6, 30))
    assert counts == {DAY: 2, date(2030, 6, 30): 1}


def test_session_cannot_be_booked_twice(db):
    booking_id = BookingRepository.create_booking(make_booking())
    with pytest.raises(sqlite3.IntegrityError):
        BookingRepository.create_booking(make_booking(user_id=200))

    BookingRepository.cancel_booking(booking_id)
    assert BookingRepository.create_booking(make_booking(user_id=200))


def test_booking_lookup(db):
    booking_id = BookingRepository.create_booking(make_booking(session_number=3))
    booking = BookingRepository.get_booking_by_id(booking_id)
    assert booking.date == DAY
    assert booking.session_number == 3
    assert booking.status == 'active'

    assert [b.id for b in BookingRepository.get_user_bookings(100, DAY)] == [booking_id]
    assert BookingRepository.get_user_bookings(100, DAY + timedelta(days=1)) == []
    assert [b.id for b in BookingRepository.get_bookings_by_date(DAY)] == [booking_id]

    assert BookingRepository.cancel_booking(booking_id)
    assert not BookingRepository.cancel_booking(booking_id)
    assert BookingRepository.get_booking_by_id(booking_id).status == 'cancelled'


def test_taken_sessions_include_holds_of_other_users(db):
    now = datetime.now()
    BookingRepository.create_booking(make_booking(tank_id=1, session_number=1))
    HoldRepository.create_hold(Hold(None, 300, 2, DAY, 4, "11:00", now, now + timedelta(minutes=10)))
    HoldRepository.create_hold(Hold(None, 400, 3, DAY, 5, "12:30", now, now + timedelta(minutes=10)))

    assert BookingRepository.get_taken_sessions(DAY) == {(1, "08:00"), (2, "11:00"), (3, "12:30")}
    assert BookingRepository.get_taken_sessions(DAY, exclude_user=300) == {(1, "08:00"), (3, "12:30")}


def test_expired_holds_are_ignored_and_cleaned(db):
    past = datetime.now() - timedelta(hours=1)
    HoldRepository.create_hold(Hold(None, 300, 2, DAY, 4, "11:00", past, past + timedelta(minutes=10)))

    assert BookingRepository.get_taken_sessions(DAY) == set()
    assert HoldRepository.cleanup_expired() == 1
    assert HoldRepository.cleanup_expired() == 0


def test_delete_user_holds(db):
    now = datetime.now()
    HoldRepository.create_hold(Hold(None, 300, 2, DAY, 4, "11:00", now, now + timedelta(minutes=10)))
    HoldRepository.delete_user_holds(300)
    assert BookingRepository.get_taken_sessions(DAY) == set()


def test_same_session_number_at_new_time_is_bookable(db):
    # после смены часов сеанс №1 той же камеры начинается в другое время
    BookingRepository.create_booking(make_booking(start_time="08:00"))
    assert BookingRepository.create_booking(make_booking(user_id=200, start_time="10:00"))

    assert BookingRepository.get_taken_sessions(DAY) == {(1, "08:00"), (1, "10:00")}


def test_booking_within_limit(db):
    first = BookingRepository.create_booking_within_limit(make_booking(tank_id=1), 2)
    second = BookingRepository.create_booking_within_limit(make_booking(tank_id=2), 2)
    assert first and second

    assert BookingRepository.create_booking_within_limit(make_booking(tank_id=3), 2) is None
    assert BookingRepository.get_booking_counts(DAY, DAY) == {DAY: 2}

    BookingRepository.cancel_booking(first)
    assert BookingRepository.create_booking_within_limit(make_booking(tank_id=3), 2)


def test_booking_within_zero_limit(db):
    assert BookingRepository.create_booking_within_limit(make_booking(), 0) is None
    assert BookingRepository.get_booking_counts(DAY, DAY) == {}


def test_parallel_bookings_respect_limit(db):
    bookings = [make_booking(tank_id=tank_id, user_id=tank_id) for tank_id in (1, 2, 3)]
    with ThreadPoolExecutor(max_workers=3) as executor:
        results = list(executor.map(
            lambda booking: BookingRepository.create_booking_within_limit(booking, 1), bookings
        ))

    assert sum(result is not None for result in results) == 1
    assert BookingRepository.get_booking_counts(DAY, DAY) == {DAY: 1}
