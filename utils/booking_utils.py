"""
Утилиты для выбора свободных сеансов клиентом
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Set, Tuple

from config import settings
from scheduling.models import SessionRecord, TankTimetable
from utils.time_utils import add_months, months_between


def session_start_datetime(day: date, session: SessionRecord) -> datetime:
    """Начало сеанса с учетом перехода через полночь"""
    return datetime.combine(day, time()) + timedelta(minutes=session.start_offset_minutes)


def free_sessions(timetable: Iterable[TankTimetable], taken: Set[Tuple[int, str]],
                  now: datetime) -> List[SessionRecord]:
    """
    Сеансы, на которые можно записаться: не заняты, не удержаны и еще не начались.
    Сортировка по времени начала, затем по номеру камеры.
    """
    sessions = []
    for tank in timetable:
        for session in tank.sessions:
            if (session.tank_id, session.start_time) in taken:
                continue
            if session_start_datetime(tank.date, session) <= now:
                continue
            sessions.append(session)
    return sorted(sessions, key=lambda s: (s.start_offset_minutes, s.tank_index))


def find_session(timetable: Iterable[TankTimetable], tank_id: int,
                 session_number: int) -> Optional[SessionRecord]:
    for tank in timetable:
        if tank.tank_id != tank_id:
            continue
        for session in tank.sessions:
            if session.session_number == session_number:
                return session
    return None


def booking_month_range(today: date) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Месяцы, доступные клиенту для записи"""
    first = (today.year, today.month)
    return first, add_months(today.year, today.month, settings.MAX_BOOKING_MONTHS)


def is_month_bookable(year: int, month: int, today: date) -> bool:
    first, last = booking_month_range(today)
    return months_between(first, (year, month)) >= 0 and months_between((year, month), last) >= 0


def normalize_phone(text: str) -> Optional[str]:
    """Телефон из ввода клиента или None, если цифр слишком мало"""
    phone = (text or '').strip()
    digits = [char for char in phone if char.isdigit()]
    if len(digits) < 10:
        return None
    return phone
