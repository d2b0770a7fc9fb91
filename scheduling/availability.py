"""
Доступность дней: общие настройки + исключения по датам + число записей
"""
import dataclasses
import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from database.models import DayOverride, OperatingSettings, Tank
from scheduling.models import DayAvailability, DayStatus, MonthStats, TankTimetable
from scheduling.slots import calculate_staggered_sessions, generate_session_timetable
from utils.time_utils import month_days, safe_int

logger = logging.getLogger(__name__)


def ready_tank_count(tanks: Iterable[Tank]) -> int:
    return sum(1 for tank in tanks if tank.is_ready)


def window_capacity(open_time: str, close_time: str, operating: OperatingSettings,
                    ready_tanks: int, fit_each_tank: bool = False) -> int:
    """Сколько сеансов всего можно продать за окно работы"""
    calculation = calculate_staggered_sessions(
        open_time,
        close_time,
        operating.session_duration_minutes,
        operating.cleaning_buffer_minutes,
        ready_tanks,
        operating.tank_stagger_interval_minutes,
    )
    return calculation.capacity(fit_each_tank)


def default_day_capacity(operating: OperatingSettings, ready_tanks: int,
                         fit_each_tank: bool = False) -> int:
    """Ёмкость дня без исключений"""
    return window_capacity(
        operating.default_open_time, operating.default_close_time,
        operating, ready_tanks, fit_each_tank,
    )


def _derive_status(total: int, available: int) -> DayStatus:
    if total > 0 and available == 0:
        return DayStatus.SOLD_OUT
    return DayStatus.BOOKABLE


def compute_day_availability(day: date, operating: OperatingSettings,
                             default_total_sessions: int,
                             override: Optional[DayOverride] = None,
                             booked_sessions: int = 0) -> DayAvailability:
    """
    Доступность одного дня.

    Закрытый день всегда дает 0 сеансов. Исключение со статусом Bookable
    берет sessions_to_sell как есть, без пересчета. Без исключения
    используются общие часы и default_total_sessions.

    booked_sessions не обрезается по ёмкости: перебронирование должно быть видно.
    """
    booked_sessions = safe_int(booked_sessions)

    if override is not None:
        open_time = override.open_time or operating.default_open_time
        close_time = override.close_time or operating.default_close_time
        if override.is_closed:
            return DayAvailability(
                date=day,
                status=DayStatus.CLOSED,
                open_time=open_time,
                close_time=close_time,
                total_sessions=0,
                booked_sessions=booked_sessions,
                available_sessions=0,
                has_override=True,
            )
        total = max(0, safe_int(override.sessions_to_sell))
    else:
        open_time = operating.default_open_time
        close_time = operating.default_close_time
        total = max(0, safe_int(default_total_sessions))

    available = max(0, total - booked_sessions)
    return DayAvailability(
        date=day,
        status=_derive_status(total, available),
        open_time=open_time,
        close_time=close_time,
        total_sessions=total,
        booked_sessions=booked_sessions,
        available_sessions=available,
        has_override=override is not None,
    )


def index_overrides(overrides: Iterable[DayOverride]) -> Dict[date, DayOverride]:
    """Исключения по датам; при дубликате остается первое"""
    by_date: Dict[date, DayOverride] = {}
    for override in overrides:
        if override.date in by_date:
            logger.warning(f"Несколько исключений на {override.date}, используется первое")
            continue
        by_date[override.date] = override
    return by_date


def compute_month(year: int, month: int, operating: OperatingSettings,
                  tanks: Iterable[Tank], overrides: Iterable[DayOverride],
                  booking_counts: Mapping[date, int],
                  fit_each_tank: bool = False) -> Dict[date, DayAvailability]:
    """Календарь месяца: дата -> DayAvailability, по порядку дней"""
    default_total = default_day_capacity(operating, ready_tank_count(tanks), fit_each_tank)
    overrides_by_date = index_overrides(overrides)

    return {
        day: compute_day_availability(
            day,
            operating,
            default_total,
            overrides_by_date.get(day),
            booking_counts.get(day, 0),
        )
        for day in month_days(year, month)
    }


def effective_settings_for(day: DayAvailability, operating: OperatingSettings) -> OperatingSettings:
    """Общие настройки с часами работы конкретного дня"""
    return dataclasses.replace(
        operating,
        default_open_time=day.open_time,
        default_close_time=day.close_time,
    )


def compute_day_timetable(day: date, effective: OperatingSettings, tanks: Iterable[Tank],
                          fit_each_tank: bool = False) -> List[TankTimetable]:
    """Сеансы по камерам для выбранного дня (часы уже подставлены в effective)"""
    return generate_session_timetable(
        day,
        effective.default_open_time,
        effective.default_close_time,
        effective.session_duration_minutes,
        effective.cleaning_buffer_minutes,
        effective.tank_stagger_interval_minutes,
        tanks,
        fit_each_tank,
    )


def timetable_for_availability(day: DayAvailability, operating: OperatingSettings,
                               tanks: Iterable[Tank],
                               fit_each_tank: bool = False) -> List[TankTimetable]:
    """Расписание дня из календаря; у закрытого дня сеансов нет"""
    if day.status == DayStatus.CLOSED:
        return []
    return compute_day_timetable(day.date, effective_settings_for(day, operating), tanks, fit_each_tank)


def compute_month_stats(calendar_days: Mapping[date, DayAvailability],
                        operating: OperatingSettings, tanks: Iterable[Tank],
                        fit_each_tank: bool = False) -> MonthStats:
    """Сводка: ёмкость дня по умолчанию и итоги месяца без закрытых дней"""
    ready = ready_tank_count(tanks)
    calculation = calculate_staggered_sessions(
        operating.default_open_time,
        operating.default_close_time,
        operating.session_duration_minutes,
        operating.cleaning_buffer_minutes,
        ready,
        operating.tank_stagger_interval_minutes,
    )

    open_days = [day for day in calendar_days.values() if day.status != DayStatus.CLOSED]
    return MonthStats(
        total_daily_sessions=calculation.capacity(fit_each_tank),
        sessions_per_tank=calculation.sessions_per_tank,
        ready_tanks=ready,
        actual_close_time=calculation.actual_close_time,
        monthly_bookings=sum(day.booked_sessions for day in open_days),
        monthly_capacity=sum(day.total_sessions for day in open_days),
    )
