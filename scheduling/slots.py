"""
Расчет сеансов для нескольких камер со сдвигом старта

Камера i начинает работу в open + i * stagger и дальше крутит циклы
"сеанс + уборка" до закрытия. Закрытие раньше открытия означает работу
через полночь.
"""
import logging
from datetime import date
from typing import Iterable, List

from database.models import Tank
from scheduling.models import SessionRecord, SlotCalculation, TankTimetable
from utils.time_utils import minutes_to_time, operating_window, safe_int

logger = logging.getLogger(__name__)


def calculate_staggered_sessions(open_time: str, close_time: str, session_duration: int,
                                 cleaning_buffer: int, tank_count: int,
                                 stagger_interval: int) -> SlotCalculation:
    """
    Сколько сеансов помещается в окно работы.

    sessions_per_tank - максимум по всем камерам (первая камера в лучшем
    положении), actual_close_time - когда заканчивается последняя уборка.
    Вырожденные параметры дают 0 сеансов и исходное время закрытия.
    """
    tank_count = safe_int(tank_count)
    if not open_time or not close_time or tank_count <= 0:
        return SlotCalculation(0, close_time or "00:00")

    session_duration = safe_int(session_duration)
    cleaning_buffer = safe_int(cleaning_buffer)
    stagger_interval = safe_int(stagger_interval)
    session_length = session_duration + cleaning_buffer
    if session_duration <= 0 or cleaning_buffer < 0 or stagger_interval < 0:
        return SlotCalculation(0, close_time, (0,) * tank_count)

    open_minutes, close_minutes = operating_window(open_time, close_time)

    sessions_by_tank = []
    latest_end = open_minutes
    for tank_index in range(tank_count):
        tank_start = open_minutes + tank_index * stagger_interval
        # Камера стартует уже после закрытия
        if tank_start >= close_minutes:
            sessions_by_tank.append(0)
            continue

        tank_sessions = (close_minutes - tank_start) // session_length
        sessions_by_tank.append(tank_sessions)
        if tank_sessions > 0:
            latest_end = max(latest_end, tank_start + tank_sessions * session_length)

    return SlotCalculation(
        sessions_per_tank=max(sessions_by_tank),
        actual_close_time=minutes_to_time(latest_end),
        sessions_by_tank=tuple(sessions_by_tank),
    )


def generate_session_timetable(day: date, open_time: str, close_time: str,
                               session_duration: int, cleaning_buffer: int,
                               stagger_interval: int, tanks: Iterable[Tank],
                               fit_each_tank: bool = False) -> List[TankTimetable]:
    """
    Расписание сеансов по камерам на один день.

    Камеры на обслуживании пропускаются. По умолчанию каждой камере
    выдается одинаковое число сеансов (максимум по камерам), поэтому у
    поздних камер последние сеансы могут выходить за время закрытия.
    При fit_each_tank=True каждая камера получает только то, что помещается.
    """
    ready_tanks = [tank for tank in tanks if tank.is_ready]
    calculation = calculate_staggered_sessions(
        open_time, close_time, session_duration,
        cleaning_buffer, len(ready_tanks), stagger_interval,
    )
    if calculation.sessions_per_tank == 0:
        return [
            TankTimetable(date=day, tank_number=index + 1, tank_id=tank.id, tank_name=tank.name)
            for index, tank in enumerate(ready_tanks)
        ]

    session_duration = safe_int(session_duration)
    cleaning_buffer = safe_int(cleaning_buffer)
    stagger_interval = safe_int(stagger_interval)
    session_length = session_duration + cleaning_buffer
    open_minutes, _ = operating_window(open_time, close_time)

    timetable = []
    for tank_index, tank in enumerate(ready_tanks):
        tank_start = open_minutes + tank_index * stagger_interval
        if fit_each_tank:
            session_count = calculation.sessions_by_tank[tank_index]
        else:
            session_count = calculation.sessions_per_tank

        sessions = []
        for number in range(session_count):
            start = tank_start + number * session_length
            end = start + session_duration
            sessions.append(SessionRecord(
                tank_index=tank_index,
                tank_id=tank.id,
                tank_name=tank.name,
                session_number=number + 1,
                start_time=minutes_to_time(start),
                end_time=minutes_to_time(end),
                cleaning_start=minutes_to_time(end),
                cleaning_end=minutes_to_time(end + cleaning_buffer),
                start_offset_minutes=start,
            ))

        timetable.append(TankTimetable(
            date=day,
            tank_number=tank_index + 1,
            tank_id=tank.id,
            tank_name=tank.name,
            sessions=sessions,
        ))

    logger.debug(
        f"Расписание на {day}: {len(ready_tanks)} камер, "
        f"{calculation.sessions_per_tank} сеансов на камеру"
    )
    return timetable
