"""
Загрузка данных месяца одним пакетом

Четыре чтения независимы, поэтому идут параллельно в пуле потоков.
Ошибка любого чтения пробрасывается вызывающему: подставлять значения
по умолчанию вместо реальной ёмкости нельзя.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Tuple

from config import settings
from database.models import DayOverride, OperatingSettings, Tank
from database.repository import (
    BookingRepository, OverrideRepository, SettingsRepository, TankRepository,
)
from scheduling.availability import compute_month
from scheduling.models import DayAvailability
from utils.time_utils import month_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthInputs:
    year: int
    month: int
    operating: OperatingSettings
    tanks: List[Tank]
    overrides: List[DayOverride]
    booking_counts: Dict[date, int]


async def fetch_month_inputs(year: int, month: int) -> MonthInputs:
    """Настройки, камеры, исключения и число записей за месяц"""
    start_date, end_date = month_bounds(year, month)
    operating, tanks, overrides, booking_counts = await asyncio.gather(
        asyncio.to_thread(SettingsRepository.get_settings),
        asyncio.to_thread(TankRepository.list_tanks),
        asyncio.to_thread(OverrideRepository.get_overrides, start_date, end_date),
        asyncio.to_thread(BookingRepository.get_booking_counts, start_date, end_date),
    )
    logger.debug(
        f"Данные за {year}-{month:02d}: камер {len(tanks)}, "
        f"исключений {len(overrides)}, дней с записями {len(booking_counts)}"
    )
    return MonthInputs(year, month, operating, tanks, overrides, booking_counts)


async def load_month_calendar(year: int, month: int) -> Tuple[MonthInputs, Dict[date, DayAvailability]]:
    """Данные месяца и рассчитанный по ним календарь"""
    inputs = await fetch_month_inputs(year, month)
    calendar_days = compute_month(
        year, month,
        inputs.operating,
        inputs.tanks,
        inputs.overrides,
        inputs.booking_counts,
        fit_each_tank=settings.FIT_EACH_TANK,
    )
    return inputs, calendar_days


async def load_day(day: date) -> Tuple[MonthInputs, DayAvailability]:
    """Один день (считается в составе своего месяца)"""
    inputs, calendar_days = await load_month_calendar(day.year, day.month)
    return inputs, calendar_days[day]
