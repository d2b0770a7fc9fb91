"""
Производные структуры расписания (не хранятся в БД, пересчитываются при каждом запросе)
"""
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Tuple


class DayStatus(str, Enum):
    """Статус дня в календаре. SOLD_OUT только вычисляется."""
    BOOKABLE = 'Bookable'
    CLOSED = 'Closed'
    SOLD_OUT = 'Sold Out'


@dataclass(frozen=True)
class SlotCalculation:
    """Результат расчета сеансов на камеру"""
    sessions_per_tank: int
    actual_close_time: str
    sessions_by_tank: Tuple[int, ...] = ()

    @property
    def uniform_capacity(self) -> int:
        """Максимум по камерам, умноженный на число камер"""
        return self.sessions_per_tank * len(self.sessions_by_tank)

    @property
    def fitted_capacity(self) -> int:
        """Сумма того, что реально помещается в окно каждой камеры"""
        return sum(self.sessions_by_tank)

    def capacity(self, fit_each_tank: bool = False) -> int:
        return self.fitted_capacity if fit_each_tank else self.uniform_capacity


@dataclass(frozen=True)
class DayAvailability:
    date: date
    status: DayStatus
    open_time: str
    close_time: str
    total_sessions: int
    booked_sessions: int
    available_sessions: int
    has_override: bool = False

    @property
    def is_overbooked(self) -> bool:
        return self.booked_sessions > self.total_sessions

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['date'] = self.date.isoformat()
        data['status'] = self.status.value
        return data


@dataclass(frozen=True)
class SessionRecord:
    tank_index: int
    tank_id: int
    tank_name: str
    session_number: int
    start_time: str
    end_time: str
    cleaning_start: str
    cleaning_end: str
    # Минуты от полуночи календарного дня, без перехода через сутки (может быть > 1440)
    start_offset_minutes: int

    @property
    def is_next_day(self) -> bool:
        return self.start_offset_minutes >= 24 * 60


@dataclass
class TankTimetable:
    """Сеансы одной камеры на день"""
    date: date
    tank_number: int
    tank_id: int
    tank_name: str
    sessions: List[SessionRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['date'] = self.date.isoformat()
        return data


@dataclass(frozen=True)
class MonthStats:
    """Сводка по месяцу для админки"""
    total_daily_sessions: int
    sessions_per_tank: int
    ready_tanks: int
    actual_close_time: str
    monthly_bookings: int
    monthly_capacity: int
