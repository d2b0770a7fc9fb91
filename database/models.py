"""
Модели данных для работы с БД
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from utils.time_utils import is_valid_time

TANK_READY = 'Ready'
TANK_MAINTENANCE = 'Maintenance'
TANK_STATUSES = (TANK_READY, TANK_MAINTENANCE)

OVERRIDE_BOOKABLE = 'Bookable'
OVERRIDE_CLOSED = 'Closed'
OVERRIDE_STATUSES = (OVERRIDE_BOOKABLE, OVERRIDE_CLOSED)


@dataclass(frozen=True)
class OperatingSettings:
    """
    Общие параметры работы центра.
    Число камер не хранится - берется из количества камер в статусе Ready.
    """
    session_duration_minutes: int
    cleaning_buffer_minutes: int
    tank_stagger_interval_minutes: int
    default_open_time: str
    default_close_time: str

    def validate(self):
        """Проверка перед сохранением, ValueError при нарушении"""
        if self.session_duration_minutes <= 0:
            raise ValueError("Длительность сеанса должна быть больше нуля")
        if self.cleaning_buffer_minutes < 0:
            raise ValueError("Время уборки не может быть отрицательным")
        if self.tank_stagger_interval_minutes < 0:
            raise ValueError("Сдвиг между камерами не может быть отрицательным")
        for value in (self.default_open_time, self.default_close_time):
            if not is_valid_time(value):
                raise ValueError(f"Некорректное время: {value!r}")


@dataclass
class Tank:
    """Модель флоат-камеры"""
    id: int
    name: str
    status: str = TANK_READY  # Ready, Maintenance

    @property
    def is_ready(self) -> bool:
        return self.status == TANK_READY


@dataclass(frozen=True)
class DayOverride:
    """Исключение из общего расписания на конкретную дату"""
    date: date
    status: str  # Bookable, Closed
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    sessions_to_sell: int = 0

    @property
    def is_closed(self) -> bool:
        return self.status == OVERRIDE_CLOSED


@dataclass
class Booking:
    """Модель записи на сеанс"""
    id: Optional[int]
    user_id: int
    username: Optional[str]
    tank_id: int
    date: date
    session_number: int
    start_time: str
    phone: str
    created_at: datetime
    status: str = 'active'  # active, cancelled


@dataclass
class Hold:
    """Модель временного удержания сеанса"""
    id: Optional[int]
    user_id: int
    tank_id: int
    date: date
    session_number: int
    start_time: str
    created_at: datetime
    expires_at: datetime
