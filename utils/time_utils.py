"""
Утилиты для работы со временем и календарными днями

Время суток везде хранится строкой "HH:MM", внутри расчетов - минутами от полуночи.
"""
import calendar
import re
from datetime import date, datetime, timedelta
from typing import List, Tuple

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r'^\s*(\d{1,2}):(\d{1,2})\s*$')

MONTH_NAMES = [
    'Январь', 'Февраль', 'Март', 'Апрель', 'Май', 'Июнь',
    'Июль', 'Август', 'Сентябрь', 'Октябрь', 'Ноябрь', 'Декабрь',
]
WEEKDAY_NAMES = ['Пн', 'Вт', 'Ср', 'Чт', 'Пт', 'Сб', 'Вс']


def safe_int(value, default: int = 0) -> int:
    """Приведение к int без исключений (для данных из БД и ввода)"""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def time_to_minutes(value) -> int:
    """
    "HH:MM" -> минуты от полуночи.
    Некорректная строка дает 0, исключение не выбрасывается.
    """
    if not isinstance(value, str):
        return 0
    match = _TIME_RE.match(value)
    if not match:
        return 0
    hours, minutes = int(match.group(1)), int(match.group(2))
    return hours * 60 + minutes


def minutes_to_time(minutes) -> str:
    """
    Минуты -> "HH:MM" с переходом через полночь (1500 -> "01:00").
    Признак "следующий день" при этом теряется.
    """
    try:
        minutes = int(minutes) % MINUTES_PER_DAY
    except (TypeError, ValueError, OverflowError):
        return "00:00"
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def operating_window(open_time: str, close_time: str) -> Tuple[int, int]:
    """
    Окно работы в минутах. Если закрытие не позже открытия,
    считаем что закрываемся на следующий день.
    """
    open_minutes = time_to_minutes(open_time)
    close_minutes = time_to_minutes(close_time)
    if close_minutes <= open_minutes:
        close_minutes += MINUTES_PER_DAY
    return open_minutes, close_minutes


def is_valid_time(value) -> bool:
    """Строгая проверка "HH:MM" для ввода администратора"""
    if not isinstance(value, str):
        return False
    match = _TIME_RE.match(value)
    if not match:
        return False
    return int(match.group(1)) < 24 and int(match.group(2)) < 60


def normalize_time(value: str) -> str:
    """ "9:5" -> "09:05" """
    if not is_valid_time(value):
        raise ValueError(f"Некорректное время: {value!r}")
    return minutes_to_time(time_to_minutes(value))


def parse_hours_range(text: str) -> Tuple[str, str]:
    """
    Разбор строки вида "10:00-22:00".
    Выбрасывает ValueError при некорректном вводе.
    """
    parts = [part.strip() for part in (text or '').replace('—', '-').replace('–', '-').split('-')]
    if len(parts) != 2:
        raise ValueError("Ожидается формат ЧЧ:ММ-ЧЧ:ММ")
    open_time, close_time = (normalize_time(part) for part in parts)
    if open_time == close_time:
        raise ValueError("Время открытия и закрытия совпадает")
    return open_time, close_time


# --- Календарные дни ---

def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def day_of_week(day: date) -> int:
    """0 - понедельник, 6 - воскресенье"""
    return day.weekday()


def is_same_day(first, second) -> bool:
    """Сравнение дней; datetime приводится к дате"""
    if isinstance(first, datetime):
        first = first.date()
    if isinstance(second, datetime):
        second = second.date()
    return first == second


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Первый и последний день месяца"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_days(year: int, month: int) -> List[date]:
    """Все дни месяца по порядку"""
    first, last = month_bounds(year, month)
    return [first + timedelta(days=offset) for offset in range(last.day)]


def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Сдвиг месяца с переходом через год"""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def months_between(start: Tuple[int, int], end: Tuple[int, int]) -> int:
    return (end[0] - start[0]) * 12 + (end[1] - start[1])


def parse_date(value: str) -> date:
    """ "YYYY-MM-DD" -> date """
    return datetime.strptime(value, "%Y-%m-%d").date()


# --- Форматирование ---

def format_datetime(dt: datetime) -> str:
    """Форматирование datetime для отображения"""
    return dt.strftime("%d.%m.%Y %H:%M")


def format_date(day: date) -> str:
    """Форматирование даты"""
    if isinstance(day, datetime):
        day = day.date()
    weekday = WEEKDAY_NAMES[day.weekday()]

    today = date.today()
    if day == today:
        return f"Сегодня ({weekday})"
    elif day == today + timedelta(days=1):
        return f"Завтра ({weekday})"
    else:
        return f"{day.strftime('%d.%m')} ({weekday})"


def format_month(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"
