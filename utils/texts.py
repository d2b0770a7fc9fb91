"""
Тексты сообщений: день, расписание, сводки
"""
from typing import List

from database.models import OperatingSettings, Tank, TANK_READY
from scheduling.models import DayAvailability, DayStatus, MonthStats, TankTimetable
from utils.time_utils import format_date, format_month

MAX_MESSAGE_LENGTH = 4000

STATUS_LABELS = {
    DayStatus.BOOKABLE: "🟢 Открыт для записи",
    DayStatus.CLOSED: "🔒 Закрыт",
    DayStatus.SOLD_OUT: "🔴 Мест нет",
}


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Разбиение длинного сообщения по строкам"""
    if len(text) <= limit:
        return [text]

    parts = []
    current_part = ""
    for line in text.splitlines(keepends=True):
        if current_part and len(current_part) + len(line) > limit:
            parts.append(current_part)
            current_part = ""
        current_part += line
    if current_part:
        parts.append(current_part)
    return parts


def format_day_summary(day: DayAvailability, for_admin: bool = False) -> str:
    text = (
        f"📅 {format_date(day.date)}\n"
        f"{STATUS_LABELS[day.status]}\n"
    )
    if day.status == DayStatus.CLOSED:
        if for_admin and day.booked_sessions:
            text += f"⚠️ На закрытый день есть записи: {day.booked_sessions}\n"
        return text

    text += f"🕐 {day.open_time} - {day.close_time}\n"
    if for_admin:
        text += (
            f"Сеансов всего: {day.total_sessions}\n"
            f"Записано: {day.booked_sessions}\n"
            f"Свободно: {day.available_sessions}\n"
        )
        if day.is_overbooked:
            text += f"⚠️ Перебронирование: {day.booked_sessions - day.total_sessions}\n"
        if day.has_override:
            text += "✏️ Особые настройки дня\n"
    else:
        text += f"Свободных сеансов: {day.available_sessions}\n"
    return text


def format_timetable(timetable: List[TankTimetable]) -> str:
    if not timetable:
        return "Сеансов нет"

    text = ""
    for tank in timetable:
        text += f"\n🛁 {tank.tank_number}. {tank.tank_name}\n"
        if not tank.sessions:
            text += "   сеансов нет\n"
        for session in tank.sessions:
            text += (
                f"   #{session.session_number} {session.start_time}-{session.end_time}"
                f" (уборка до {session.cleaning_end})\n"
            )
    return text


def format_month_stats(year: int, month: int, stats: MonthStats) -> str:
    return (
        f"📊 {format_month(year, month)}\n\n"
        f"Камер в работе: {stats.ready_tanks}\n"
        f"Сеансов на камеру: {stats.sessions_per_tank}\n"
        f"Сеансов в день: {stats.total_daily_sessions}\n"
        f"Фактическое закрытие: {stats.actual_close_time}\n"
        f"Записей за месяц: {stats.monthly_bookings} из {stats.monthly_capacity}\n"
    )


def format_settings(operating: OperatingSettings, stats: MonthStats) -> str:
    return (
        "⚙️ Настройки работы\n\n"
        f"Длительность сеанса: {operating.session_duration_minutes} мин\n"
        f"Уборка после сеанса: {operating.cleaning_buffer_minutes} мин\n"
        f"Сдвиг между камерами: {operating.tank_stagger_interval_minutes} мин\n"
        f"Часы работы: {operating.default_open_time} - {operating.default_close_time}\n\n"
        f"Камер в работе: {stats.ready_tanks}\n"
        f"Сеансов на камеру: {stats.sessions_per_tank}\n"
        f"Сеансов в день: {stats.total_daily_sessions}\n"
        f"Фактическое закрытие: {stats.actual_close_time}\n\n"
        "Изменить: /set <параметр> <значение>\n"
        "Параметры: duration, buffer, stagger, open, close\n"
        "Пример: /set buffer 15"
    )


def format_tanks(tanks: List[Tank]) -> str:
    if not tanks:
        return "🛁 Камер пока нет\n\nДобавить: /addtank <название>"

    text = "🛁 Камеры\n\n"
    for tank in tanks:
        icon = "✅" if tank.status == TANK_READY else "🔧"
        text += f"{icon} {tank.name} ({tank.status})\n"
    text += "\nНажмите на камеру, чтобы сменить статус.\nДобавить: /addtank <название>"
    return text
