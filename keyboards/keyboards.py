"""
Клавиатуры для Telegram бота
"""
import calendar
from datetime import date
from typing import Dict, List

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton, ReplyKeyboardMarkup, KeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder

from database.models import Booking, Tank, TANK_READY
from scheduling.models import DayAvailability, DayStatus, SessionRecord
from utils.time_utils import WEEKDAY_NAMES, add_months, format_date, format_month

BOOK_BUTTON = "📅 Записаться на флоатинг"
MY_BOOKINGS_BUTTON = "📋 Мои записи"
ADMIN_BUTTON = "⚙️ Админ-панель"

IGNORE = "ignore"


def get_main_menu_keyboard(is_admin: bool = False) -> ReplyKeyboardMarkup:
    """Главное меню"""
    buttons = [
        [KeyboardButton(text=BOOK_BUTTON)],
        [KeyboardButton(text=MY_BOOKINGS_BUTTON)],
    ]

    if is_admin:
        buttons.append([KeyboardButton(text=ADMIN_BUTTON)])

    return ReplyKeyboardMarkup(keyboard=buttons, resize_keyboard=True)


def _day_button_text(day: DayAvailability) -> str:
    if day.status == DayStatus.CLOSED:
        return f"🔒{day.date.day}"
    if day.status == DayStatus.SOLD_OUT:
        return f"❌{day.date.day}"
    return str(day.date.day)


def get_calendar_keyboard(year: int, month: int, days: Dict[date, DayAvailability],
                          today: date, prefix: str = "",
                          can_go_back: bool = True, can_go_forward: bool = True,
                          allow_past: bool = False) -> InlineKeyboardMarkup:
    """
    Клавиатура-календарь месяца.
    prefix отделяет админский календарь ("adm_") от клиентского.
    """
    builder = InlineKeyboardBuilder()

    prev_year, prev_month = add_months(year, month, -1)
    next_year, next_month = add_months(year, month, 1)
    nav = [
        InlineKeyboardButton(
            text="◀️" if can_go_back else " ",
            callback_data=f"{prefix}cal:{prev_year}-{prev_month:02d}" if can_go_back else IGNORE,
        ),
        InlineKeyboardButton(text=format_month(year, month), callback_data=IGNORE),
        InlineKeyboardButton(
            text="▶️" if can_go_forward else " ",
            callback_data=f"{prefix}cal:{next_year}-{next_month:02d}" if can_go_forward else IGNORE,
        ),
    ]
    builder.row(*nav)
    builder.row(*[InlineKeyboardButton(text=name, callback_data=IGNORE) for name in WEEKDAY_NAMES])

    for week in calendar.Calendar(firstweekday=0).monthdatescalendar(year, month):
        row = []
        for day in week:
            availability = days.get(day)
            if day.month != month or availability is None:
                row.append(InlineKeyboardButton(text=" ", callback_data=IGNORE))
            elif day < today and not allow_past:
                row.append(InlineKeyboardButton(text="·", callback_data=IGNORE))
            else:
                row.append(InlineKeyboardButton(
                    text=_day_button_text(availability),
                    callback_data=f"{prefix}day:{day.isoformat()}",
                ))
        builder.row(*row)

    builder.row(InlineKeyboardButton(text="❌ Закрыть", callback_data="cancel"))
    return builder.as_markup()


def get_sessions_keyboard(sessions: List[SessionRecord]) -> InlineKeyboardMarkup:
    """Клавиатура выбора свободного сеанса"""
    builder = InlineKeyboardBuilder()

    for session in sessions:
        builder.button(
            text=f"{session.tank_name} · {session.start_time}",
            callback_data=f"session:{session.tank_id}:{session.session_number}",
        )

    builder.adjust(2)
    builder.row(
        InlineKeyboardButton(text="◀️ Назад", callback_data="back_to_calendar"),
        InlineKeyboardButton(text="❌ Отмена", callback_data="cancel"),
    )

    return builder.as_markup()


def get_phone_keyboard() -> ReplyKeyboardMarkup:
    """Клавиатура для отправки телефона"""
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text="📱 Отправить телефон", request_contact=True)]],
        resize_keyboard=True
    )


def get_confirmation_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура подтверждения записи"""
    builder = InlineKeyboardBuilder()

    builder.button(text="✅ Подтвердить", callback_data="confirm_booking")
    builder.button(text="◀️ Другой сеанс", callback_data="back_to_calendar")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_bookings_keyboard(bookings: List[Booking]) -> InlineKeyboardMarkup:
    """Клавиатура списка записей пользователя"""
    builder = InlineKeyboardBuilder()

    for booking in bookings:
        text = f"🗓 {format_date(booking.date)} {booking.start_time}"
        builder.button(text=text, callback_data=f"show_booking:{booking.id}")

    builder.button(text="🏠 Главное меню", callback_data="main_menu")
    builder.adjust(1)

    return builder.as_markup()


def get_booking_actions_keyboard(booking_id: int) -> InlineKeyboardMarkup:
    """Клавиатура действий с записью"""
    builder = InlineKeyboardBuilder()

    builder.button(text="🗑 Отменить запись", callback_data=f"cancel_booking:{booking_id}")
    builder.button(text="◀️ Назад", callback_data="my_bookings")
    builder.adjust(1)

    return builder.as_markup()


def get_admin_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура админ-панели"""
    builder = InlineKeyboardBuilder()

    builder.button(text="🗓 Календарь", callback_data="adm_calendar")
    builder.button(text="🛁 Камеры", callback_data="adm_tanks")
    builder.button(text="⚙️ Настройки", callback_data="adm_settings")
    builder.button(text="📋 Записи на сегодня", callback_data="admin_today")
    builder.button(text="🏠 Главное меню", callback_data="main_menu")
    builder.adjust(1)

    return builder.as_markup()


def get_admin_day_keyboard(day: DayAvailability) -> InlineKeyboardMarkup:
    """Управление днем"""
    builder = InlineKeyboardBuilder()
    key = day.date.isoformat()

    if day.status != DayStatus.CLOSED:
        builder.button(text="🔒 Закрыть день", callback_data=f"adm_close:{key}")
    builder.button(text="🕐 Свои часы работы", callback_data=f"adm_hours:{key}")
    if day.has_override:
        builder.button(text="↩️ Как обычно", callback_data=f"adm_reset:{key}")
    builder.button(text="📋 Записи", callback_data=f"adm_bookings:{key}")
    builder.button(text="◀️ К календарю", callback_data=f"adm_cal:{day.date.year}-{day.date.month:02d}")
    builder.adjust(1)

    return builder.as_markup()


def get_tanks_keyboard(tanks: List[Tank]) -> InlineKeyboardMarkup:
    """Список камер с переключением статуса"""
    builder = InlineKeyboardBuilder()

    for tank in tanks:
        icon = "✅" if tank.status == TANK_READY else "🔧"
        builder.button(text=f"{icon} {tank.name}", callback_data=f"tank_toggle:{tank.id}")

    builder.button(text="◀️ Назад", callback_data="adm_panel")
    builder.adjust(1)

    return builder.as_markup()


def get_cancel_keyboard() -> InlineKeyboardMarkup:
    """Простая клавиатура отмены"""
    builder = InlineKeyboardBuilder()
    builder.button(text="❌ Отмена", callback_data="cancel")
    return builder.as_markup()
