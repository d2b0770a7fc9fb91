"""
Обработчики команд администраторов
"""
import dataclasses
import logging
import sqlite3
from datetime import date

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery

from config import settings
from database.models import OVERRIDE_BOOKABLE, OVERRIDE_CLOSED, TANK_MAINTENANCE, TANK_READY
from database.repository import (
    BookingRepository, OverrideRepository, SettingsRepository, TankRepository,
)
from keyboards.keyboards import (
    ADMIN_BUTTON, get_admin_day_keyboard, get_admin_keyboard,
    get_calendar_keyboard, get_cancel_keyboard, get_tanks_keyboard,
)
from middlewares.admin_access import AdminAccessMiddleware
from scheduling.availability import (
    compute_month_stats, ready_tank_count, timetable_for_availability, window_capacity,
)
from scheduling.loader import load_day, load_month_calendar
from states.booking_states import AdminStates
from utils.texts import (
    format_day_summary, format_month_stats, format_settings, format_tanks,
    format_timetable, split_message,
)
from utils.time_utils import format_date, normalize_time, parse_date, parse_hours_range

logger = logging.getLogger(__name__)
router = Router()
router.message.middleware(AdminAccessMiddleware())
router.callback_query.middleware(AdminAccessMiddleware())

LOAD_ERROR_TEXT = "⚠️ Не удалось загрузить данные календаря. Подробности в логах."

# /set <параметр> <значение>
SETTING_FIELDS = {
    'duration': 'session_duration_minutes',
    'buffer': 'cleaning_buffer_minutes',
    'stagger': 'tank_stagger_interval_minutes',
    'open': 'default_open_time',
    'close': 'default_close_time',
}


@router.message(F.text == ADMIN_BUTTON)
async def admin_panel(message: Message, state: FSMContext):
    """Открытие админ-панели"""
    await state.clear()
    await message.answer(
        "⚙️ Админ-панель\n\nВыберите действие:",
        reply_markup=get_admin_keyboard()
    )


@router.callback_query(F.data == "adm_panel")
async def callback_admin_panel(callback: CallbackQuery):
    await callback.message.edit_text(
        "⚙️ Админ-панель\n\nВыберите действие:",
        reply_markup=get_admin_keyboard()
    )
    await callback.answer()


# --- Календарь ---

async def render_admin_calendar(message: Message, year: int, month: int, edit: bool = False):
    """Календарь месяца со сводкой"""
    try:
        inputs, days = await load_month_calendar(year, month)
    except (sqlite3.Error, LookupError) as e:
        logger.error(f"Не удалось загрузить календарь {year}-{month:02d}: {e}", exc_info=True)
        await message.answer(LOAD_ERROR_TEXT)
        return

    stats = compute_month_stats(days, inputs.operating, inputs.tanks, settings.FIT_EACH_TANK)
    text = format_month_stats(year, month, stats) + "\n🔒 - закрыто, ❌ - мест нет"
    keyboard = get_calendar_keyboard(year, month, days, date.today(), prefix="adm_", allow_past=True)
    if edit:
        await message.edit_text(text, reply_markup=keyboard)
    else:
        await message.answer(text, reply_markup=keyboard)


@router.callback_query(F.data == "adm_calendar")
async def callback_admin_calendar(callback: CallbackQuery):
    today = date.today()
    await render_admin_calendar(callback.message, today.year, today.month, edit=True)
    await callback.answer()


@router.callback_query(F.data.startswith("adm_cal:"))
async def callback_admin_month(callback: CallbackQuery):
    """Переключение месяца в админском календаре"""
    year, month = (int(part) for part in callback.data.split(":")[1].split("-"))
    await render_admin_calendar(callback.message, year, month, edit=True)
    await callback.answer()


async def render_admin_day(message: Message, day_key: date, edit: bool = False):
    """Сводка дня и расписание сеансов по камерам"""
    try:
        inputs, day = await load_day(day_key)
    except (sqlite3.Error, LookupError) as e:
        logger.error(f"Не удалось загрузить день {day_key}: {e}", exc_info=True)
        await message.answer(LOAD_ERROR_TEXT)
        return

    timetable = timetable_for_availability(day, inputs.operating, inputs.tanks, settings.FIT_EACH_TANK)
    text = format_day_summary(day, for_admin=True)
    if timetable:
        text += format_timetable(timetable)

    parts = split_message(text)
    keyboard = get_admin_day_keyboard(day)
    if edit and len(parts) == 1:
        await message.edit_text(parts[0], reply_markup=keyboard)
        return

    for part in parts[:-1]:
        await message.answer(part)
    await message.answer(parts[-1], reply_markup=keyboard)


@router.callback_query(F.data.startswith("adm_day:"))
async def callback_admin_day(callback: CallbackQuery):
    await render_admin_day(callback.message, parse_date(callback.data.split(":")[1]), edit=True)
    await callback.answer()


@router.callback_query(F.data.startswith("adm_close:"))
async def callback_close_day(callback: CallbackQuery):
    """Закрытие дня для записи"""
    day_key = parse_date(callback.data.split(":")[1])
    operating = SettingsRepository.get_settings()
    OverrideRepository.set_override(
        day_key, OVERRIDE_CLOSED,
        operating.default_open_time, operating.default_close_time, 0
    )
    logger.info(f"Администратор {callback.from_user.id} закрыл {day_key}")

    await render_admin_day(callback.message, day_key, edit=True)
    await callback.answer("День закрыт")


@router.callback_query(F.data.startswith("adm_hours:"))
async def callback_day_hours(callback: CallbackQuery, state: FSMContext):
    """Запрос своих часов работы на день"""
    day_key = callback.data.split(":", 1)[1]
    await state.update_data(override_date=day_key)
    await state.set_state(AdminStates.entering_hours)

    await callback.message.edit_text(
        f"🕐 {format_date(parse_date(day_key))}\n\n"
        f"Введите часы работы в формате ЧЧ:ММ-ЧЧ:ММ\n"
        f"Например: 10:00-23:00 или 20:00-02:00 (через полночь)",
        reply_markup=get_cancel_keyboard()
    )
    await callback.answer()


@router.message(AdminStates.entering_hours, F.text)
async def process_day_hours(message: Message, state: FSMContext):
    """Сохранение своих часов работы на день"""
    try:
        open_time, close_time = parse_hours_range(message.text)
    except ValueError as e:
        await message.answer(f"⚠️ {e}")
        return

    data = await state.get_data()
    day_key = parse_date(data['override_date'])

    # Ёмкость фиксируется на момент сохранения по текущим камерам и настройкам
    operating = SettingsRepository.get_settings()
    tanks = TankRepository.list_tanks()
    sessions_to_sell = window_capacity(
        open_time, close_time, operating, ready_tank_count(tanks), settings.FIT_EACH_TANK
    )
    OverrideRepository.set_override(day_key, OVERRIDE_BOOKABLE, open_time, close_time, sessions_to_sell)
    await state.clear()

    await message.answer(f"✅ Часы работы на {format_date(day_key)}: {open_time} - {close_time}")
    await render_admin_day(message, day_key)


@router.callback_query(F.data.startswith("adm_reset:"))
async def callback_reset_day(callback: CallbackQuery):
    """Возврат дня к общему расписанию"""
    day_key = parse_date(callback.data.split(":")[1])
    OverrideRepository.delete_override(day_key)

    await render_admin_day(callback.message, day_key, edit=True)
    await callback.answer("День работает по общему расписанию")


@router.callback_query(F.data.startswith("adm_bookings:"))
async def callback_day_bookings(callback: CallbackQuery):
    await show_bookings(callback.message, parse_date(callback.data.split(":")[1]))
    await callback.answer()


# --- Записи ---

@router.message(Command("today"))
async def cmd_today(message: Message):
    """Команда /today - список записей на сегодня"""
    await show_bookings(message, date.today())


@router.callback_query(F.data == "admin_today")
async def callback_today(callback: CallbackQuery):
    """Callback для записей на сегодня"""
    await show_bookings(callback.message, date.today())
    await callback.answer()


async def show_bookings(message: Message, day: date):
    """Показать записи на дату"""
    bookings = BookingRepository.get_bookings_by_date(day)

    if not bookings:
        await message.answer(f"📋 На {format_date(day)} записей нет")
        return

    tank_names = {tank.id: tank.name for tank in TankRepository.list_tanks()}
    text = f"📋 Записи на {format_date(day)}:\n\n"

    for booking in bookings:
        text += (
            f"🔹 Запись #{booking.id}\n"
            f"   🕐 {booking.start_time} (сеанс №{booking.session_number})\n"
            f"   🛁 {tank_names.get(booking.tank_id, f'Камера #{booking.tank_id}')}\n"
            f"   👤 @{booking.username or 'без username'}\n"
            f"   📱 {booking.phone}\n\n"
        )

    text += f"Всего записей: {len(bookings)}"

    for part in split_message(text):
        await message.answer(part)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, command: CommandObject):
    """Команда /cancel <id> - отмена записи администратором"""
    if not command.args:
        await message.answer(
            "⚠️ Использование: /cancel <id>\n\n"
            "Пример: /cancel 123"
        )
        return

    try:
        booking_id = int(command.args.split()[0])
    except ValueError:
        await message.answer("⚠️ ID записи должен быть числом")
        return

    booking = BookingRepository.get_booking_by_id(booking_id)

    if not booking:
        await message.answer(f"⚠️ Запись #{booking_id} не найдена")
        return

    if booking.status != 'active':
        await message.answer(f"⚠️ Запись #{booking_id} уже отменена")
        return

    if BookingRepository.cancel_booking(booking_id):
        logger.info(f"Администратор {message.from_user.id} отменил запись #{booking_id}")
        await message.answer(
            f"✅ Запись #{booking_id} отменена\n\n"
            f"📅 {format_date(booking.date)}, {booking.start_time}\n"
            f"👤 @{booking.username or 'без username'}"
        )
    else:
        await message.answer(f"⚠️ Не удалось отменить запись #{booking_id}")


# --- Камеры ---

async def render_tanks(message: Message, edit: bool = False):
    tanks = TankRepository.list_tanks()
    if edit:
        await message.edit_text(format_tanks(tanks), reply_markup=get_tanks_keyboard(tanks))
    else:
        await message.answer(format_tanks(tanks), reply_markup=get_tanks_keyboard(tanks))


@router.callback_query(F.data == "adm_tanks")
async def callback_tanks(callback: CallbackQuery):
    await render_tanks(callback.message, edit=True)
    await callback.answer()


@router.callback_query(F.data.startswith("tank_toggle:"))
async def callback_toggle_tank(callback: CallbackQuery):
    """Переключение камеры между Ready и Maintenance"""
    tank = TankRepository.get_tank_by_id(int(callback.data.split(":")[1]))
    if tank is None:
        await callback.answer("Камера не найдена", show_alert=True)
        return

    new_status = TANK_MAINTENANCE if tank.status == TANK_READY else TANK_READY
    TankRepository.set_status(tank.id, new_status)

    await render_tanks(callback.message, edit=True)
    await callback.answer(f"{tank.name}: {new_status}")


@router.message(Command("addtank"))
async def cmd_add_tank(message: Message, command: CommandObject):
    """Команда /addtank <название>"""
    try:
        TankRepository.create_tank(command.args or '')
    except ValueError as e:
        await message.answer(f"⚠️ {e}\n\nИспользование: /addtank <название>")
        return

    await render_tanks(message)


# --- Настройки ---

async def render_settings(message: Message, edit: bool = False):
    operating = SettingsRepository.get_settings()
    tanks = TankRepository.list_tanks()
    stats = compute_month_stats({}, operating, tanks, settings.FIT_EACH_TANK)
    text = format_settings(operating, stats)
    if edit:
        await message.edit_text(text, reply_markup=get_admin_keyboard())
    else:
        await message.answer(text)


@router.callback_query(F.data == "adm_settings")
async def callback_settings(callback: CallbackQuery):
    await render_settings(callback.message, edit=True)
    await callback.answer()


@router.message(Command("set"))
async def cmd_set(message: Message, command: CommandObject):
    """Команда /set <параметр> <значение>"""
    args = (command.args or '').split()
    if len(args) != 2 or args[0] not in SETTING_FIELDS:
        await message.answer(
            "⚠️ Использование: /set <параметр> <значение>\n"
            f"Параметры: {', '.join(SETTING_FIELDS)}"
        )
        return

    key, raw_value = args
    field_name = SETTING_FIELDS[key]
    try:
        if key in ('open', 'close'):
            value = normalize_time(raw_value)
        else:
            value = int(raw_value)
        operating = dataclasses.replace(SettingsRepository.get_settings(), **{field_name: value})
        SettingsRepository.update_settings(operating)
    except ValueError as e:
        await message.answer(f"⚠️ {e}")
        return

    logger.info(f"Администратор {message.from_user.id} изменил {field_name} на {value}")
    await render_settings(message)
