"""
Обработчики команд и сообщений клиентов
"""
import logging
import sqlite3
from datetime import date, datetime, timedelta

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from config import settings
from database.models import Booking, Hold
from database.repository import BookingRepository, HoldRepository, TankRepository
from keyboards.keyboards import (
    BOOK_BUTTON, IGNORE, MY_BOOKINGS_BUTTON,
    get_main_menu_keyboard, get_calendar_keyboard, get_sessions_keyboard,
    get_phone_keyboard, get_confirmation_keyboard, get_bookings_keyboard,
    get_booking_actions_keyboard,
)
from scheduling.availability import timetable_for_availability
from scheduling.loader import load_day, load_month_calendar
from scheduling.models import DayStatus
from states.booking_states import BookingStates
from utils.booking_utils import (
    booking_month_range, find_session, free_sessions, is_month_bookable,
    normalize_phone, session_start_datetime,
)
from utils.texts import format_day_summary
from utils.time_utils import format_date, format_datetime, months_between, parse_date

logger = logging.getLogger(__name__)
router = Router()

LOAD_ERROR_TEXT = "⚠️ Не удалось загрузить расписание. Попробуйте позже."


@router.message(Command("start"))
async def cmd_start(message: Message, state: FSMContext):
    """Обработка команды /start"""
    await state.clear()

    is_admin = settings.is_admin(message.from_user.id)

    await message.answer(
        f"👋 Добро пожаловать во флоат-центр!\n\n"
        f"Здесь вы можете:\n"
        f"📅 Записаться на сеанс флоатинга\n"
        f"📋 Посмотреть свои записи\n"
        f"🗑 Отменить запись\n\n"
        f"Выберите действие:",
        reply_markup=get_main_menu_keyboard(is_admin)
    )


async def render_calendar(message: Message, year: int, month: int, edit: bool = False) -> bool:
    """Отрисовка клиентского календаря; False если данные не загрузились"""
    try:
        _, days = await load_month_calendar(year, month)
    except (sqlite3.Error, LookupError) as e:
        logger.error(f"Не удалось загрузить календарь {year}-{month:02d}: {e}", exc_info=True)
        await message.answer(LOAD_ERROR_TEXT)
        return False

    today = date.today()
    first, last = booking_month_range(today)
    keyboard = get_calendar_keyboard(
        year, month, days, today,
        can_go_back=months_between(first, (year, month)) > 0,
        can_go_forward=months_between((year, month), last) > 0,
    )
    text = "📅 Выберите дату:\n🔒 - закрыто, ❌ - мест нет"
    if edit:
        await message.edit_text(text, reply_markup=keyboard)
    else:
        await message.answer(text, reply_markup=keyboard)
    return True


@router.message(F.text == BOOK_BUTTON)
async def start_booking(message: Message, state: FSMContext):
    """Начало процесса записи"""
    await state.clear()
    HoldRepository.delete_user_holds(message.from_user.id)

    today = date.today()
    if await render_calendar(message, today.year, today.month):
        await state.update_data(year=today.year, month=today.month)
        await state.set_state(BookingStates.choosing_date)


@router.callback_query(F.data.startswith("cal:"), BookingStates.choosing_date)
async def process_month(callback: CallbackQuery, state: FSMContext):
    """Переключение месяца"""
    year, month = (int(part) for part in callback.data.split(":")[1].split("-"))
    if not is_month_bookable(year, month, date.today()):
        await callback.answer("Запись на этот месяц пока недоступна", show_alert=True)
        return

    if await render_calendar(callback.message, year, month, edit=True):
        await state.update_data(year=year, month=month)
    await callback.answer()


@router.callback_query(F.data.startswith("day:"), BookingStates.choosing_date)
async def process_date(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора даты"""
    selected_date = parse_date(callback.data.split(":")[1])
    if selected_date < date.today():
        await callback.answer("Эта дата уже прошла", show_alert=True)
        return

    try:
        inputs, day = await load_day(selected_date)
    except (sqlite3.Error, LookupError) as e:
        logger.error(f"Не удалось загрузить день {selected_date}: {e}", exc_info=True)
        await callback.answer(LOAD_ERROR_TEXT, show_alert=True)
        return

    if day.status == DayStatus.CLOSED:
        await callback.answer("В этот день центр закрыт", show_alert=True)
        return
    if day.status == DayStatus.SOLD_OUT or day.available_sessions <= 0:
        await callback.answer("На эту дату свободных сеансов нет", show_alert=True)
        return

    timetable = timetable_for_availability(day, inputs.operating, inputs.tanks, settings.FIT_EACH_TANK)
    taken = BookingRepository.get_taken_sessions(selected_date, exclude_user=callback.from_user.id)
    sessions = free_sessions(timetable, taken, datetime.now())

    logger.info(f"Свободные сеансы на {selected_date}: {len(sessions)} шт.")

    if not sessions:
        await callback.answer("На эту дату свободных сеансов нет", show_alert=True)
        return

    await state.update_data(selected_date=selected_date.isoformat())
    await callback.message.edit_text(
        f"{format_day_summary(day)}\n🕐 Выберите сеанс:",
        reply_markup=get_sessions_keyboard(sessions)
    )
    await state.set_state(BookingStates.choosing_session)
    await callback.answer()


@router.callback_query(F.data.startswith("session:"), BookingStates.choosing_session)
async def process_session(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора сеанса"""
    _, tank_id, session_number = callback.data.split(":")
    tank_id, session_number = int(tank_id), int(session_number)

    data = await state.get_data()
    selected_date = parse_date(data['selected_date'])

    try:
        inputs, day = await load_day(selected_date)
    except (sqlite3.Error, LookupError) as e:
        logger.error(f"Не удалось загрузить день {selected_date}: {e}", exc_info=True)
        await callback.answer(LOAD_ERROR_TEXT, show_alert=True)
        return

    timetable = timetable_for_availability(day, inputs.operating, inputs.tanks, settings.FIT_EACH_TANK)
    session = find_session(timetable, tank_id, session_number)
    taken = BookingRepository.get_taken_sessions(selected_date, exclude_user=callback.from_user.id)

    if session is None or day.available_sessions <= 0 or (tank_id, session.start_time) in taken:
        await callback.answer(
            "⚠️ К сожалению, этот сеанс уже недоступен. Выберите другой.",
            show_alert=True
        )
        return

    # Создание временного hold
    now = datetime.now()
    hold = Hold(
        id=None,
        user_id=callback.from_user.id,
        tank_id=tank_id,
        date=selected_date,
        session_number=session_number,
        start_time=session.start_time,
        created_at=now,
        expires_at=now + timedelta(minutes=settings.HOLD_TIMEOUT_MINUTES)
    )

    # Удаляем старые holds пользователя и создаём новый
    HoldRepository.delete_user_holds(callback.from_user.id)
    HoldRepository.create_hold(hold)

    await state.update_data(
        tank_id=tank_id,
        tank_name=session.tank_name,
        session_number=session_number,
        start_time=session.start_time,
        end_time=session.end_time,
        starts_at=session_start_datetime(selected_date, session).isoformat(),
    )

    await callback.message.edit_text(
        f"📱 Пожалуйста, отправьте ваш контактный телефон.\n\n"
        f"⏰ У вас есть {settings.HOLD_TIMEOUT_MINUTES} минут на завершение записи."
    )

    await callback.message.answer(
        "Нажмите кнопку ниже или введите номер вручную:",
        reply_markup=get_phone_keyboard()
    )

    await state.set_state(BookingStates.entering_phone)
    await callback.answer()


@router.message(BookingStates.entering_phone, F.contact)
async def process_contact(message: Message, state: FSMContext):
    """Обработка контакта"""
    await process_phone_number(message, state, message.contact.phone_number)


@router.message(BookingStates.entering_phone, F.text)
async def process_phone_text(message: Message, state: FSMContext):
    """Обработка текстового ввода телефона"""
    phone = normalize_phone(message.text)
    if phone is None:
        await message.answer("⚠️ Введите корректный номер телефона")
        return

    await process_phone_number(message, state, phone)


async def process_phone_number(message: Message, state: FSMContext, phone: str):
    """Общая обработка номера телефона"""
    await state.update_data(phone=phone)
    data = await state.get_data()
    selected_date = parse_date(data['selected_date'])

    # Проверка, что hold ещё не истёк и сеанс никто не занял
    taken = BookingRepository.get_taken_sessions(selected_date, exclude_user=message.from_user.id)
    if (data['tank_id'], data['start_time']) in taken:
        await message.answer(
            "⚠️ К сожалению, время истекло и сеанс занял другой клиент.\n"
            "Начните запись заново.",
            reply_markup=get_main_menu_keyboard(settings.is_admin(message.from_user.id))
        )
        await state.clear()
        return

    await message.answer(
        f"✅ Подтверждение записи:\n\n"
        f"📅 Дата: {format_date(selected_date)}\n"
        f"🕐 Время: {data['start_time']} - {data['end_time']}\n"
        f"🛁 Камера: {data['tank_name']}\n"
        f"📱 Телефон: {phone}\n\n"
        f"Подтвердите запись:",
        reply_markup=get_confirmation_keyboard()
    )
    await state.set_state(BookingStates.confirming)


@router.callback_query(F.data == "confirm_booking", BookingStates.confirming)
async def confirm_booking(callback: CallbackQuery, state: FSMContext):
    """Подтверждение и создание записи"""
    data = await state.get_data()
    selected_date = parse_date(data['selected_date'])

    try:
        _, day = await load_day(selected_date)
    except (sqlite3.Error, LookupError) as e:
        logger.error(f"Не удалось загрузить день {selected_date}: {e}", exc_info=True)
        await callback.answer(LOAD_ERROR_TEXT, show_alert=True)
        return

    # Финальная проверка: день открыт и лимит сеансов не исчерпан
    taken = BookingRepository.get_taken_sessions(selected_date, exclude_user=callback.from_user.id)
    if (day.status != DayStatus.BOOKABLE
            or (data['tank_id'], data['start_time']) in taken
            or datetime.fromisoformat(data['starts_at']) <= datetime.now()):
        await callback.message.edit_text(
            "⚠️ К сожалению, этот сеанс уже недоступен. Попробуйте выбрать другое время."
        )
        await callback.answer()
        await state.clear()
        HoldRepository.delete_user_holds(callback.from_user.id)
        return

    booking = Booking(
        id=None,
        user_id=callback.from_user.id,
        username=callback.from_user.username,
        tank_id=data['tank_id'],
        date=selected_date,
        session_number=data['session_number'],
        start_time=data['start_time'],
        phone=data['phone'],
        created_at=datetime.now()
    )

    try:
        booking_id = BookingRepository.create_booking_within_limit(booking, day.total_sessions)
    except sqlite3.IntegrityError:
        logger.warning(
            f"Сеанс {selected_date} {data['start_time']} камера #{data['tank_id']} "
            f"занят одновременно другим клиентом"
        )
        await callback.message.edit_text("⚠️ К сожалению, сеанс только что заняли. Выберите другой.")
        await callback.answer()
        await state.clear()
        return
    finally:
        HoldRepository.delete_user_holds(callback.from_user.id)

    if booking_id is None:
        await callback.message.edit_text("⚠️ К сожалению, на эту дату места только что закончились.")
        await callback.answer()
        await state.clear()
        return

    await callback.message.edit_text(
        f"✅ Вы записаны!\n\n"
        f"📋 Номер записи: #{booking_id}\n"
        f"📅 {format_date(selected_date)}, {data['start_time']} - {data['end_time']}\n"
        f"🛁 Камера: {data['tank_name']}\n\n"
        f"Ждём вас!"
    )

    await callback.message.answer(
        "Выберите действие:",
        reply_markup=get_main_menu_keyboard(settings.is_admin(callback.from_user.id))
    )

    await state.clear()
    await callback.answer()


@router.message(F.text == MY_BOOKINGS_BUTTON)
async def my_bookings(message: Message):
    """Просмотр записей пользователя"""
    bookings = BookingRepository.get_user_bookings(message.from_user.id, date.today())

    if not bookings:
        await message.answer(
            "У вас пока нет активных записей.",
            reply_markup=get_main_menu_keyboard(settings.is_admin(message.from_user.id))
        )
        return

    await message.answer(
        "📋 Ваши записи:",
        reply_markup=get_bookings_keyboard(bookings)
    )


@router.callback_query(F.data.startswith("show_booking:"))
async def show_booking_details(callback: CallbackQuery):
    """Показать детали записи"""
    booking_id = int(callback.data.split(":")[1])
    booking = BookingRepository.get_booking_by_id(booking_id)

    if not booking or booking.user_id != callback.from_user.id:
        await callback.answer("Запись не найдена", show_alert=True)
        return

    tank = TankRepository.get_tank_by_id(booking.tank_id)
    tank_name = tank.name if tank else f"Камера #{booking.tank_id}"

    text = (
        f"📋 Запись #{booking.id}\n\n"
        f"📅 {format_date(booking.date)}, {booking.start_time}\n"
        f"🔢 Сеанс №{booking.session_number}\n"
        f"🛁 Камера: {tank_name}\n"
        f"📱 Телефон: {booking.phone}\n"
        f"🕓 Оформлена: {format_datetime(booking.created_at)}"
    )

    await callback.message.edit_text(
        text,
        reply_markup=get_booking_actions_keyboard(booking.id)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("cancel_booking:"))
async def cancel_booking(callback: CallbackQuery):
    """Отмена записи клиентом"""
    booking_id = int(callback.data.split(":")[1])
    booking = BookingRepository.get_booking_by_id(booking_id)

    if not booking or booking.user_id != callback.from_user.id:
        await callback.answer("Запись не найдена", show_alert=True)
        return

    if BookingRepository.cancel_booking(booking_id):
        await callback.message.edit_text("✅ Запись отменена")
        await callback.answer()
    else:
        await callback.answer("Не удалось отменить запись", show_alert=True)


# Навигация назад
@router.callback_query(F.data == "back_to_calendar")
async def back_to_calendar(callback: CallbackQuery, state: FSMContext):
    """Возврат к календарю"""
    HoldRepository.delete_user_holds(callback.from_user.id)
    data = await state.get_data()
    today = date.today()
    year, month = data.get('year', today.year), data.get('month', today.month)

    if await render_calendar(callback.message, year, month, edit=True):
        await state.set_state(BookingStates.choosing_date)
    await callback.answer()


@router.callback_query(F.data == "my_bookings")
async def callback_my_bookings(callback: CallbackQuery):
    """Возврат к списку записей"""
    bookings = BookingRepository.get_user_bookings(callback.from_user.id, date.today())

    if not bookings:
        await callback.message.edit_text("У вас пока нет активных записей.")
        await callback.answer()
        return

    await callback.message.edit_text(
        "📋 Ваши записи:",
        reply_markup=get_bookings_keyboard(bookings)
    )
    await callback.answer()


@router.callback_query(F.data == "main_menu")
async def callback_main_menu(callback: CallbackQuery, state: FSMContext):
    """Возврат в главное меню"""
    await state.clear()
    HoldRepository.delete_user_holds(callback.from_user.id)

    await callback.message.answer(
        "🏠 Главное меню",
        reply_markup=get_main_menu_keyboard(settings.is_admin(callback.from_user.id))
    )
    await callback.answer()


@router.callback_query(F.data == "cancel")
async def cancel_booking_process(callback: CallbackQuery, state: FSMContext):
    """Отмена текущего действия"""
    await state.clear()
    HoldRepository.delete_user_holds(callback.from_user.id)

    await callback.message.edit_text("❌ Отменено")
    await callback.message.answer(
        "Выберите действие:",
        reply_markup=get_main_menu_keyboard(settings.is_admin(callback.from_user.id))
    )
    await callback.answer()


@router.callback_query(F.data == IGNORE)
async def ignore_callback(callback: CallbackQuery):
    """Пустые клетки календаря"""
    await callback.answer()
