"""
Состояния для FSM (Finite State Machine)
"""
from aiogram.fsm.state import State, StatesGroup


class BookingStates(StatesGroup):
    """Состояния процесса записи"""
    choosing_date = State()
    choosing_session = State()
    entering_phone = State()
    confirming = State()


class AdminStates(StatesGroup):
    """Состояния админки"""
    entering_hours = State()
