"""
Состояния для FSM (Finite State Machine)
"""
from aiogram.fsm.state import State, StatesGroup


class BookingStates(StatesGroup):
    """Состояния процесса бронирования"""
    entering_name = State()
    choosing_date = State()
    choosing_time = State()
    choosing_duration = State()
    confirming = State()


class WalkInStates(StatesGroup):
    """Состояния запуска сессии без брони"""
    entering_name = State()
    choosing_duration = State()
