"""
Клавиатуры для Telegram бота
"""
from datetime import datetime
from typing import List, Optional

from aiogram.types import InlineKeyboardMarkup, ReplyKeyboardMarkup, KeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder

from config import settings
from database.catalog import ADDITIONAL_ITEMS, COURTS, TIME_INTERVAL_OPTIONS
from database.models import Court, Session
from utils.time_utils import format_date

# Цель кнопок тарифа: ID предстоящей брони или активная сессия
ACTIVE_TARGET = '-'

COURTS_BUTTON = "🎾 Корты"
REPORT_BUTTON = "📊 Отчёт за сегодня"
RESET_HISTORY_BUTTON = "🗑 Очистить историю"
MAIN_MENU_BUTTONS = (COURTS_BUTTON, REPORT_BUTTON, RESET_HISTORY_BUTTON)


def get_main_menu_keyboard() -> ReplyKeyboardMarkup:
    """Главное меню"""
    buttons = [[KeyboardButton(text=text)] for text in MAIN_MENU_BUTTONS]
    return ReplyKeyboardMarkup(keyboard=buttons, resize_keyboard=True)


def get_courts_keyboard(active_court_ids: List[str]) -> InlineKeyboardMarkup:
    """Список кортов с отметкой занятости"""
    builder = InlineKeyboardBuilder()

    for court in COURTS:
        mark = "🔴" if court.id in active_court_ids else "🟢"
        builder.button(text=f"{mark} {court.name}", callback_data=f"court:{court.id}")

    builder.adjust(2)
    return builder.as_markup()


def get_court_keyboard(court: Court, active: Optional[Session]) -> InlineKeyboardMarkup:
    """Действия с кортом"""
    builder = InlineKeyboardBuilder()

    if active:
        builder.button(text="➕ Позиции", callback_data=f"items:{court.id}:{ACTIVE_TARGET}")
        builder.button(text="⚙️ Тариф", callback_data=f"opts:{court.id}:{ACTIVE_TARGET}")
        builder.button(text="✅ Завершить", callback_data=f"end:{court.id}")
    else:
        builder.button(text="▶️ Начать без брони", callback_data=f"walkin:{court.id}")

    builder.button(text="📅 Забронировать", callback_data=f"book:{court.id}")
    builder.button(text="📋 Брони", callback_data=f"upcoming:{court.id}")
    builder.button(text="🔄 Обновить", callback_data=f"court:{court.id}")
    builder.button(text="◀️ Назад", callback_data="courts")
    builder.adjust(2)

    return builder.as_markup()


def get_upcoming_keyboard(court_id: str, sessions: List[Session]) -> InlineKeyboardMarkup:
    """Список предстоящих броней корта"""
    builder = InlineKeyboardBuilder()

    for session in sessions:
        when = session.scheduled_time
        if session.scheduled_date:
            when = f"{session.scheduled_date.strftime('%d.%m')} {when}"
        builder.button(
            text=f"🗓 {when} - {session.player_name}",
            callback_data=f"up:{court_id}:{session.id}"
        )

    builder.button(text="◀️ Назад", callback_data=f"court:{court_id}")
    builder.adjust(1)

    return builder.as_markup()


def get_upcoming_actions_keyboard(court_id: str, session_id: str) -> InlineKeyboardMarkup:
    """Действия с предстоящей бронью"""
    builder = InlineKeyboardBuilder()

    builder.button(text="▶️ Начать", callback_data=f"ustart:{court_id}:{session_id}")
    builder.button(text="⚙️ Тариф", callback_data=f"opts:{court_id}:{session_id}")
    builder.button(text="➕ Позиции", callback_data=f"items:{court_id}:{session_id}")
    builder.button(text="🗑 Отменить бронь", callback_data=f"ucancel:{court_id}:{session_id}")
    builder.button(text="◀️ Назад", callback_data=f"upcoming:{court_id}")
    builder.adjust(2, 2, 1)

    return builder.as_markup()


def get_options_keyboard(court_id: str, target: str, session: Session) -> InlineKeyboardMarkup:
    """Тарифные опции: интервал, студент, абонемент, карты, длительность"""
    builder = InlineKeyboardBuilder()
    prefix = f"opt:{court_id}:{target}"

    rows = []
    # Интервалы и студенческий тариф есть только у сквоша
    if session.type == 'squash':
        for option in TIME_INTERVAL_OPTIONS:
            mark = "✅ " if session.selected_time_interval == option.value else ""
            builder.button(text=f"{mark}{option.label}", callback_data=f"{prefix}:iv:{option.value}")
        rows.append(len(TIME_INTERVAL_OPTIONS))

    flags = 1
    if session.type == 'squash' and session.selected_time_interval == 'day':
        mark = "✅" if session.is_student else "⬜️"
        builder.button(text=f"{mark} Студент", callback_data=f"{prefix}:st:toggle")
        flags = 2

    mark = "✅" if session.has_subscription else "⬜️"
    builder.button(text=f"{mark} Абонемент", callback_data=f"{prefix}:sub:toggle")

    builder.button(text="➖ Карта", callback_data=f"{prefix}:dc:-1")
    builder.button(text=f"🎫 {session.discount_cards}", callback_data=f"{prefix}:noop:0")
    builder.button(text="➕ Карта", callback_data=f"{prefix}:dc:1")

    builder.button(text="➖ Час", callback_data=f"{prefix}:dur:-1")
    builder.button(text=f"⏱ {session.scheduled_duration} ч", callback_data=f"{prefix}:noop:0")
    builder.button(text="➕ Час", callback_data=f"{prefix}:dur:1")

    builder.button(text="◀️ Назад", callback_data=_back_callback(court_id, target))

    builder.adjust(*rows, flags, 3, 3, 1)

    return builder.as_markup()


def get_items_keyboard(court_id: str, target: str, session: Session) -> InlineKeyboardMarkup:
    """Дополнительные позиции: количество каждой позиции каталога"""
    builder = InlineKeyboardBuilder()
    quantities = session.item_quantities

    for item in ADDITIONAL_ITEMS:
        prefix = f"itm:{court_id}:{target}:{item.id}"
        builder.button(text="➖", callback_data=f"{prefix}:-1")
        builder.button(
            text=f"{item.name} ({item.price:g}) × {quantities.get(item.id, 0)}",
            callback_data=f"{prefix}:0"
        )
        builder.button(text="➕", callback_data=f"{prefix}:1")

    builder.button(text="◀️ Назад", callback_data=_back_callback(court_id, target))
    builder.adjust(*([3] * len(ADDITIONAL_ITEMS)), 1)

    return builder.as_markup()


def get_end_session_keyboard(court_id: str, cost: float) -> InlineKeyboardMarkup:
    """Завершение сессии: способ оплаты или отмена без оплаты"""
    builder = InlineKeyboardBuilder()

    if cost > 0:
        builder.button(text="💵 Наличные", callback_data=f"pay:{court_id}:cash")
        builder.button(text="💳 Карта", callback_data=f"pay:{court_id}:card")
    else:
        builder.button(text="✅ Завершить бесплатно", callback_data=f"pay:{court_id}:free")

    builder.button(text="🚫 Отменить без оплаты", callback_data=f"pay:{court_id}:cancel")
    builder.button(text="◀️ Назад", callback_data=f"court:{court_id}")
    builder.adjust(2 if cost > 0 else 1, 1, 1)

    return builder.as_markup()


def get_dates_keyboard(dates: List[datetime]) -> InlineKeyboardMarkup:
    """Клавиатура выбора даты"""
    builder = InlineKeyboardBuilder()

    for date in dates:
        builder.button(
            text=format_date(date),
            callback_data=f"date:{date.strftime('%Y-%m-%d')}"
        )

    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_times_keyboard(times: List[str]) -> InlineKeyboardMarkup:
    """Клавиатура выбора времени"""
    builder = InlineKeyboardBuilder()

    for time in times:
        builder.button(text=time, callback_data=f"time:{time}")

    builder.button(text="◀️ Назад", callback_data="back_to_date")
    builder.button(text="❌ Отмена", callback_data="cancel")

    rows = [4] * (len(times) // 4)
    if len(times) % 4:
        rows.append(len(times) % 4)
    builder.adjust(*rows, 2)

    return builder.as_markup()


def get_duration_keyboard(back_callback: Optional[str] = "back_to_time") -> InlineKeyboardMarkup:
    """Клавиатура выбора длительности"""
    builder = InlineKeyboardBuilder()

    for hours in range(1, settings.MAX_BOOKING_HOURS + 1):
        text = f"{hours} час" if hours == 1 else f"{hours} часа"
        builder.button(text=text, callback_data=f"duration:{hours}")

    if back_callback:
        builder.button(text="◀️ Назад", callback_data=back_callback)
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(2, 2, 2)

    return builder.as_markup()


def get_confirmation_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура подтверждения бронирования"""
    builder = InlineKeyboardBuilder()

    builder.button(text="✅ Подтвердить", callback_data="confirm_booking")
    builder.button(text="◀️ Изменить", callback_data="back_to_duration")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_reset_history_keyboard() -> InlineKeyboardMarkup:
    """Выбор периода очистки истории"""
    builder = InlineKeyboardBuilder()

    builder.button(text="До вчерашнего дня", callback_data="reset:yesterday")
    builder.button(text="Старше недели", callback_data="reset:week")
    builder.button(text="Старше месяца", callback_data="reset:month")
    builder.button(text="⚠️ Вся история", callback_data="reset:all")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_reset_confirm_keyboard(timeframe: str) -> InlineKeyboardMarkup:
    """Подтверждение очистки истории"""
    builder = InlineKeyboardBuilder()

    builder.button(text="🗑 Удалить", callback_data=f"reset_confirm:{timeframe}")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(2)

    return builder.as_markup()


def get_cancel_keyboard() -> InlineKeyboardMarkup:
    """Простая клавиатура отмены"""
    builder = InlineKeyboardBuilder()
    builder.button(text="❌ Отмена", callback_data="cancel")
    return builder.as_markup()


def _back_callback(court_id: str, target: str) -> str:
    if target == ACTIVE_TARGET:
        return f"court:{court_id}"
    return f"up:{court_id}:{target}"
