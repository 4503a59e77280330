"""
Утилиты для работы со временем и расписанием
"""
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from config import settings
from database.exceptions import InvalidSessionError


# Временные рамки очистки истории
RESET_TIMEFRAMES = ('yesterday', 'week', 'month', 'all')

# Допустимые часы в scheduled_time
SCHEDULED_HOUR_MIN = 7
SCHEDULED_HOUR_MAX = 23


def is_weekend(dt: datetime) -> bool:
    """Суббота или воскресенье"""
    return dt.weekday() in [5, 6]


def parse_scheduled_time(value: str) -> Tuple[int, int]:
    """
    Разбор времени брони в формате "H:MM"
    Возвращает (час, минуты), час в диапазоне [7, 23]
    """
    try:
        hour_str, minute_str = str(value).strip().split(':')
        hour, minute = int(hour_str), int(minute_str)
    except (TypeError, ValueError):
        raise InvalidSessionError(f"Некорректное время брони: {value!r}")

    if len(minute_str) != 2 or not 0 <= minute <= 59:
        raise InvalidSessionError(f"Некорректные минуты во времени брони: {value!r}")
    if not SCHEDULED_HOUR_MIN <= hour <= SCHEDULED_HOUR_MAX:
        raise InvalidSessionError(
            f"Время брони должно быть между {SCHEDULED_HOUR_MIN}:00 и {SCHEDULED_HOUR_MAX}:59"
        )
    return hour, minute


def format_scheduled_time(hour: int, minute: int = 0) -> str:
    """Время брони в формате "H:MM" """
    return f"{hour}:{minute:02d}"


def get_available_dates(now: Optional[datetime] = None) -> List[datetime]:
    """Получение списка доступных дат для бронирования"""
    now = now or datetime.now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return [today + timedelta(days=i) for i in range(settings.MAX_BOOKING_DAYS)]


def get_available_times(day: date, now: Optional[datetime] = None) -> List[str]:
    """
    Получение списка времён начала брони для даты
    Для сегодняшнего дня прошедшие часы не предлагаются
    """
    now = now or datetime.now()
    times = []

    for hour in range(settings.OPEN_HOUR, settings.CLOSE_HOUR):
        if day == now.date() and hour < now.hour:
            continue
        times.append(format_scheduled_time(hour))

    return times


def reset_cutoff(timeframe: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Граница очистки истории: записи, завершённые раньше неё, удаляются
    Для 'all' границы нет (None) - удаляется всё
    """
    now = now or datetime.now()

    if timeframe == 'yesterday':
        return now - timedelta(days=1)
    if timeframe == 'week':
        return now - timedelta(weeks=1)
    if timeframe == 'month':
        return now - relativedelta(months=1)
    if timeframe == 'all':
        return None
    raise InvalidSessionError(f"Неизвестный период очистки: {timeframe!r}")


def format_elapsed(seconds: int) -> str:
    """Прошедшее время сессии в формате ЧЧ:ММ:СС"""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_datetime(dt: datetime) -> str:
    """Форматирование datetime для отображения"""
    return dt.strftime("%d.%m.%Y %H:%M")


def format_date(dt: datetime, today: Optional[date] = None) -> str:
    """Форматирование даты"""
    weekdays = ['Пн', 'Вт', 'Ср', 'Чт', 'Пт', 'Сб', 'Вс']
    weekday = weekdays[dt.weekday()]

    today = today or datetime.now().date()
    if dt.date() == today:
        return f"Сегодня ({weekday})"
    elif dt.date() == today + timedelta(days=1):
        return f"Завтра ({weekday})"
    else:
        return f"{dt.strftime('%d.%m')} ({weekday})"
