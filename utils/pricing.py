"""
Правила тарификации сессий

Стоимость корта считается по забронированным часам (scheduled_duration),
а не по фактически прошедшему времени
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from config import settings
from database.catalog import (
    DAY_START_HOUR, DISCOUNT_CARD_AMOUNT, EVENING_END_HOUR, EVENING_START_HOUR,
    STUDENT_PRICE, get_interval_option, get_item,
)
from database.models import Session, SessionItem
from utils.time_utils import is_weekend

logger = logging.getLogger(__name__)


def derive_time_interval(now: Optional[datetime] = None) -> Optional[str]:
    """
    Тарифный интервал для момента времени
    Выходные целиком - weekend, по будням 7-17 - day, 17-23 - evening,
    вне этих часов интервала нет
    """
    now = now or datetime.now()

    if is_weekend(now):
        return 'weekend'
    if DAY_START_HOUR <= now.hour < EVENING_START_HOUR:
        return 'day'
    if EVENING_START_HOUR <= now.hour < EVENING_END_HOUR:
        return 'evening'
    return None


def resolve_rate(session: Session, now: Optional[datetime] = None) -> float:
    """Почасовая ставка корта для сессии"""
    if session.type == 'table-tennis':
        return session.hourly_rate

    # Абонемент полностью покрывает аренду корта
    if session.has_subscription:
        return 0

    if session.is_student and session.selected_time_interval == 'day':
        return STUDENT_PRICE

    interval = session.selected_time_interval
    if interval is None:
        interval = derive_time_interval(now)
        if interval is None:
            return session.hourly_rate

    option = get_interval_option(interval)
    if option is None:
        logger.warning(
            f"Неизвестный тарифный интервал {interval!r} для сессии {session.id}, "
            f"используется базовая ставка {session.hourly_rate}"
        )
        return session.hourly_rate
    return option.price


def catalog_price(item_id: str) -> float:
    """Цена позиции каталога; неизвестная позиция стоит 0"""
    item = get_item(item_id)
    if item is None:
        logger.warning(f"Позиция {item_id!r} отсутствует в каталоге, цена 0")
        return 0
    return item.price


def items_cost(items: Iterable[SessionItem]) -> float:
    """Стоимость дополнительных позиций"""
    return sum(catalog_price(item.item_id) * item.quantity for item in items)


def court_cost(session: Session, now: Optional[datetime] = None) -> float:
    """Стоимость аренды корта за забронированные часы"""
    if session.has_subscription:
        return 0
    return resolve_rate(session, now) * session.scheduled_duration


def discount_amount(session: Session) -> float:
    """Скидка по дисконтным картам"""
    return session.discount_cards * DISCOUNT_CARD_AMOUNT


def compute_cost(session: Session, now: Optional[datetime] = None) -> float:
    """
    Итоговая стоимость сессии

    cost = max(0, корт + позиции - скидка по картам)
    Прошедшее время (actual_duration) в расчёте не участвует
    """
    total = court_cost(session, now) + items_cost(session.items) - discount_amount(session)
    return max(0, total)


def rate_category(session: Session) -> str:
    """Категория тарифа для отчёта"""
    if session.type == 'table-tennis':
        return 'fixed'
    if session.has_subscription:
        return 'subscription'
    if session.is_student:
        return 'student'
    return session.selected_time_interval or 'day'


def rate_label(session: Session, now: Optional[datetime] = None) -> str:
    """Описание тарифа для отображения"""
    currency = settings.CURRENCY
    category = rate_category(session)

    if category == 'fixed':
        return f"Фиксированный тариф: {session.hourly_rate} {currency}/ч"
    if category == 'subscription':
        return "Абонемент: аренда корта оплачена"
    if category == 'student':
        return f"Студенческий тариф: {STUDENT_PRICE} {currency}/ч"

    option = get_interval_option(session.selected_time_interval or derive_time_interval(now))
    if option is None:
        return f"Базовый тариф: {session.hourly_rate} {currency}/ч"
    return f"{option.label}: {option.price} {currency}/ч"
