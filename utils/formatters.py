"""
Текстовое представление сессий для сообщений бота
"""
from typing import Optional

from config import settings
from database.catalog import get_item
from database.models import Court, Session
from utils.pricing import discount_amount, rate_label
from utils.time_utils import format_datetime, format_elapsed


def format_items(session: Session) -> str:
    if not session.items:
        return "нет"
    parts = []
    for item in session.items:
        item_def = get_item(item.item_id)
        name = item_def.name if item_def else item.item_id
        parts.append(f"{name} × {item.quantity}")
    return ", ".join(parts)


def format_session(session: Session) -> str:
    """Карточка сессии"""
    currency = settings.CURRENCY
    when = session.scheduled_time
    if session.scheduled_date:
        when = f"{session.scheduled_date.strftime('%d.%m.%Y')} {when}"

    lines = [
        f"👤 {session.player_name}",
        f"🕐 {when}, {session.scheduled_duration} ч",
        f"🏷 {rate_label(session, session.start_time)}",
        f"🛒 Позиции: {format_items(session)}",
    ]
    if session.discount_cards:
        lines.append(
            f"🎫 Карты: {session.discount_cards} (-{discount_amount(session):.2f} {currency})"
        )
    if session.contact_info:
        lines.append(f"📱 {session.contact_info}")
    if session.notes:
        lines.append(f"📝 {session.notes}")
    if session.status == 'active' and session.start_time:
        lines.append(f"▶️ Начало: {format_datetime(session.start_time)}")
        lines.append(f"⏱ Прошло: {format_elapsed(session.actual_duration)}")

    lines.append(f"💰 Стоимость: {session.cost:.2f} {currency}")
    return "\n".join(lines)


def format_court(court: Court, active: Optional[Session], upcoming_count: int) -> str:
    """Состояние корта"""
    header = f"🎾 {court.name}"
    if active is None:
        return f"{header}\n🟢 Свободен\n📋 Броней: {upcoming_count}"
    return f"{header}\n🔴 Идёт сессия\n\n{format_session(active)}\n\n📋 Броней: {upcoming_count}"
