"""
Обработчики управления кортами: карточка корта, брони, тариф, позиции, завершение сессии
"""
import logging

from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery, InlineKeyboardMarkup
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import settings
from database.catalog import COURTS
from database.exceptions import SessionError
from database.models import Session
from database.repository import SessionRepository
from database.session_store import CourtSessionStore
from handlers.booking_handlers import notify_admins
from keyboards.keyboards import (
    ACTIVE_TARGET, COURTS_BUTTON, get_courts_keyboard, get_court_keyboard, get_upcoming_keyboard,
    get_upcoming_actions_keyboard, get_options_keyboard, get_items_keyboard,
    get_end_session_keyboard,
)
from utils.formatters import format_court, format_session
from utils.scheduler import start_session_timer, stop_session_timer

logger = logging.getLogger(__name__)
router = Router()


def active_court_ids(repository: SessionRepository) -> list:
    return [court.id for court in COURTS if repository.court_store(court).active is not None]


def target_session(store: CourtSessionStore, target: str):
    """Сессия, к которой относятся кнопки: активная или предстоящая бронь"""
    if target == ACTIVE_TARGET:
        return store.active
    session = store.get_by_id(target)
    if session is None or session.status != 'upcoming':
        return None
    return session


def apply_to_target(store: CourtSessionStore, target: str, patch: dict):
    if target == ACTIVE_TARGET:
        return store.update_active(patch)
    return store.update_upcoming(target, patch)


def option_patch(session: Session, kind: str, value: str) -> dict:
    """Изменение тарифных опций по нажатой кнопке"""
    if kind == 'iv':
        return {'selected_time_interval': value}
    if kind == 'st':
        return {'is_student': not session.is_student}
    if kind == 'sub':
        return {'has_subscription': not session.has_subscription}
    if kind == 'dc':
        return {'discount_cards': max(0, session.discount_cards + int(value))}
    if kind == 'dur':
        return {'scheduled_duration': max(1, session.scheduled_duration + int(value))}
    return {}


async def edit_message(callback: CallbackQuery, text: str, reply_markup: InlineKeyboardMarkup):
    """Редактирование сообщения; повторное нажатие без изменений не считается ошибкой"""
    try:
        await callback.message.edit_text(text, reply_markup=reply_markup)
    except TelegramBadRequest as e:
        if 'message is not modified' not in str(e):
            raise


async def show_court(callback: CallbackQuery, store: CourtSessionStore):
    active = store.active
    await edit_message(
        callback,
        format_court(store.court, active, len(store.upcoming)),
        get_court_keyboard(store.court, active)
    )


@router.message(F.text == COURTS_BUTTON)
async def courts_menu(message: Message, state: FSMContext, repository: SessionRepository):
    """Список кортов; незавершённый диалог сбрасывается"""
    await state.clear()
    await message.answer(
        "🎾 Корты:",
        reply_markup=get_courts_keyboard(active_court_ids(repository))
    )


@router.callback_query(F.data == "courts")
async def courts_list(callback: CallbackQuery, repository: SessionRepository):
    await edit_message(callback, "🎾 Корты:", get_courts_keyboard(active_court_ids(repository)))
    await callback.answer()


@router.callback_query(F.data.startswith("court:"))
async def court_card(callback: CallbackQuery, repository: SessionRepository):
    """Карточка корта"""
    court_id = callback.data.split(":", 1)[1]
    try:
        store = repository.court_store(court_id)
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    await show_court(callback, store)
    await callback.answer()


@router.callback_query(F.data.startswith("upcoming:"))
async def upcoming_list(callback: CallbackQuery, repository: SessionRepository):
    """Предстоящие брони корта"""
    court_id = callback.data.split(":", 1)[1]
    store = repository.court_store(court_id)
    sessions = store.upcoming

    text = f"📋 Брони: {store.court.name}"
    if not sessions:
        text += "\n\nПредстоящих броней нет"

    await edit_message(callback, text, get_upcoming_keyboard(court_id, sessions))
    await callback.answer()


@router.callback_query(F.data.startswith("up:"))
async def upcoming_card(callback: CallbackQuery, repository: SessionRepository):
    """Карточка предстоящей брони"""
    _, court_id, session_id = callback.data.split(":", 2)
    store = repository.court_store(court_id)
    session = target_session(store, session_id)

    if session is None:
        await callback.answer("⚠️ Бронь не найдена", show_alert=True)
        return

    await edit_message(
        callback,
        f"📅 Бронь: {store.court.name}\n\n{format_session(session)}",
        get_upcoming_actions_keyboard(court_id, session_id)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("ustart:"))
async def start_upcoming(callback: CallbackQuery, repository: SessionRepository,
                         scheduler: AsyncIOScheduler):
    """Начало сессии по брони"""
    _, court_id, session_id = callback.data.split(":", 2)
    store = repository.court_store(court_id)

    try:
        session = store.start(session_id=session_id)
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    start_session_timer(scheduler, store)
    await show_court(callback, store)
    await callback.answer("Сессия начата")
    await notify_admins(callback, f"▶️ {store.court.name}: начата сессия {session.player_name}")


@router.callback_query(F.data.startswith("ucancel:"))
async def cancel_upcoming(callback: CallbackQuery, repository: SessionRepository):
    """Отмена брони"""
    _, court_id, session_id = callback.data.split(":", 2)
    store = repository.court_store(court_id)

    try:
        session = store.cancel_upcoming(session_id)
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    await edit_message(
        callback,
        f"🗑 Бронь {session.player_name} ({session.scheduled_time}) отменена",
        get_upcoming_keyboard(court_id, store.upcoming)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("opts:"))
async def options_menu(callback: CallbackQuery, repository: SessionRepository):
    """Тарифные опции сессии"""
    _, court_id, target = callback.data.split(":", 2)
    store = repository.court_store(court_id)
    session = target_session(store, target)

    if session is None:
        await callback.answer("⚠️ Сессия не найдена", show_alert=True)
        return

    await edit_message(callback, format_session(session), get_options_keyboard(court_id, target, session))
    await callback.answer()


@router.callback_query(F.data.startswith("opt:"))
async def change_option(callback: CallbackQuery, repository: SessionRepository):
    """Изменение тарифной опции"""
    _, court_id, target, kind, value = callback.data.split(":", 4)
    store = repository.court_store(court_id)
    session = target_session(store, target)

    if session is None:
        await callback.answer("⚠️ Сессия не найдена", show_alert=True)
        return

    patch = option_patch(session, kind, value)
    if not patch:
        await callback.answer()
        return

    try:
        session = apply_to_target(store, target, patch)
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    if session is None:
        await callback.answer("⚠️ Сессия уже завершена", show_alert=True)
        return

    await edit_message(callback, format_session(session), get_options_keyboard(court_id, target, session))
    await callback.answer(f"💰 {session.cost:.2f} {settings.CURRENCY}")


@router.callback_query(F.data.startswith("items:"))
async def items_menu(callback: CallbackQuery, repository: SessionRepository):
    """Дополнительные позиции сессии"""
    _, court_id, target = callback.data.split(":", 2)
    store = repository.court_store(court_id)
    session = target_session(store, target)

    if session is None:
        await callback.answer("⚠️ Сессия не найдена", show_alert=True)
        return

    await edit_message(callback, format_session(session), get_items_keyboard(court_id, target, session))
    await callback.answer()


@router.callback_query(F.data.startswith("itm:"))
async def change_item(callback: CallbackQuery, repository: SessionRepository):
    """Изменение количества позиции"""
    _, court_id, target, item_id, delta = callback.data.split(":", 4)
    delta = int(delta)
    if delta == 0:
        await callback.answer()
        return

    store = repository.court_store(court_id)
    session = target_session(store, target)
    if session is None:
        await callback.answer("⚠️ Сессия не найдена", show_alert=True)
        return

    quantities = session.item_quantities
    quantity = max(0, quantities.get(item_id, 0) + delta)

    try:
        if target == ACTIVE_TARGET:
            session = store.set_active_item(item_id, quantity)
        else:
            quantities[item_id] = quantity
            session = store.update_upcoming(target, {'items': [
                {'item_id': key, 'quantity': value} for key, value in quantities.items()
            ]})
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    if session is None:
        await callback.answer("⚠️ Сессия уже завершена", show_alert=True)
        return

    await edit_message(callback, format_session(session), get_items_keyboard(court_id, target, session))
    await callback.answer()


@router.callback_query(F.data.startswith("end:"))
async def end_session_menu(callback: CallbackQuery, repository: SessionRepository):
    """Итог активной сессии перед оплатой"""
    court_id = callback.data.split(":", 1)[1]
    store = repository.court_store(court_id)
    session = store.active

    if session is None:
        await callback.answer("⚠️ На корте нет активной сессии", show_alert=True)
        return

    await edit_message(
        callback,
        f"✅ Завершение сессии: {store.court.name}\n\n"
        f"{format_session(session)}\n\n"
        f"Выберите способ оплаты:",
        get_end_session_keyboard(court_id, session.cost)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("pay:"))
async def end_session(callback: CallbackQuery, repository: SessionRepository,
                      scheduler: AsyncIOScheduler):
    """Завершение сессии с оплатой или без"""
    _, court_id, method = callback.data.split(":", 2)
    store = repository.court_store(court_id)

    try:
        if method == 'cancel':
            session = store.end(explicit_cancel=True)
        elif method == 'free':
            session = store.end()
        else:
            session = store.end(payment_method=method)
    except SessionError as e:
        logger.error(f"Не удалось завершить сессию на корте {court_id}: {e}")
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    stop_session_timer(scheduler, court_id)

    if session is None:
        await callback.answer("⚠️ Сессия уже завершена", show_alert=True)
        await show_court(callback, store)
        return

    await show_court(callback, store)

    if session.payment_status == 'canceled':
        summary = f"🚫 {store.court.name}: сессия {session.player_name} отменена без оплаты"
    else:
        payment = {'cash': 'наличные', 'card': 'карта'}.get(session.payment_method, 'без оплаты')
        summary = (
            f"✅ {store.court.name}: сессия {session.player_name} завершена, "
            f"{session.cost:.2f} {settings.CURRENCY} ({payment})"
        )
    await callback.answer("Сессия завершена")
    await notify_admins(callback, summary)
