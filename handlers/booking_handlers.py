"""
Обработчики бронирования корта и запуска сессии без брони
"""
import logging
from datetime import datetime, timedelta

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import settings
from database.exceptions import SessionError
from database.models import Session
from database.repository import SessionRepository
from states.booking_states import BookingStates, WalkInStates
from keyboards.keyboards import (
    get_dates_keyboard, get_times_keyboard, get_duration_keyboard,
    get_confirmation_keyboard, get_cancel_keyboard, get_court_keyboard, MAIN_MENU_BUTTONS,
)
from utils.formatters import format_court, format_session
from utils.pricing import compute_cost, derive_time_interval
from utils.scheduler import start_session_timer
from utils.time_utils import (
    SCHEDULED_HOUR_MAX, SCHEDULED_HOUR_MIN, get_available_dates, get_available_times,
    parse_scheduled_time,
)

logger = logging.getLogger(__name__)
router = Router()

# Кнопки главного меню не считаются вводом имени
player_name_text = F.text & ~F.text.in_(MAIN_MENU_BUTTONS)


def parse_player(text: str):
    """Разбор ввода "Имя / контакт"; '-' означает гостя"""
    name, _, contact = (text or '').partition('/')
    name = name.strip()
    if name == '-':
        name = ''
    return name, contact.strip()


def booking_from_state(data: dict) -> dict:
    """Поля новой брони из данных FSM"""
    scheduled_date = datetime.strptime(data['selected_date'], "%Y-%m-%d").date()
    hour, minute = parse_scheduled_time(data['selected_time'])
    slot = datetime.combine(scheduled_date, datetime.min.time()) + timedelta(hours=hour, minutes=minute)

    return {
        'player_name': data.get('player_name', ''),
        'contact_info': data.get('contact_info', ''),
        'scheduled_date': scheduled_date,
        'scheduled_time': data['selected_time'],
        'scheduled_duration': data['duration'],
        'selected_time_interval': derive_time_interval(slot),
    }


@router.callback_query(F.data.startswith("book:"))
async def start_booking(callback: CallbackQuery, state: FSMContext, repository: SessionRepository):
    """Начало процесса бронирования"""
    court_id = callback.data.split(":", 1)[1]
    try:
        store = repository.court_store(court_id)
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    await state.clear()
    await state.update_data(court_id=court_id)

    await callback.message.edit_text(
        f"📅 Бронирование: {store.court.name}\n\n"
        f"👤 Введите имя игрока (можно добавить контакт через «/»)\n"
        f"или «-» для гостя:",
        reply_markup=get_cancel_keyboard()
    )
    await state.set_state(BookingStates.entering_name)
    await callback.answer()


@router.message(BookingStates.entering_name, player_name_text)
async def process_name(message: Message, state: FSMContext):
    """Обработка имени игрока"""
    player_name, contact_info = parse_player(message.text)
    await state.update_data(player_name=player_name, contact_info=contact_info)

    await message.answer(
        "📅 Выберите дату:",
        reply_markup=get_dates_keyboard(get_available_dates())
    )
    await state.set_state(BookingStates.choosing_date)


@router.callback_query(F.data.startswith("date:"), BookingStates.choosing_date)
async def process_date(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора даты"""
    date_str = callback.data.split(":")[1]
    selected_date = datetime.strptime(date_str, "%Y-%m-%d")

    times = get_available_times(selected_date.date())
    logger.info(f"Доступные времена для {selected_date.date()}: {len(times)} шт.")

    if not times:
        await callback.answer("На эту дату нет доступного времени", show_alert=True)
        return

    await state.update_data(selected_date=date_str)
    await callback.message.edit_text(
        "🕐 Выберите время начала:",
        reply_markup=get_times_keyboard(times)
    )
    await state.set_state(BookingStates.choosing_time)
    await callback.answer()


@router.callback_query(F.data.startswith("time:"), BookingStates.choosing_time)
async def process_time(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора времени"""
    time_str = callback.data.split(":", 1)[1]
    await state.update_data(selected_time=time_str)

    await callback.message.edit_text(
        "⏱ Выберите длительность:",
        reply_markup=get_duration_keyboard()
    )
    await state.set_state(BookingStates.choosing_duration)
    await callback.answer()


@router.callback_query(F.data.startswith("duration:"), BookingStates.choosing_duration)
async def process_duration(callback: CallbackQuery, state: FSMContext, repository: SessionRepository):
    """Обработка выбора длительности и показ подтверждения"""
    duration = int(callback.data.split(":")[1])
    await state.update_data(duration=duration)
    data = await state.get_data()

    store = repository.court_store(data['court_id'])
    try:
        preview = Session(
            id=None,
            court_id=store.court.id,
            type=store.court.type,
            hourly_rate=store.court.hourly_rate,
        ).apply_patch(booking_from_state(data))
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return
    preview.cost = compute_cost(preview)

    await callback.message.edit_text(
        f"✅ Подтверждение бронирования: {store.court.name}\n\n"
        f"{format_session(preview)}\n\n"
        f"Подтвердите бронирование:",
        reply_markup=get_confirmation_keyboard()
    )
    await state.set_state(BookingStates.confirming)
    await callback.answer()


@router.callback_query(F.data == "confirm_booking", BookingStates.confirming)
async def confirm_booking(callback: CallbackQuery, state: FSMContext, repository: SessionRepository):
    """Подтверждение и создание бронирования"""
    data = await state.get_data()
    store = repository.court_store(data['court_id'])

    try:
        session = store.create_upcoming(booking_from_state(data))
    except SessionError as e:
        logger.error(f"Не удалось создать бронь на корте {store.court.id}: {e}")
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    await state.clear()
    await callback.message.edit_text(
        f"✅ Бронь создана: {store.court.name}\n\n{format_session(session)}",
        reply_markup=get_court_keyboard(store.court, store.active)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("walkin:"))
async def start_walk_in(callback: CallbackQuery, state: FSMContext, repository: SessionRepository):
    """Запуск сессии без брони: ввод имени"""
    court_id = callback.data.split(":", 1)[1]
    store = repository.court_store(court_id)

    if store.active is not None:
        await callback.answer("⚠️ На корте уже идёт сессия", show_alert=True)
        return

    await state.clear()
    await state.update_data(court_id=court_id)
    await callback.message.edit_text(
        f"▶️ Сессия без брони: {store.court.name}\n\n"
        f"👤 Введите имя игрока или «-» для гостя:",
        reply_markup=get_cancel_keyboard()
    )
    await state.set_state(WalkInStates.entering_name)
    await callback.answer()


@router.message(WalkInStates.entering_name, player_name_text)
async def process_walk_in_name(message: Message, state: FSMContext):
    """Имя игрока для сессии без брони"""
    player_name, contact_info = parse_player(message.text)
    await state.update_data(player_name=player_name, contact_info=contact_info)

    await message.answer(
        "⏱ Выберите длительность:",
        reply_markup=get_duration_keyboard(back_callback=None)
    )
    await state.set_state(WalkInStates.choosing_duration)


@router.callback_query(F.data.startswith("duration:"), WalkInStates.choosing_duration)
async def process_walk_in_duration(callback: CallbackQuery, state: FSMContext,
                                   repository: SessionRepository, scheduler: AsyncIOScheduler):
    """Запуск сессии без брони"""
    duration = int(callback.data.split(":")[1])
    data = await state.get_data()
    store = repository.court_store(data['court_id'])
    now = datetime.now()

    try:
        session = store.start(new_session={
            'player_name': data.get('player_name', ''),
            'contact_info': data.get('contact_info', ''),
            'scheduled_time': _current_scheduled_time(now),
            'scheduled_date': now.date(),
            'scheduled_duration': duration,
        }, now=now)
    except SessionError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    start_session_timer(scheduler, store)
    await state.clear()

    await callback.message.edit_text(
        format_court(store.court, session, len(store.upcoming)),
        reply_markup=get_court_keyboard(store.court, session)
    )
    await callback.answer("Сессия начата")
    await notify_admins(callback, f"▶️ {store.court.name}: начата сессия {session.player_name}")


# Навигация назад
@router.callback_query(F.data == "back_to_date", BookingStates.choosing_time)
async def back_to_date(callback: CallbackQuery, state: FSMContext):
    """Возврат к выбору даты"""
    await callback.message.edit_text(
        "📅 Выберите дату:",
        reply_markup=get_dates_keyboard(get_available_dates())
    )
    await state.set_state(BookingStates.choosing_date)
    await callback.answer()


@router.callback_query(F.data == "back_to_time", BookingStates.choosing_duration)
async def back_to_time(callback: CallbackQuery, state: FSMContext):
    """Возврат к выбору времени"""
    data = await state.get_data()
    selected_date = datetime.strptime(data['selected_date'], "%Y-%m-%d").date()

    await callback.message.edit_text(
        "🕐 Выберите время начала:",
        reply_markup=get_times_keyboard(get_available_times(selected_date))
    )
    await state.set_state(BookingStates.choosing_time)
    await callback.answer()


@router.callback_query(F.data == "back_to_duration", BookingStates.confirming)
async def back_to_duration(callback: CallbackQuery, state: FSMContext):
    """Возврат к выбору длительности"""
    await callback.message.edit_text(
        "⏱ Выберите длительность:",
        reply_markup=get_duration_keyboard()
    )
    await state.set_state(BookingStates.choosing_duration)
    await callback.answer()


@router.callback_query(F.data == "cancel")
async def cancel_process(callback: CallbackQuery, state: FSMContext):
    """Отмена текущего действия"""
    await state.clear()
    await callback.message.edit_text("❌ Действие отменено")
    await callback.answer()


async def notify_admins(callback: CallbackQuery, text: str):
    """Уведомление остальных администраторов"""
    for admin_id in settings.ADMIN_IDS:
        if admin_id == callback.from_user.id:
            continue
        try:
            await callback.bot.send_message(admin_id, text)
        except Exception as e:
            logger.error(f"Не удалось отправить уведомление админу {admin_id}: {e}")


def _current_scheduled_time(now: datetime) -> str:
    """Время начала для сессии без брони в пределах часов работы"""
    hour = min(max(now.hour, SCHEDULED_HOUR_MIN), SCHEDULED_HOUR_MAX)
    minute = now.minute if hour == now.hour else 0
    return f"{hour}:{minute:02d}"
