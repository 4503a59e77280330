"""
Обработчики команд администраторов: меню, дневной отчёт, очистка истории
"""
import logging
from datetime import date, datetime
from typing import Optional

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery, BufferedInputFile

from config import settings
from database.exceptions import SessionError
from database.repository import SessionRepository
from keyboards.keyboards import (
    REPORT_BUTTON, RESET_HISTORY_BUTTON, get_main_menu_keyboard, get_reset_history_keyboard,
    get_reset_confirm_keyboard,
)
from utils.report import build_day_report, export_day_report_csv, format_day_report, report_filename
from utils.time_utils import RESET_TIMEFRAMES

logger = logging.getLogger(__name__)
router = Router()

RESET_LABELS = {
    'yesterday': 'до вчерашнего дня',
    'week': 'старше недели',
    'month': 'старше месяца',
    'all': 'вся история',
}


def parse_report_date(text: str) -> Optional[date]:
    """Дата отчёта из аргумента /report (ДД.ММ.ГГГГ или ГГГГ-ММ-ДД); без аргумента - сегодня"""
    parts = (text or '').split(maxsplit=1)
    if len(parts) < 2:
        return date.today()

    for fmt in ("%d.%m.%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(parts[1].strip(), fmt).date()
        except ValueError:
            continue
    return None


@router.message(Command("start"))
async def cmd_start(message: Message, state: FSMContext):
    """Обработка команды /start"""
    await state.clear()

    await message.answer(
        f"👋 Squash4All: управление кортами\n\n"
        f"🎾 Корты - активные сессии и брони\n"
        f"📊 Отчёт - выручка за день (/report ДД.ММ.ГГГГ для другой даты)\n"
        f"🗑 Очистить историю - удаление старых завершённых сессий",
        reply_markup=get_main_menu_keyboard()
    )


@router.message(F.text == REPORT_BUTTON)
@router.message(Command("report"))
async def cmd_report(message: Message, state: FSMContext, repository: SessionRepository):
    """Дневной отчёт: текст и CSV-файл"""
    await state.clear()
    target_date = parse_report_date(message.text if message.text.startswith('/') else '')
    if target_date is None:
        await message.answer(
            "⚠️ Использование: /report [дата]\n\n"
            "Пример: /report 15.03.2025"
        )
        return

    report = build_day_report(repository.all_finished(), target_date)
    logger.info(
        f"Отчёт за {target_date}: {report.total_sessions} сессий, "
        f"выручка {report.grand_total:.2f}"
    )

    await message.answer(format_day_report(report, settings.CURRENCY))

    if report.total_sessions:
        document = BufferedInputFile(
            export_day_report_csv(report).encode('utf-8'),
            filename=report_filename(target_date)
        )
        await message.answer_document(document)


@router.message(F.text == RESET_HISTORY_BUTTON)
async def reset_history_menu(message: Message, state: FSMContext):
    """Выбор периода очистки истории"""
    await state.clear()
    await message.answer(
        "🗑 Какие завершённые сессии удалить?",
        reply_markup=get_reset_history_keyboard()
    )


@router.callback_query(F.data.startswith("reset:"))
async def reset_history_confirm(callback: CallbackQuery):
    """Подтверждение очистки"""
    timeframe = callback.data.split(":", 1)[1]
    if timeframe not in RESET_TIMEFRAMES:
        await callback.answer("⚠️ Неизвестный период", show_alert=True)
        return

    await callback.message.edit_text(
        f"⚠️ Удалить завершённые сессии: {RESET_LABELS[timeframe]}?\n\n"
        f"Отчёты за эти дни станут пустыми.",
        reply_markup=get_reset_confirm_keyboard(timeframe)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("reset_confirm:"))
async def reset_history(callback: CallbackQuery, repository: SessionRepository):
    """Очистка истории завершённых сессий"""
    timeframe = callback.data.split(":", 1)[1]

    try:
        removed = repository.reset_history(timeframe)
    except SessionError as e:
        logger.error(f"Не удалось очистить историю ({timeframe}): {e}")
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    await callback.message.edit_text(f"✅ Удалено завершённых сессий: {removed}")
    await callback.answer()
    logger.info(f"Администратор {callback.from_user.id} очистил историю ({timeframe})")
