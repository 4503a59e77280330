"""
Планировщик периодических задач: посекундный таймер активных сессий
"""
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from database.catalog import COURTS
from database.exceptions import SessionError
from database.repository import SessionRepository
from database.session_store import CourtSessionStore

logger = logging.getLogger(__name__)


def tick_job_id(court_id: str) -> str:
    return f'session_tick:{court_id}'


async def session_tick_job(store: CourtSessionStore, scheduler: AsyncIOScheduler):
    """Задача таймера: прошедшее время активной сессии корта"""
    try:
        session = store.tick(settings.TICK_SECONDS)
    except SessionError as e:
        logger.error(f"Ошибка таймера корта {store.court.id}: {e}", exc_info=True)
        return

    # Сессия завершена в обход таймера - задача больше не нужна
    if session is None:
        stop_session_timer(scheduler, store.court.id)


def start_session_timer(scheduler: AsyncIOScheduler, store: CourtSessionStore):
    """Запуск таймера активной сессии корта"""
    scheduler.add_job(
        session_tick_job,
        trigger=IntervalTrigger(seconds=settings.TICK_SECONDS),
        id=tick_job_id(store.court.id),
        name=f'Таймер сессии {store.court.name}',
        kwargs={'store': store, 'scheduler': scheduler},
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )
    logger.info(f"Таймер сессии корта {store.court.id} запущен")


def stop_session_timer(scheduler: AsyncIOScheduler, court_id: str) -> bool:
    """Остановка таймера корта; False, если таймера не было"""
    job_id = tick_job_id(court_id)
    if scheduler.get_job(job_id) is None:
        return False

    scheduler.remove_job(job_id)
    logger.info(f"Таймер сессии корта {court_id} остановлен")
    return True


def resume_session_timers(scheduler: AsyncIOScheduler, repository: SessionRepository) -> int:
    """Возобновление таймеров для кортов с активной сессией после перезапуска"""
    resumed = 0
    for court in COURTS:
        store = repository.court_store(court)
        if store.active is not None:
            start_session_timer(scheduler, store)
            resumed += 1
    return resumed


async def start_scheduler(repository: SessionRepository) -> AsyncIOScheduler:
    """Запуск планировщика задач"""
    scheduler = AsyncIOScheduler()

    resumed = resume_session_timers(scheduler, repository)

    scheduler.start()
    logger.info(f"Планировщик задач запущен, возобновлено таймеров: {resumed}")

    return scheduler
