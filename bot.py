"""
Главный файл Telegram-бота управления кортами Squash4All
"""
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from config import settings
from database.database import SqliteStorage
from database.repository import SessionRepository
from handlers import admin_handlers, booking_handlers, session_handlers
from middlewares.admin_access import AdminAccessMiddleware
from utils.scheduler import start_scheduler

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Основная функция запуска бота"""
    logger.info("Запуск бота...")
    settings.validate()

    # Инициализация хранилища
    storage = SqliteStorage().init()
    repository = SessionRepository(storage)
    logger.info(f"Хранилище инициализировано: {settings.DB_PATH}")

    # Таймеры активных сессий, прерванных перезапуском
    scheduler = await start_scheduler(repository)

    # Создание бота и диспетчера
    bot = Bot(token=settings.BOT_TOKEN)
    dp = Dispatcher(storage=MemoryStorage(), repository=repository, scheduler=scheduler)

    # Доступ только для администраторов площадки
    dp.message.middleware(AdminAccessMiddleware())
    dp.callback_query.middleware(AdminAccessMiddleware())

    # Регистрация роутеров
    dp.include_router(admin_handlers.router)
    dp.include_router(booking_handlers.router)
    dp.include_router(session_handlers.router)

    try:
        logger.info("Бот успешно запущен")
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        scheduler.shutdown()
        await bot.session.close()
        logger.info("Бот остановлен")


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Бот остановлен пользователем")
    except Exception as e:
        logger.error(f"Критическая ошибка: {e}", exc_info=True)
