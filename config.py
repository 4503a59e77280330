"""
Конфигурация проекта
"""
import os
from dataclasses import dataclass
from typing import List


@dataclass
class Settings:
    """Настройки приложения"""
    # Telegram
    BOT_TOKEN: str = os.getenv('BOT_TOKEN', '')
    ADMIN_IDS: List[int] = None

    # Хранилище
    DB_PATH: str = os.getenv('DB_PATH', 'data/squash4all.db')
    STORAGE_KEY: str = os.getenv('STORAGE_KEY', 'squash4all_sessions')

    # Логирование
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    # Бизнес-правила
    TICK_SECONDS: int = 1
    CURRENCY: str = 'lei'
    DEFAULT_SCHEDULED_TIME: str = '8:00'
    MAX_BOOKING_DAYS: int = 7
    MAX_BOOKING_HOURS: int = 4

    # Режим работы (часы)
    OPEN_HOUR: int = 7
    CLOSE_HOUR: int = 23

    def __post_init__(self):
        """Инициализация после создания объекта"""
        # Парсинг ADMIN_IDS из переменной окружения
        if self.ADMIN_IDS is None:
            admin_ids_str = os.getenv('ADMIN_IDS', '')
            if admin_ids_str:
                self.ADMIN_IDS = [int(id.strip()) for id in admin_ids_str.split(',') if id.strip()]
            else:
                self.ADMIN_IDS = []

    def validate(self):
        """Проверка настроек, обязательных для запуска бота"""
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN не установлен")

    def is_admin(self, user_id: int) -> bool:
        """Проверка, является ли пользователь администратором"""
        return user_id in self.ADMIN_IDS


# Глобальный экземпляр настроек
settings = Settings()
