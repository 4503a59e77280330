"""
Модуль хранилища: ключ-значение поверх SQLite
"""
import sqlite3
import os
from contextlib import contextmanager
from typing import Dict, Generator, Optional
from config import settings


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Получение подключения к БД"""
    conn = sqlite3.Connection(db_path or settings.DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """Контекстный менеджер для работы с БД"""
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None):
    """Инициализация базы данных"""
    db_path = db_path or settings.DB_PATH

    # Создание директории для БД, если не существует
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        # Таблица документов ключ-значение
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        conn.commit()


class KeyValueStorage:
    """Интерфейс хранилища: чтение и запись строки по ключу"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class SqliteStorage(KeyValueStorage):
    """Хранилище в таблице kv_store файла SQLite"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or settings.DB_PATH

    def init(self) -> 'SqliteStorage':
        """Явная инициализация схемы перед использованием"""
        init_db(self.db_path)
        return self

    def get(self, key: str) -> Optional[str]:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row['value'] if row else None

    def set(self, key: str, value: str) -> None:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, value))


class InMemoryStorage(KeyValueStorage):
    """Хранилище в памяти процесса (тесты, скрипты)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def init(self) -> 'InMemoryStorage':
        return self

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
