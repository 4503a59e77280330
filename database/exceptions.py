"""
Исключения работы с сессиями кортов
"""


class SessionError(Exception):
    """Базовая ошибка операций с сессиями"""


class InvalidSessionError(SessionError, ValueError):
    """Некорректные входные данные сессии"""


class ActiveSessionExistsError(SessionError):
    """На корте уже идёт активная сессия"""

    def __init__(self, court_id: str, session_id: str):
        super().__init__(f"На корте {court_id} уже идёт сессия {session_id}")
        self.court_id = court_id
        self.session_id = session_id


class SessionNotFoundError(SessionError, LookupError):
    """Сессия с указанным ID не найдена"""

    def __init__(self, court_id: str, session_id: str):
        super().__init__(f"Сессия {session_id} не найдена на корте {court_id}")
        self.court_id = court_id
        self.session_id = session_id


class StorageWriteError(SessionError):
    """Не удалось сохранить документ сессий"""
