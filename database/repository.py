"""
Репозиторий документа сессий всех кортов
"""
import json
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from config import settings
from database.catalog import get_court
from database.database import KeyValueStorage
from database.exceptions import InvalidSessionError, StorageWriteError
from database.models import Court, CourtDocument, Session
from database.session_store import CourtSessionStore
from utils.time_utils import reset_cutoff

logger = logging.getLogger(__name__)


class SessionRepository:
    """
    Чтение и запись документа {"courts": {court_id: {...}}} через хранилище

    Документ перечитывается и перезаписывается целиком при каждом сохранении,
    поэтому изменения других кортов, записанные в промежутке, не теряются
    """

    def __init__(self, storage: KeyValueStorage, key: Optional[str] = None):
        self.storage = storage
        self.key = key or settings.STORAGE_KEY
        self._lock = threading.RLock()
        self._stores: Dict[str, CourtSessionStore] = {}

    def load_document(self) -> Dict[str, Any]:
        """Загрузка документа; отсутствие или повреждение - пустое состояние"""
        raw = self.storage.get(self.key)
        if not raw:
            return {'courts': {}}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Документ {self.key} повреждён, начинаем с пустого состояния: {e}")
            return {'courts': {}}

        if not isinstance(document, dict):
            logger.warning(
                f"Неверный формат документа {self.key}: ожидался объект, "
                f"получен {type(document).__name__}"
            )
            return {'courts': {}}

        if not isinstance(document.get('courts'), dict):
            document['courts'] = {}
        return document

    def load_court(self, court_id: str) -> CourtDocument:
        """Документ сессий одного корта"""
        with self._lock:
            data = self.load_document()['courts'].get(court_id)
        return self._court_from_dict(court_id, data)

    def save_court(self, court_id: str, court_document: CourtDocument):
        """Запись документа корта: чтение-изменение-запись всего документа"""
        with self._lock:
            document = self.load_document()
            document['courts'][court_id] = court_document.to_dict()
            self._write(document)

    def all_finished(self) -> List[Session]:
        """Завершённые сессии всех кортов для отчёта"""
        with self._lock:
            courts = self.load_document()['courts']

        sessions = []
        for court_id, data in courts.items():
            sessions.extend(self._court_from_dict(court_id, data).finished)
        return sessions

    def court_store(self, court: Union[Court, str]) -> CourtSessionStore:
        """Хранилище сессий корта (одно на корт в пределах репозитория)"""
        if isinstance(court, str):
            court_id = court
            court = get_court(court_id)
            if court is None:
                raise InvalidSessionError(f"Неизвестный корт: {court_id!r}")

        with self._lock:
            store = self._stores.get(court.id)
            if store is None:
                store = CourtSessionStore(court, self)
                self._stores[court.id] = store
            return store

    def reset_history(self, timeframe: str, now: Optional[datetime] = None) -> int:
        """
        Очистка истории завершённых сессий всех кортов
        Удаляются сессии, завершённые строго раньше границы периода;
        для 'all' удаляются все завершённые сессии
        Возвращает количество удалённых записей
        """
        cutoff = reset_cutoff(timeframe, now)

        def should_remove(session: Session) -> bool:
            if cutoff is None:
                return True
            return session.end_time is not None and session.end_time < cutoff

        removed = 0

        # Корты с загруженным хранилищем чистятся через него,
        # чтобы состояние в памяти не вернуло удалённые записи
        with self._lock:
            stores = list(self._stores.values())
        for store in stores:
            removed += store.drop_finished(should_remove)

        with self._lock:
            document = self.load_document()
            changed = False
            for court_id, data in document['courts'].items():
                if court_id in self._stores:
                    continue
                court_document = self._court_from_dict(court_id, data)
                kept = [s for s in court_document.finished if not should_remove(s)]
                if len(kept) != len(court_document.finished):
                    removed += len(court_document.finished) - len(kept)
                    court_document.finished = kept
                    document['courts'][court_id] = court_document.to_dict()
                    changed = True
            if changed:
                self._write(document)

        logger.info(f"Очистка истории ({timeframe}): удалено {removed} завершённых сессий")
        return removed

    def _court_from_dict(self, court_id: str, data: Optional[Dict[str, Any]]) -> CourtDocument:
        try:
            return CourtDocument.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Документ корта {court_id} повреждён, используется пустой: {e}")
            return CourtDocument()

    def _write(self, document: Dict[str, Any]):
        try:
            self.storage.set(self.key, json.dumps(document, ensure_ascii=False))
        except Exception as e:
            logger.error(f"Не удалось сохранить документ {self.key}: {e}", exc_info=True)
            raise StorageWriteError(f"Не удалось сохранить документ {self.key}") from e
