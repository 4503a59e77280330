"""
Хранилище сессий корта: жизненный цикл upcoming -> active -> finished
"""
import copy
import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Generator, List, Mapping, Optional, Union

from database.exceptions import (
    ActiveSessionExistsError, InvalidSessionError, SessionNotFoundError,
)
from database.models import (
    EDITABLE_FIELDS, PAYMENT_METHODS, Court, CourtDocument, Session,
)
from utils.pricing import compute_cost, derive_time_interval

logger = logging.getLogger(__name__)


class CourtSessionStore:
    """
    Сессии одного корта: предстоящие, активная (не более одной) и завершённые

    Каждое изменение сохраняется сразу; если запись не удалась,
    состояние в памяти откатывается и исключение пробрасывается вызывающему
    """

    def __init__(self, court: Court, repository):
        self.court = court
        self.repository = repository
        self._lock = threading.RLock()
        self._document: CourtDocument = repository.load_court(court.id)
        logger.info(
            f"Корт {court.id}: загружено {len(self._document.upcoming)} предстоящих, "
            f"{'1 активная' if self._document.active else 'нет активной'}, "
            f"{len(self._document.finished)} завершённых сессий"
        )

    @property
    def upcoming(self) -> List[Session]:
        with self._lock:
            return copy.deepcopy(self._document.upcoming)

    @property
    def active(self) -> Optional[Session]:
        with self._lock:
            return copy.deepcopy(self._document.active)

    @property
    def finished(self) -> List[Session]:
        with self._lock:
            return copy.deepcopy(self._document.finished)

    def get_by_id(self, session_id: str) -> Optional[Session]:
        """Поиск сессии: предстоящие, затем активная, затем завершённые"""
        with self._lock:
            session = self._find(session_id)
            return copy.deepcopy(session) if session else None

    def create_upcoming(self, data: Union[Session, Mapping[str, Any]],
                        now: Optional[datetime] = None) -> Session:
        """Создание предстоящей брони"""
        with self._transaction() as document:
            session = self._build_session(data)
            session.status = 'upcoming'
            session.cost = compute_cost(session, now)
            document.upcoming.append(session)

        logger.info(
            f"Корт {self.court.id}: создана бронь {session.id} "
            f"({session.player_name}, {session.scheduled_time}, {session.scheduled_duration} ч)"
        )
        return copy.deepcopy(session)

    def update_upcoming(self, session_id: str, patch: Mapping[str, Any],
                        now: Optional[datetime] = None) -> Session:
        """Редактирование предстоящей брони"""
        with self._transaction() as document:
            session = self._find_upcoming(document, session_id)
            session.apply_patch(patch)
            session.cost = compute_cost(session, now)

        logger.info(f"Корт {self.court.id}: бронь {session_id} изменена ({', '.join(patch)})")
        return copy.deepcopy(session)

    def cancel_upcoming(self, session_id: str) -> Session:
        """Отмена предстоящей брони без следа в истории"""
        with self._transaction() as document:
            session = self._find_upcoming(document, session_id)
            document.upcoming.remove(session)

        logger.info(f"Корт {self.court.id}: бронь {session_id} отменена")
        return copy.deepcopy(session)

    def start(self, session_id: Optional[str] = None,
              new_session: Union[Session, Mapping[str, Any], None] = None,
              now: Optional[datetime] = None) -> Session:
        """
        Запуск сессии: из предстоящей брони по ID или сразу без брони
        На корте не может быть двух активных сессий
        """
        now = now or datetime.now()

        with self._transaction() as document:
            if document.active is not None:
                logger.warning(
                    f"Корт {self.court.id}: нельзя начать сессию, "
                    f"уже идёт {document.active.id}"
                )
                raise ActiveSessionExistsError(self.court.id, document.active.id)

            if session_id:
                session = self._find_upcoming(document, session_id)
                document.upcoming.remove(session)
            elif new_session is not None:
                session = self._build_session(new_session)
            else:
                raise InvalidSessionError("Не указана бронь или данные новой сессии")

            session.status = 'active'
            session.start_time = now
            session.end_time = None
            session.actual_duration = 0
            if session.selected_time_interval is None:
                session.selected_time_interval = derive_time_interval(now)
                session.normalise()
            session.cost = compute_cost(session, now)
            document.active = session

        logger.info(
            f"Корт {self.court.id}: начата сессия {session.id} "
            f"({session.player_name}, стоимость {session.cost})"
        )
        return copy.deepcopy(session)

    def tick(self, seconds: int = 1) -> Optional[Session]:
        """Увеличение прошедшего времени активной сессии; стоимость не меняется"""
        with self._lock:
            if self._document.active is None:
                return None
            with self._transaction() as document:
                session = document.active
                session.actual_duration += seconds
            return copy.deepcopy(session)

    def update_active(self, patch: Mapping[str, Any],
                      now: Optional[datetime] = None) -> Optional[Session]:
        """Изменение активной сессии (позиции, тариф, карты, абонемент)"""
        with self._lock:
            if self._document.active is None:
                logger.warning(f"Корт {self.court.id}: нет активной сессии для изменения")
                return None
            with self._transaction() as document:
                session = document.active
                session.apply_patch(patch)
                session.cost = compute_cost(session, now)

        logger.info(
            f"Корт {self.court.id}: сессия {session.id} изменена "
            f"({', '.join(patch)}), стоимость {session.cost}"
        )
        return copy.deepcopy(session)

    def set_active_item(self, item_id: str, quantity: int,
                        now: Optional[datetime] = None) -> Optional[Session]:
        """Установка количества позиции в активной сессии"""
        with self._lock:
            session = self._document.active
            if session is None:
                return None
            quantities = session.item_quantities
            quantities[item_id] = quantity
            return self.update_active({'items': [
                {'item_id': key, 'quantity': value} for key, value in quantities.items()
            ]}, now)

    def end(self, final_cost: Optional[float] = None, payment_method: Optional[str] = None,
            explicit_cancel: bool = False, now: Optional[datetime] = None) -> Optional[Session]:
        """
        Завершение активной сессии

        explicit_cancel - отмена без оплаты (canceled, без способа оплаты)
        Иначе сессия оплачена; при нулевой стоимости способ оплаты не сохраняется
        Без активной сессии ничего не происходит и возвращается None
        """
        if payment_method is not None and payment_method not in PAYMENT_METHODS:
            raise InvalidSessionError(f"Неизвестный способ оплаты: {payment_method!r}")

        now = now or datetime.now()

        with self._lock:
            if self._document.active is None:
                return None

            if final_cost is None:
                final_cost = self._document.active.cost
            final_cost = float(final_cost)
            if final_cost < 0:
                raise InvalidSessionError(f"Стоимость не может быть отрицательной: {final_cost}")

            with self._transaction() as document:
                session = document.active
                session.status = 'finished'
                session.end_time = now
                session.cost = final_cost
                if explicit_cancel:
                    session.payment_status = 'canceled'
                    session.payment_method = None
                else:
                    session.payment_status = 'paid'
                    session.payment_method = None if final_cost == 0 else payment_method
                    if final_cost > 0 and payment_method is None:
                        logger.warning(
                            f"Корт {self.court.id}: сессия {session.id} оплачена без способа оплаты"
                        )

                document.finished.insert(0, session)
                document.active = None

        logger.info(
            f"Корт {self.court.id}: сессия {session.id} завершена, "
            f"стоимость {session.cost}, статус {session.payment_status}, "
            f"оплата {session.payment_method}"
        )
        return copy.deepcopy(session)

    def drop_finished(self, predicate: Callable[[Session], bool]) -> int:
        """Удаление завершённых сессий, подходящих под условие"""
        with self._transaction() as document:
            kept = [s for s in document.finished if not predicate(s)]
            removed = len(document.finished) - len(kept)
            document.finished = kept
        return removed

    @contextmanager
    def _transaction(self) -> Generator[CourtDocument, None, None]:
        """Изменение документа корта с сохранением или откатом"""
        with self._lock:
            snapshot = copy.deepcopy(self._document)
            try:
                yield self._document
                self.repository.save_court(self.court.id, self._document)
            except Exception:
                self._document = snapshot
                raise

    def _build_session(self, data: Union[Session, Mapping[str, Any]]) -> Session:
        if isinstance(data, Session):
            fields = {key: getattr(data, key) for key in EDITABLE_FIELDS}
        else:
            fields = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
            unknown = set(data) - EDITABLE_FIELDS - {'cost'}
            if unknown:
                raise InvalidSessionError(f"Неизвестные поля сессии: {', '.join(sorted(unknown))}")

        session = Session(
            id=self._new_id(),
            court_id=self.court.id,
            type=self.court.type,
            hourly_rate=self.court.hourly_rate,
        )
        return session.apply_patch({key: value for key, value in fields.items() if value is not None})

    def _new_id(self) -> str:
        existing = self._all_ids()
        while True:
            session_id = uuid.uuid4().hex[:12]
            if session_id not in existing:
                return session_id

    def _all_ids(self) -> set:
        ids = {s.id for s in self._document.upcoming}
        ids.update(s.id for s in self._document.finished)
        if self._document.active:
            ids.add(self._document.active.id)
        return ids

    def _find(self, session_id: str) -> Optional[Session]:
        for session in self._document.upcoming:
            if session.id == session_id:
                return session
        if self._document.active and self._document.active.id == session_id:
            return self._document.active
        for session in self._document.finished:
            if session.id == session_id:
                return session
        return None

    def _find_upcoming(self, document: CourtDocument, session_id: str) -> Session:
        for session in document.upcoming:
            if session.id == session_id:
                return session
        raise SessionNotFoundError(self.court.id, session_id)
