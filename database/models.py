"""
Модели данных: корты, каталог и сессии
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from config import settings
from database.exceptions import InvalidSessionError
from utils.time_utils import parse_scheduled_time

logger = logging.getLogger(__name__)


COURT_TYPES = ('squash', 'table-tennis')
TIME_INTERVALS = ('day', 'evening', 'weekend')
SESSION_STATUSES = ('upcoming', 'active', 'finished')
PAYMENT_STATUSES = ('unpaid', 'paid', 'canceled')
PAYMENT_METHODS = ('cash', 'card')

DEFAULT_PLAYER_NAME = 'Guest'

# Поля, которые можно менять через update_upcoming / update_active
EDITABLE_FIELDS = frozenset({
    'player_name', 'contact_info', 'notes',
    'scheduled_duration', 'scheduled_time', 'scheduled_date',
    'is_student', 'selected_time_interval', 'discount_cards',
    'has_subscription', 'items',
})


@dataclass(frozen=True)
class Court:
    """Модель корта"""
    id: str
    name: str
    type: str  # squash, table-tennis
    hourly_rate: float


@dataclass(frozen=True)
class AdditionalItem:
    """Позиция каталога: инвентарь или напитки"""
    id: str
    name: str
    price: float
    category: str  # equipment, refreshment, other


@dataclass(frozen=True)
class TimeIntervalOption:
    """Тарифный интервал сквоша"""
    value: str  # day, evening, weekend
    label: str
    price: float


@dataclass
class SessionItem:
    """Ссылка сессии на позицию каталога"""
    item_id: str
    quantity: int


@dataclass
class Session:
    """Модель сессии (брони) корта"""
    id: Optional[str]
    court_id: str
    type: str  # squash, table-tennis
    hourly_rate: float
    scheduled_duration: int = 1
    scheduled_time: str = settings.DEFAULT_SCHEDULED_TIME
    scheduled_date: Optional[date] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    actual_duration: int = 0  # секунды
    is_student: bool = False
    selected_time_interval: Optional[str] = None  # day, evening, weekend
    discount_cards: int = 0
    has_subscription: bool = False
    items: List[SessionItem] = field(default_factory=list)
    cost: float = 0.0
    status: str = 'upcoming'  # upcoming, active, finished
    payment_status: str = 'unpaid'  # unpaid, paid, canceled
    payment_method: Optional[str] = None  # cash, card
    player_name: str = DEFAULT_PLAYER_NAME
    contact_info: str = ''
    notes: str = ''

    def __post_init__(self):
        self.normalise()

    def normalise(self) -> 'Session':
        """Приведение значений к инвариантам сессии"""
        if self.type not in COURT_TYPES:
            raise InvalidSessionError(f"Неизвестный тип корта: {self.type!r}")
        if self.selected_time_interval not in TIME_INTERVALS + (None,):
            raise InvalidSessionError(
                f"Неизвестный тарифный интервал: {self.selected_time_interval!r}"
            )
        if self.status not in SESSION_STATUSES:
            raise InvalidSessionError(f"Неизвестный статус сессии: {self.status!r}")
        if self.payment_status not in PAYMENT_STATUSES:
            raise InvalidSessionError(f"Неизвестный статус оплаты: {self.payment_status!r}")
        if self.payment_method not in PAYMENT_METHODS + (None,):
            raise InvalidSessionError(f"Неизвестный способ оплаты: {self.payment_method!r}")
        parse_scheduled_time(self.scheduled_time)

        self.player_name = (self.player_name or '').strip() or DEFAULT_PLAYER_NAME
        self.contact_info = self.contact_info or ''
        self.notes = self.notes or ''
        self.scheduled_duration = max(1, _to_int(self.scheduled_duration, 'scheduled_duration'))
        self.discount_cards = max(0, _to_int(self.discount_cards, 'discount_cards'))
        self.actual_duration = max(0, _to_int(self.actual_duration, 'actual_duration'))
        self.items = merge_items(self.items)

        # Студенческий тариф действует только днём
        if self.selected_time_interval != 'day':
            self.is_student = False
        return self

    @property
    def item_quantities(self) -> Dict[str, int]:
        return {item.item_id: item.quantity for item in self.items}

    def apply_patch(self, patch: Mapping[str, Any]) -> 'Session':
        """Обновление редактируемых полей с последующей нормализацией"""
        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            raise InvalidSessionError(f"Поля нельзя изменить: {', '.join(sorted(unknown))}")

        for key, value in patch.items():
            if key == 'scheduled_date' and isinstance(value, str):
                value = date.fromisoformat(value)
            setattr(self, key, value)
        return self.normalise()

    def to_dict(self) -> Dict[str, Any]:
        """Представление сессии для JSON-документа хранилища"""
        return {
            'id': self.id,
            'courtId': self.court_id,
            'type': self.type,
            'hourlyRate': self.hourly_rate,
            'scheduledDuration': self.scheduled_duration,
            'scheduledTime': self.scheduled_time,
            'scheduledDate': self.scheduled_date.isoformat() if self.scheduled_date else None,
            'startTime': self.start_time.isoformat() if self.start_time else None,
            'endTime': self.end_time.isoformat() if self.end_time else None,
            'actualDuration': self.actual_duration,
            'isStudent': self.is_student,
            'selectedTimeInterval': self.selected_time_interval,
            'discountCards': self.discount_cards,
            'hasSubscription': self.has_subscription,
            'items': [{'itemId': item.item_id, 'quantity': item.quantity} for item in self.items],
            'cost': self.cost,
            'status': self.status,
            'paymentStatus': self.payment_status,
            'paymentMethod': self.payment_method,
            'playerName': self.player_name,
            'contactInfo': self.contact_info,
            'notes': self.notes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Session':
        """Восстановление сессии из JSON-документа хранилища"""
        return cls(
            id=data.get('id'),
            court_id=data.get('courtId', ''),
            type=data.get('type', 'squash'),
            hourly_rate=float(data.get('hourlyRate') or 0),
            scheduled_duration=data.get('scheduledDuration') or 1,
            scheduled_time=data.get('scheduledTime') or settings.DEFAULT_SCHEDULED_TIME,
            scheduled_date=_parse_date(data.get('scheduledDate')),
            start_time=_parse_datetime(data.get('startTime')),
            end_time=_parse_datetime(data.get('endTime')),
            actual_duration=data.get('actualDuration') or 0,
            is_student=bool(data.get('isStudent', False)),
            selected_time_interval=data.get('selectedTimeInterval') or None,
            discount_cards=data.get('discountCards') or 0,
            has_subscription=bool(data.get('hasSubscription', False)),
            items=[
                SessionItem(item_id=item['itemId'], quantity=item.get('quantity', 0))
                for item in data.get('items') or []
            ],
            cost=float(data.get('cost') or 0),
            status=data.get('status', 'upcoming'),
            payment_status=data.get('paymentStatus', 'unpaid'),
            payment_method=data.get('paymentMethod'),
            player_name=data.get('playerName') or DEFAULT_PLAYER_NAME,
            contact_info=data.get('contactInfo') or '',
            notes=data.get('notes') or '',
        )


@dataclass
class CourtDocument:
    """Документ сессий одного корта"""
    upcoming: List[Session] = field(default_factory=list)
    active: Optional[Session] = None
    finished: List[Session] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'upcoming': [session.to_dict() for session in self.upcoming],
            'active': self.active.to_dict() if self.active else None,
            'finished': [session.to_dict() for session in self.finished],
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'CourtDocument':
        """Документ корта; повреждённые записи пропускаются, остальные сохраняются"""
        data = data or {}
        active = _sessions_from_list([data['active']] if data.get('active') else [], 'active')
        return cls(
            upcoming=_sessions_from_list(data.get('upcoming') or [], 'upcoming'),
            active=active[0] if active else None,
            finished=_sessions_from_list(data.get('finished') or [], 'finished'),
        )


def _sessions_from_list(items, section: str) -> List[Session]:
    sessions = []
    for item in items:
        try:
            sessions.append(Session.from_dict(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            session_id = item.get('id') if isinstance(item, Mapping) else None
            logger.warning(f"Пропущена повреждённая запись {section} {session_id}: {e}")
    return sessions


def merge_items(items) -> List[SessionItem]:
    """
    Объединение позиций по item_id (последнее количество побеждает)
    Позиции с количеством <= 0 удаляются
    """
    merged: Dict[str, int] = {}
    for item in items or []:
        if isinstance(item, Mapping):
            item_id = item.get('item_id', item.get('itemId'))
            quantity = item.get('quantity', 0)
        else:
            item_id, quantity = item.item_id, item.quantity
        merged[item_id] = _to_int(quantity, 'quantity')

    return [
        SessionItem(item_id=item_id, quantity=quantity)
        for item_id, quantity in merged.items()
        if quantity > 0
    ]


def _to_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidSessionError(f"{name} должно быть целым числом, получено {value!r}")


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    if not isinstance(value, datetime):
        # Метки с суффиксом Z (UTC) приходят из старых документов браузерной версии
        value = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
