"""Общие фейки и данные для тестов"""
from datetime import datetime

from database.database import InMemoryStorage
from database.models import Session


# Среда: дневной и вечерний тариф; суббота: выходной
WEDNESDAY_MORNING = datetime(2025, 3, 12, 10, 0)
WEDNESDAY_EVENING = datetime(2025, 3, 12, 18, 30)
SATURDAY = datetime(2025, 3, 15, 12, 0)


class FailingStorage(InMemoryStorage):
    """Хранилище, запись в которое можно сломать"""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise OSError("disk full")
        super().set(key, value)


def make_session(**overrides) -> Session:
    fields = {
        'id': 's1',
        'court_id': 'squash-1',
        'type': 'squash',
        'hourly_rate': 0,
    }
    fields.update(overrides)
    return Session(**fields)
