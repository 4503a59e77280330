"""
Справочные данные: корты, каталог позиций и тарифы
"""
from typing import Dict, List, Optional

from database.models import AdditionalItem, Court, TimeIntervalOption


# Тарифы (лей)
STUDENT_PRICE = 30
DISCOUNT_CARD_AMOUNT = 10
TABLE_TENNIS_RATE = 30
SQUASH_BASE_RATE = 0  # сквош тарифицируется по интервалам

# Часы тарифных интервалов по будням
DAY_START_HOUR = 7
EVENING_START_HOUR = 17
EVENING_END_HOUR = 23


TIME_INTERVAL_OPTIONS: List[TimeIntervalOption] = [
    TimeIntervalOption(value='day', label='Day (7-17)', price=50),
    TimeIntervalOption(value='evening', label='Evening (17-23)', price=80),
    TimeIntervalOption(value='weekend', label='Weekend', price=80),
]

ADDITIONAL_ITEMS: List[AdditionalItem] = [
    AdditionalItem(id='racket', name='Racket', price=5, category='equipment'),
    AdditionalItem(id='ball-rental', name='Ball Rental', price=2, category='equipment'),
    AdditionalItem(id='ball-purchase', name='Ball Purchase', price=20, category='equipment'),
    AdditionalItem(id='water', name='Water', price=6, category='refreshment'),
    AdditionalItem(id='arc', name='Arc', price=10, category='refreshment'),
    AdditionalItem(id='magneziu', name='Magneziu', price=10, category='refreshment'),
]

COURTS: List[Court] = [
    *[
        Court(id=f'squash-{number}', name=f'Squash Court {number}',
              type='squash', hourly_rate=SQUASH_BASE_RATE)
        for number in range(1, 6)
    ],
    Court(id='table-tennis', name='Table Tennis', type='table-tennis',
          hourly_rate=TABLE_TENNIS_RATE),
]

_ITEMS_BY_ID: Dict[str, AdditionalItem] = {item.id: item for item in ADDITIONAL_ITEMS}
_INTERVALS_BY_VALUE: Dict[str, TimeIntervalOption] = {
    option.value: option for option in TIME_INTERVAL_OPTIONS
}
_COURTS_BY_ID: Dict[str, Court] = {court.id: court for court in COURTS}


def get_item(item_id: str) -> Optional[AdditionalItem]:
    """Позиция каталога по ID"""
    return _ITEMS_BY_ID.get(item_id)


def get_interval_option(value: Optional[str]) -> Optional[TimeIntervalOption]:
    """Тарифный интервал по значению"""
    return _INTERVALS_BY_VALUE.get(value)


def get_court(court_id: str) -> Optional[Court]:
    """Корт по ID"""
    return _COURTS_BY_ID.get(court_id)
