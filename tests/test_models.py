from datetime import date, datetime, timezone

import pytest

from database.exceptions import InvalidSessionError
from database.models import CourtDocument, Session, SessionItem, merge_items
from helpers import make_session


def test_blank_player_name_becomes_guest():
    assert make_session(player_name='   ').player_name == 'Guest'
    assert make_session(player_name=' Ion ').player_name == 'Ion'


def test_student_flag_cleared_outside_day_interval():
    assert make_session(selected_time_interval='evening', is_student=True).is_student is False
    assert make_session(is_student=True).is_student is False
    assert make_session(selected_time_interval='day', is_student=True).is_student is True


def test_duration_and_cards_are_clamped():
    session = make_session(scheduled_duration=0, discount_cards=-3)
    assert session.scheduled_duration == 1
    assert session.discount_cards == 0


@pytest.mark.parametrize('value', ['6:00', '24:00', '8:5', '8:60', 'noon', ''])
def test_invalid_scheduled_time(value):
    with pytest.raises(InvalidSessionError):
        make_session(scheduled_time=value)


@pytest.mark.parametrize('value', ['7:00', '9:30', '23:59'])
def test_valid_scheduled_time(value):
    assert make_session(scheduled_time=value).scheduled_time == value


def test_unknown_court_type_rejected():
    with pytest.raises(InvalidSessionError):
        make_session(type='tennis')


def test_unknown_interval_rejected():
    with pytest.raises(InvalidSessionError):
        make_session(selected_time_interval='night')


def test_merge_items_last_quantity_wins():
    items = merge_items([
        {'item_id': 'racket', 'quantity': 1},
        {'itemId': 'racket', 'quantity': 3},
        {'item_id': 'water', 'quantity': 0},
        SessionItem('arc', 2),
    ])
    assert items == [SessionItem('racket', 3), SessionItem('arc', 2)]


def test_apply_patch_rejects_protected_fields():
    session = make_session()
    with pytest.raises(InvalidSessionError):
        session.apply_patch({'cost': 0})
    with pytest.raises(InvalidSessionError):
        session.apply_patch({'status': 'finished'})


def test_apply_patch_parses_date_string():
    session = make_session().apply_patch({'scheduled_date': '2025-03-14', 'scheduled_duration': 2})
    assert session.scheduled_date == date(2025, 3, 14)
    assert session.scheduled_duration == 2


def test_to_dict_uses_camel_case():
    session = make_session(
        selected_time_interval='day',
        scheduled_date=date(2025, 3, 12),
        start_time=datetime(2025, 3, 12, 10, 0),
        items=[SessionItem('water', 2)],
    )
    data = session.to_dict()
    assert data['courtId'] == 'squash-1'
    assert data['selectedTimeInterval'] == 'day'
    assert data['scheduledDate'] == '2025-03-12'
    assert data['startTime'] == '2025-03-12T10:00:00'
    assert data['endTime'] is None
    assert data['items'] == [{'itemId': 'water', 'quantity': 2}]

    restored = Session.from_dict(data)
    assert restored == session


def test_from_dict_accepts_utc_timestamps():
    session = Session.from_dict({
        'id': 'x',
        'courtId': 'squash-2',
        'type': 'squash',
        'hourlyRate': 0,
        'startTime': '2025-03-12T08:00:00.000Z',
        'scheduledDate': '2025-03-12T00:00:00.000Z',
    })
    expected = datetime(2025, 3, 12, 8, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert session.start_time == expected
    assert session.start_time.tzinfo is None
    assert session.scheduled_date == date(2025, 3, 12)


def test_from_dict_defaults():
    session = Session.from_dict({'id': 'x', 'courtId': 'squash-1', 'type': 'squash'})
    assert session.player_name == 'Guest'
    assert session.scheduled_duration == 1
    assert session.payment_status == 'unpaid'
    assert session.items == []


def test_court_document_from_empty():
    document = CourtDocument.from_dict(None)
    assert document.upcoming == []
    assert document.active is None
    assert document.finished == []


@pytest.mark.parametrize('overrides', [
    {'status': 'archived'},
    {'payment_status': 'refunded'},
    {'payment_method': 'crypto'},
])
def test_unknown_status_values_rejected(overrides):
    with pytest.raises(InvalidSessionError):
        make_session(**overrides)


def test_court_document_skips_bad_records():
    good = make_session(id='good').to_dict()
    document = CourtDocument.from_dict({
        'upcoming': [good, {'id': 'bad', 'type': 'squash', 'scheduledTime': '6:30'}],
        'active': {'id': 'bad-active', 'type': 'squash', 'status': 'paused'},
        'finished': ['not a record'],
    })
    assert [s.id for s in document.upcoming] == ['good']
    assert document.active is None
    assert document.finished == []
