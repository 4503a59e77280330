import types
from datetime import date, datetime

from handlers.admin_handlers import parse_report_date
from handlers.booking_handlers import (
    _current_scheduled_time, booking_from_state, parse_player, player_name_text,
)
from handlers.session_handlers import option_patch, target_session
from keyboards.keyboards import ACTIVE_TARGET, MAIN_MENU_BUTTONS, get_main_menu_keyboard
from helpers import make_session


def test_parse_player():
    assert parse_player('Ion / +373 600 00 000') == ('Ion', '+373 600 00 000')
    assert parse_player('-') == ('', '')
    assert parse_player('Maria') == ('Maria', '')


def test_booking_from_state_derives_interval():
    data = booking_from_state({
        'player_name': 'Ion',
        'selected_date': '2025-03-12',
        'selected_time': '18:00',
        'duration': 2,
    })
    assert data['scheduled_date'] == date(2025, 3, 12)
    assert data['selected_time_interval'] == 'evening'

    weekend = booking_from_state({'selected_date': '2025-03-15', 'selected_time': '9:00', 'duration': 1})
    assert weekend['selected_time_interval'] == 'weekend'


def test_current_scheduled_time_within_opening_hours():
    assert _current_scheduled_time(datetime(2025, 3, 12, 10, 25)) == '10:25'
    assert _current_scheduled_time(datetime(2025, 3, 12, 5, 40)) == '7:00'


def test_option_patch():
    session = make_session(selected_time_interval='day', discount_cards=0, scheduled_duration=1)
    assert option_patch(session, 'iv', 'weekend') == {'selected_time_interval': 'weekend'}
    assert option_patch(session, 'st', 'toggle') == {'is_student': True}
    assert option_patch(session, 'sub', 'toggle') == {'has_subscription': True}
    assert option_patch(session, 'dc', '-1') == {'discount_cards': 0}
    assert option_patch(session, 'dc', '1') == {'discount_cards': 1}
    assert option_patch(session, 'dur', '-1') == {'scheduled_duration': 1}
    assert option_patch(session, 'noop', '0') == {}


def test_target_session(store, now):
    booking = store.create_upcoming({'player_name': 'Ion'}, now)
    assert target_session(store, booking.id).id == booking.id
    assert target_session(store, ACTIVE_TARGET) is None

    store.start(session_id=booking.id, now=now)
    assert target_session(store, ACTIVE_TARGET).id == booking.id
    assert target_session(store, booking.id) is None


def test_parse_report_date():
    assert parse_report_date('/report 15.03.2025') == date(2025, 3, 15)
    assert parse_report_date('/report 2025-03-15') == date(2025, 3, 15)
    assert parse_report_date('/report yesterday') is None
    assert parse_report_date('/report') == date.today()


def test_menu_buttons_are_not_player_names():
    menu_texts = [row[0].text for row in get_main_menu_keyboard().keyboard]
    assert menu_texts == list(MAIN_MENU_BUTTONS)

    for text in menu_texts:
        assert not player_name_text.resolve(types.SimpleNamespace(text=text))
    assert player_name_text.resolve(types.SimpleNamespace(text='Ion / +373 600 00 000'))
