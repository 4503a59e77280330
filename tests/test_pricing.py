from datetime import datetime

from utils.pricing import (
    catalog_price, compute_cost, court_cost, derive_time_interval, discount_amount,
    items_cost, rate_category, rate_label, resolve_rate,
)
from database.models import SessionItem
from helpers import SATURDAY, WEDNESDAY_EVENING, WEDNESDAY_MORNING, make_session


def test_day_interval_two_hours():
    session = make_session(selected_time_interval='day', scheduled_duration=2)
    assert resolve_rate(session) == 50
    assert compute_cost(session) == 100


def test_student_day_rate():
    session = make_session(selected_time_interval='day', scheduled_duration=2, is_student=True)
    assert resolve_rate(session) == 30
    assert compute_cost(session) == 60


def test_evening_with_cards_and_item():
    session = make_session(
        selected_time_interval='evening',
        scheduled_duration=1,
        discount_cards=2,
        items=[SessionItem('racket', 1)],
    )
    assert court_cost(session) == 80
    assert items_cost(session.items) == 5
    assert discount_amount(session) == 20
    assert compute_cost(session) == 65


def test_subscription_covers_court_only():
    session = make_session(
        selected_time_interval='evening',
        has_subscription=True,
        scheduled_duration=3,
        items=[SessionItem('water', 1)],
    )
    assert court_cost(session) == 0
    assert compute_cost(session) == 6


def test_discount_larger_than_total_is_clamped():
    session = make_session(selected_time_interval='day', scheduled_duration=1, discount_cards=10)
    assert compute_cost(session) == 0


def test_table_tennis_ignores_squash_options():
    session = make_session(
        court_id='table-tennis',
        type='table-tennis',
        hourly_rate=30,
        selected_time_interval='weekend',
        is_student=True,
    )
    assert resolve_rate(session) == 30
    assert compute_cost(session) == 30
    assert rate_category(session) == 'fixed'


def test_cost_never_negative():
    for cards in range(0, 30, 3):
        for duration in (1, 2, 4):
            session = make_session(
                selected_time_interval='day', scheduled_duration=duration, discount_cards=cards
            )
            assert compute_cost(session) >= 0


def test_elapsed_time_does_not_change_cost():
    session = make_session(selected_time_interval='day', scheduled_duration=1)
    before = compute_cost(session)
    session.actual_duration = 3 * 3600
    assert compute_cost(session) == before


def test_derive_time_interval():
    assert derive_time_interval(WEDNESDAY_MORNING) == 'day'
    assert derive_time_interval(WEDNESDAY_EVENING) == 'evening'
    assert derive_time_interval(datetime(2025, 3, 12, 17, 0)) == 'evening'
    assert derive_time_interval(datetime(2025, 3, 12, 7, 0)) == 'day'
    assert derive_time_interval(SATURDAY) == 'weekend'
    assert derive_time_interval(datetime(2025, 3, 16, 3, 0)) == 'weekend'


def test_no_interval_outside_opening_hours():
    assert derive_time_interval(datetime(2025, 3, 12, 6, 59)) is None
    assert derive_time_interval(datetime(2025, 3, 12, 23, 0)) is None


def test_rate_falls_back_to_derived_interval():
    session = make_session(scheduled_duration=1)
    assert session.selected_time_interval is None
    assert resolve_rate(session, WEDNESDAY_EVENING) == 80
    assert resolve_rate(session, SATURDAY) == 80
    assert resolve_rate(session, WEDNESDAY_MORNING) == 50


def test_rate_falls_back_to_hourly_rate_at_night():
    session = make_session(hourly_rate=15, scheduled_duration=2)
    assert resolve_rate(session, datetime(2025, 3, 12, 5, 0)) == 15
    assert compute_cost(session, datetime(2025, 3, 12, 5, 0)) == 30


def test_unknown_item_costs_nothing():
    assert catalog_price('champagne') == 0
    session = make_session(
        selected_time_interval='day',
        items=[SessionItem('champagne', 3), SessionItem('ball-purchase', 1)],
    )
    assert compute_cost(session) == 70


def test_rate_category():
    assert rate_category(make_session(selected_time_interval='evening')) == 'evening'
    assert rate_category(make_session(selected_time_interval='day', is_student=True)) == 'student'
    assert rate_category(make_session(has_subscription=True)) == 'subscription'
    assert rate_category(make_session()) == 'day'


def test_rate_label_mentions_interval():
    assert 'Evening (17-23)' in rate_label(make_session(selected_time_interval='evening'))
    assert 'Абонемент' in rate_label(make_session(has_subscription=True))
