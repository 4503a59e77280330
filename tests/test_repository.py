import json
from datetime import timedelta

import pytest

from database.database import InMemoryStorage
from database.exceptions import InvalidSessionError
from database.models import CourtDocument
from database.repository import SessionRepository
from helpers import WEDNESDAY_MORNING, make_session

NOW = WEDNESDAY_MORNING


def finished(session_id, court_id, age):
    return make_session(
        id=session_id,
        court_id=court_id,
        selected_time_interval='day',
        status='finished',
        payment_status='paid',
        payment_method='cash',
        cost=50,
        start_time=NOW - age - timedelta(hours=1),
        end_time=NOW - age,
    )


def seeded_storage():
    squash = CourtDocument(
        upcoming=[make_session(id='u1', court_id='squash-1')],
        active=make_session(id='a1', court_id='squash-1', status='active', start_time=NOW),
        finished=[
            finished('f1', 'squash-1', timedelta(hours=2)),
            finished('f2', 'squash-1', timedelta(days=2)),
            finished('f3', 'squash-1', timedelta(days=10)),
            finished('f4', 'squash-1', timedelta(days=40)),
        ],
    )
    squash_two = CourtDocument(finished=[finished('g1', 'squash-2', timedelta(days=3))])
    document = {'courts': {'squash-1': squash.to_dict(), 'squash-2': squash_two.to_dict()}}
    return InMemoryStorage({'test_sessions': json.dumps(document)})


def finished_ids(repository):
    return sorted(s.id for s in repository.all_finished())


@pytest.mark.parametrize('timeframe, removed, remaining', [
    ('yesterday', 4, ['f1']),
    ('week', 2, ['f1', 'f2', 'g1']),
    ('month', 1, ['f1', 'f2', 'f3', 'g1']),
    ('all', 5, []),
])
def test_reset_history(timeframe, removed, remaining):
    repository = SessionRepository(seeded_storage(), key='test_sessions')

    assert repository.reset_history(timeframe, NOW) == removed
    assert finished_ids(repository) == remaining


def test_reset_history_keeps_upcoming_and_active():
    repository = SessionRepository(seeded_storage(), key='test_sessions')
    repository.reset_history('all', NOW)

    court = repository.load_court('squash-1')
    assert [s.id for s in court.upcoming] == ['u1']
    assert court.active.id == 'a1'


def test_reset_history_updates_loaded_store():
    repository = SessionRepository(seeded_storage(), key='test_sessions')
    store = repository.court_store('squash-1')
    assert len(store.finished) == 4

    assert repository.reset_history('week', NOW) == 2
    assert [s.id for s in store.finished] == ['f1', 'f2']

    # Следующее сохранение корта не возвращает удалённые записи
    store.tick()
    assert finished_ids(repository) == ['f1', 'f2', 'g1']


def test_reset_history_unknown_timeframe():
    repository = SessionRepository(seeded_storage(), key='test_sessions')
    with pytest.raises(InvalidSessionError):
        repository.reset_history('decade', NOW)
    assert len(repository.all_finished()) == 5


def test_court_store_is_shared(repository):
    assert repository.court_store('squash-3') is repository.court_store('squash-3')


def test_court_store_unknown_court(repository):
    with pytest.raises(InvalidSessionError):
        repository.court_store('badminton')


def test_save_court_keeps_other_courts():
    storage = seeded_storage()
    repository = SessionRepository(storage, key='test_sessions')
    repository.save_court('squash-3', CourtDocument(upcoming=[make_session(id='n1', court_id='squash-3')]))

    courts = json.loads(storage.data['test_sessions'])['courts']
    assert set(courts) == {'squash-1', 'squash-2', 'squash-3'}
    assert len(courts['squash-1']['finished']) == 4


def test_missing_document_is_empty(repository):
    assert repository.load_document() == {'courts': {}}
    assert repository.all_finished() == []


def test_non_object_document_is_empty():
    repository = SessionRepository(InMemoryStorage({'test_sessions': '[1, 2]'}), key='test_sessions')
    assert repository.load_document() == {'courts': {}}


def test_corrupt_court_entry_is_empty():
    document = {'courts': {'squash-1': {'active': {'type': 'hockey'}}}}
    repository = SessionRepository(
        InMemoryStorage({'test_sessions': json.dumps(document)}), key='test_sessions'
    )
    assert repository.load_court('squash-1').active is None


def test_bad_record_does_not_wipe_court():
    squash = CourtDocument(
        upcoming=[make_session(id='u1', court_id='squash-1')],
        finished=[finished(f'f{n}', 'squash-1', timedelta(hours=n)) for n in range(1, 4)],
    ).to_dict()
    legacy = finished('old', 'squash-1', timedelta(days=1)).to_dict()
    legacy['scheduledTime'] = '6:30'
    squash['finished'].append(legacy)
    squash['upcoming'].append({'id': 'broken', 'type': 'hockey'})

    storage = InMemoryStorage({'test_sessions': json.dumps({'courts': {'squash-1': squash}})})
    store = SessionRepository(storage, key='test_sessions').court_store('squash-1')
    assert [s.id for s in store.finished] == ['f1', 'f2', 'f3']

    store.create_upcoming({'player_name': 'Ion'}, NOW)

    saved = json.loads(storage.data['test_sessions'])['courts']['squash-1']
    assert [s['id'] for s in saved['finished']] == ['f1', 'f2', 'f3']
    assert saved['upcoming'][0]['id'] == 'u1'
    assert len(saved['upcoming']) == 2
