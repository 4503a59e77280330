import sqlite3

from database.database import InMemoryStorage, SqliteStorage, get_db
from database.repository import SessionRepository


def test_sqlite_storage_creates_schema(tmp_path):
    db_path = str(tmp_path / 'nested' / 'squash.db')
    storage = SqliteStorage(db_path).init()

    assert storage.get('missing') is None
    with get_db(db_path) as conn:
        tables = [row['name'] for row in conn.execute("SELECT name FROM sqlite_master")]
    assert 'kv_store' in tables


def test_sqlite_storage_overwrites_value(tmp_path):
    storage = SqliteStorage(str(tmp_path / 'squash.db')).init()
    storage.set('key', 'first')
    storage.set('key', 'second')

    assert storage.get('key') == 'second'
    conn = sqlite3.connect(storage.db_path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0] == 1
    finally:
        conn.close()


def test_sessions_persist_in_sqlite(tmp_path, now):
    db_path = str(tmp_path / 'squash.db')
    store = SessionRepository(SqliteStorage(db_path).init()).court_store('squash-4')
    booking = store.create_upcoming({'player_name': 'Ion', 'selected_time_interval': 'day'}, now)

    restored = SessionRepository(SqliteStorage(db_path).init()).court_store('squash-4')
    assert restored.get_by_id(booking.id).cost == 50


def test_in_memory_storage_copies_initial_data():
    initial = {'key': 'value'}
    storage = InMemoryStorage(initial)
    storage.set('key', 'other')
    assert initial == {'key': 'value'}
