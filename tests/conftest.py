import pytest

from database.database import InMemoryStorage
from database.repository import SessionRepository
from helpers import FailingStorage, WEDNESDAY_MORNING


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def repository(storage):
    return SessionRepository(storage, key='test_sessions')


@pytest.fixture
def store(repository):
    return repository.court_store('squash-1')


@pytest.fixture
def now():
    return WEDNESDAY_MORNING
