import types

import pytest

from middlewares.admin_access import AdminAccessMiddleware


class DummyMessage:
    def __init__(self, user_id):
        self.from_user = types.SimpleNamespace(id=user_id)
        self.answers = []

    async def answer(self, text, **kwargs):
        self.answers.append(text)


async def handler(event, data):
    return 'handled'


@pytest.mark.asyncio
async def test_admin_passes_through():
    middleware = AdminAccessMiddleware(admin_ids=[42])
    event = DummyMessage(42)

    assert await middleware(handler, event, {}) == 'handled'
    assert event.answers == []


@pytest.mark.asyncio
async def test_other_users_are_rejected():
    middleware = AdminAccessMiddleware(admin_ids=[42])
    event = DummyMessage(7)

    assert await middleware(handler, event, {}) is None
    assert len(event.answers) == 1


def test_defaults_to_configured_admins(monkeypatch):
    from config import settings

    monkeypatch.setattr(settings, 'ADMIN_IDS', [100])
    middleware = AdminAccessMiddleware()
    assert middleware.is_allowed(100)
    assert not middleware.is_allowed(101)
