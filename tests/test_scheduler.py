import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from utils.scheduler import (
    resume_session_timers, session_tick_job, start_session_timer, stop_session_timer, tick_job_id,
)


def test_start_and_stop_timer(store):
    scheduler = AsyncIOScheduler()
    start_session_timer(scheduler, store)

    job = scheduler.get_job(tick_job_id('squash-1'))
    assert job is not None
    assert job.kwargs['store'] is store

    assert stop_session_timer(scheduler, 'squash-1') is True
    assert stop_session_timer(scheduler, 'squash-1') is False
    assert scheduler.get_job(tick_job_id('squash-1')) is None


def test_resume_timers_for_active_sessions(repository, now):
    repository.court_store('squash-2').start(new_session={'player_name': 'Ion'}, now=now)
    repository.court_store('table-tennis').start(new_session={'player_name': 'Maria'}, now=now)
    scheduler = AsyncIOScheduler()

    assert resume_session_timers(scheduler, repository) == 2
    assert scheduler.get_job(tick_job_id('squash-2')) is not None
    assert scheduler.get_job(tick_job_id('table-tennis')) is not None
    assert scheduler.get_job(tick_job_id('squash-1')) is None


@pytest.mark.asyncio
async def test_tick_job_advances_active_session(store, now):
    store.start(new_session={'player_name': 'Ion'}, now=now)
    scheduler = AsyncIOScheduler()
    start_session_timer(scheduler, store)

    await session_tick_job(store, scheduler)
    await session_tick_job(store, scheduler)

    assert store.active.actual_duration == 2
    assert scheduler.get_job(tick_job_id(store.court.id)) is not None


@pytest.mark.asyncio
async def test_tick_job_stops_after_session_ends(store, now):
    store.start(new_session={'player_name': 'Ion'}, now=now)
    scheduler = AsyncIOScheduler()
    start_session_timer(scheduler, store)
    store.end(payment_method='cash', now=now)

    await session_tick_job(store, scheduler)

    assert scheduler.get_job(tick_job_id(store.court.id)) is None
