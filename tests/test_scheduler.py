"""
Tests for the fixed-interval scheduler.
"""

import asyncio

import pytest

from guardianbot.core import JobCancelled, Scheduler, raise_if_stopped


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        Scheduler(0)


async def test_first_tick_runs_immediately():
    scheduler = Scheduler(3600)
    calls = []

    async def job(stop):
        calls.append(stop)
        scheduler.stop()

    await asyncio.wait_for(scheduler.run(job), timeout=2)

    assert len(calls) == 1
    assert calls[0] is scheduler.stop_event
    assert scheduler.tick_count == 1
    assert not scheduler.running


async def test_jobs_run_in_order():
    scheduler = Scheduler(60)
    order = []

    async def first(stop):
        order.append("first")

    async def second(stop):
        order.append("second")

    await scheduler.tick(first, second)

    assert order == ["first", "second"]


async def test_job_cancelled_skips_rest_of_tick():
    scheduler = Scheduler(60)
    ran = []

    async def cancelled(stop):
        raise JobCancelled("shutdown requested")

    async def later(stop):
        ran.append("later")

    await scheduler.tick(cancelled, later)

    assert ran == []
    assert scheduler.last_errors == {}


async def test_failing_job_does_not_stop_next_job(caplog):
    scheduler = Scheduler(60)
    ran = []

    async def broken(stop):
        raise RuntimeError("database is down")

    async def later(stop):
        ran.append("later")

    await scheduler.tick(broken, later)

    assert ran == ["later"]
    assert scheduler.last_errors == {"broken": "RuntimeError: database is down"}
    assert "database is down" in caplog.text


async def test_successful_run_clears_previous_error():
    scheduler = Scheduler(60)
    fail = True

    async def flaky(stop):
        if fail:
            raise RuntimeError("boom")

    await scheduler.tick(flaky)
    assert "flaky" in scheduler.last_errors

    fail = False
    await scheduler.tick(flaky)
    assert scheduler.last_errors == {}


async def test_job_name_attribute_is_used():
    scheduler = Scheduler(60)

    class NamedJob:
        name = "set_nicknames"

        async def __call__(self, stop):
            raise RuntimeError("boom")

    await scheduler.tick(NamedJob())

    assert list(scheduler.last_errors) == ["set_nicknames"]


async def test_stop_interrupts_the_wait():
    scheduler = Scheduler(3600)
    ticked = asyncio.Event()

    async def job(stop):
        ticked.set()

    task = asyncio.create_task(scheduler.run(job))
    await asyncio.wait_for(ticked.wait(), timeout=2)

    scheduler.stop()
    await asyncio.wait_for(task, timeout=2)

    assert scheduler.tick_count == 1


async def test_ticks_repeat_every_interval():
    scheduler = Scheduler(0.01)
    calls = 0

    async def job(stop):
        nonlocal calls
        calls += 1
        if calls == 3:
            scheduler.stop()

    await asyncio.wait_for(scheduler.run(job), timeout=2)

    assert calls == 3


async def test_stopped_before_run_never_ticks():
    scheduler = Scheduler(60)
    scheduler.stop()

    async def job(stop):
        raise AssertionError("should not run")

    await asyncio.wait_for(scheduler.run(job), timeout=2)

    assert scheduler.tick_count == 0


async def test_stop_lets_running_job_finish():
    scheduler = Scheduler(60)
    started = asyncio.Event()
    release = asyncio.Event()
    finished = []

    async def slow(stop):
        started.set()
        await release.wait()
        finished.append(stop.is_set())

    task = asyncio.create_task(scheduler.run(slow))
    await asyncio.wait_for(started.wait(), timeout=2)

    scheduler.stop()
    release.set()
    await asyncio.wait_for(task, timeout=2)

    assert finished == [True]


async def test_run_twice_concurrently_is_rejected():
    scheduler = Scheduler(60)
    started = asyncio.Event()

    async def job(stop):
        started.set()

    task = asyncio.create_task(scheduler.run(job))
    await asyncio.wait_for(started.wait(), timeout=2)

    with pytest.raises(RuntimeError):
        await scheduler.run(job)

    scheduler.stop()
    await asyncio.wait_for(task, timeout=2)


def test_raise_if_stopped():
    stop = asyncio.Event()
    raise_if_stopped(stop)

    stop.set()
    with pytest.raises(JobCancelled):
        raise_if_stopped(stop)


async def test_cancelled_tick_is_followed_by_a_full_tick():
    scheduler = Scheduler(0.01)
    calls = []

    async def first(stop):
        calls.append(("first", scheduler.tick_count))
        if scheduler.tick_count == 1:
            raise JobCancelled("skip the rest of this tick")

    async def second(stop):
        calls.append(("second", scheduler.tick_count))
        scheduler.stop()

    await asyncio.wait_for(scheduler.run(first, second), timeout=2)

    assert calls == [("first", 1), ("first", 2), ("second", 2)]


async def test_cancelled_after_stop_exits_without_waiting():
    scheduler = Scheduler(3600)
    ran = []

    async def first(stop):
        scheduler.stop()
        raise JobCancelled("shutdown requested")

    async def second(stop):
        ran.append("second")

    await asyncio.wait_for(scheduler.run(first, second), timeout=2)

    assert ran == []
    assert scheduler.tick_count == 1
    assert not scheduler.running
