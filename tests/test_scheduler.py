"""Monitoring scheduler guard and lifecycle."""

import asyncio

from media_relay.scheduler import JOB_ID, MonitoringScheduler


def test_trigger_runs_cycle():
    runs = []

    async def cycle():
        runs.append(1)

    scheduler = MonitoringScheduler(cycle)

    assert asyncio.run(scheduler.trigger()) is True
    assert runs == [1]
    assert scheduler.last_run_at is not None


def test_concurrent_trigger_is_skipped():
    runs = []

    async def scenario():
        gate = asyncio.Event()

        async def cycle():
            runs.append(1)
            await gate.wait()

        scheduler = MonitoringScheduler(cycle)
        first = asyncio.create_task(scheduler.trigger())
        await asyncio.sleep(0)
        assert scheduler.is_cycle_in_progress
        second = await scheduler.trigger()
        gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert runs == [1]


def test_cycle_error_is_contained():
    async def cycle():
        raise RuntimeError("database locked")

    scheduler = MonitoringScheduler(cycle)

    assert asyncio.run(scheduler.trigger()) is True
    assert not scheduler.is_cycle_in_progress


def test_start_twice_and_stop():
    async def scenario():
        async def cycle():
            return None

        scheduler = MonitoringScheduler(cycle, interval_seconds=60, run_on_start=False)
        scheduler.start()
        first = scheduler._scheduler
        scheduler.start()
        assert scheduler._scheduler is first
        job = first.get_job(JOB_ID)
        assert job.max_instances == 1
        assert job.coalesce is True
        scheduler.stop()
        return scheduler.is_running

    assert asyncio.run(scenario()) is False
