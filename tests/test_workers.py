from __future__ import annotations

import asyncio

import pytest

from core.workers import WorkerPool, cancel_and_wait


def test_jobs_run_and_errors_are_contained() -> None:
    async def scenario() -> list[str]:
        done: list[str] = []

        async def ok() -> None:
            done.append("ok")

        async def broken() -> None:
            raise RuntimeError("boom")

        pool = WorkerPool("test-pool", workers=1, queue_size=5)
        pool.start()
        pool.submit(broken)
        pool.submit(ok)
        await asyncio.wait_for(pool.join(), timeout=1)
        await pool.stop()
        return done

    assert asyncio.run(scenario()) == ["ok"]


def test_full_queue_drops_jobs() -> None:
    async def scenario() -> list[bool]:
        async def job() -> None:
            return None

        pool = WorkerPool("test-pool", workers=1, queue_size=2)
        results = [pool.submit(job) for _ in range(4)]
        await pool.stop()
        return results

    assert asyncio.run(scenario()) == [True, True, False, False]


def test_stop_discards_pending_jobs() -> None:
    async def scenario() -> tuple[list[str], bool]:
        done: list[str] = []
        release = asyncio.Event()

        async def blocking() -> None:
            await release.wait()
            done.append("blocking")

        async def pending() -> None:
            done.append("pending")

        pool = WorkerPool("test-pool", workers=1, queue_size=5)
        pool.start()
        pool.submit(blocking)
        pool.submit(pending)
        await asyncio.sleep(0.01)
        await pool.stop()
        return done, pool.running

    done, running = asyncio.run(scenario())

    assert done == []
    assert not running


def test_pool_needs_at_least_one_worker() -> None:
    with pytest.raises(ValueError):
        WorkerPool("test-pool", workers=0)


def test_cancel_and_wait_absorbs_the_task_cancellation() -> None:
    async def scenario() -> bool:
        task = asyncio.create_task(asyncio.sleep(10))
        await asyncio.sleep(0)
        await cancel_and_wait(task)
        await cancel_and_wait(None)
        return task.cancelled()

    assert asyncio.run(scenario())


def test_cancel_and_wait_propagates_the_callers_cancellation() -> None:
    async def scenario() -> bool:
        async def slow_to_stop() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                await asyncio.sleep(0.2)
                raise

        child = asyncio.create_task(slow_to_stop())
        await asyncio.sleep(0)
        waiter = asyncio.create_task(cancel_and_wait(child))
        await asyncio.sleep(0.05)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        return waiter.cancelled()

    assert asyncio.run(scenario())
