import asyncio

import pytest

from ethsync.errors import ArgumentError
from ethsync.execution import Job, WorkerPool, WorkResult


async def double(x: int) -> int:
    await asyncio.sleep(0.001)
    return x * 2


async def fail_on_three(x: int) -> int:
    if x == 3:
        raise ArgumentError(f"bad unit {x}")
    return await double(x)


@pytest.mark.parametrize("workers", [1, 2, 8])
def test_one_failure_is_isolated(workers):
    async def main():
        async with WorkerPool(workers) as pool:
            return await pool.map(Job(fn=fail_on_three, args=i) for i in range(6))

    results = asyncio.run(main())

    assert len(results) == 6
    assert sum(r.ok for r in results) == 5
    failed = [r for r in results if not r.ok]
    assert len(failed) == 1
    assert isinstance(failed[0].error, ArgumentError)
    assert [r.value for r in results if r.ok] == [0, 2, 4, 8, 10]


def test_concurrency_never_exceeds_worker_count():
    running = 0
    peak = 0

    async def track(x):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return x

    async def main():
        async with WorkerPool(3) as pool:
            return await pool.map(Job(fn=track, args=i) for i in range(12))

    results = asyncio.run(main())

    assert [r.value for r in results] == list(range(12))
    assert peak == 3


def test_submit_returns_handle():
    async def main():
        async with WorkerPool(2) as pool:
            fut = await pool.submit(Job(fn=double, args=21))
            return await fut

    result = asyncio.run(main())
    assert result == WorkResult(value=42)
    assert result.unwrap() == 42


def test_unwrap_raises_job_error():
    result = WorkResult(error=ArgumentError("nope"))
    with pytest.raises(ArgumentError):
        result.unwrap()


def test_bounded_queue_still_runs_everything():
    async def main():
        async with WorkerPool(1, max_queue=1) as pool:
            return await pool.map(Job(fn=double, args=i) for i in range(5))

    assert [r.value for r in asyncio.run(main())] == [0, 2, 4, 6, 8]


def test_submit_after_close_rejected():
    async def main():
        pool = WorkerPool(1)
        await pool.close()
        await pool.submit(Job(fn=double, args=1))

    with pytest.raises(RuntimeError):
        asyncio.run(main())


def test_cancel_cancels_pending_handles():
    async def slow(x):
        await asyncio.sleep(10)

    async def main():
        pool = WorkerPool(1)
        first = await pool.submit(Job(fn=slow, args=1))
        second = await pool.submit(Job(fn=slow, args=2))
        await asyncio.sleep(0.01)
        await pool.cancel()
        return first.cancelled(), second.cancelled()

    assert asyncio.run(main()) == (True, True)


def test_invalid_worker_count():
    async def main():
        WorkerPool(0)

    with pytest.raises(ValueError):
        asyncio.run(main())
