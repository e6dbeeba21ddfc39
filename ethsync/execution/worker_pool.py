import asyncio
from typing import Iterable

from ethsync.logging import log
from ethsync.metrics import MetricsContext
from .job import Job, WorkResult

_STOP = object()


class WorkerPool:
    """
    Fixed number of asyncio workers pulling Jobs from one queue.

    ``max_queue=0`` leaves the queue unbounded; otherwise ``submit`` waits
    for free space. A job's exception becomes its WorkResult and never
    reaches sibling jobs or the workers.
    """

    def __init__(
        self,
        workers: int,
        max_queue: int = 0,
        metrics: MetricsContext | None = None,
    ):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        self.size = workers
        self.queue: asyncio.Queue = asyncio.Queue(max_queue)
        self.metrics = metrics or MetricsContext()
        self.workers: list[asyncio.Task] = []
        self._closed = False

        for wid in range(workers):
            task = asyncio.create_task(self._worker_loop(wid))
            self.workers.append(task)

    async def __aenter__(self) -> "WorkerPool":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            await self.close()
        else:
            await self.cancel()

    async def submit(self, job: Job) -> asyncio.Future:
        """Queue ``job``; the returned future resolves to its WorkResult."""
        if self._closed:
            raise RuntimeError("WorkerPool already closed")

        fut = asyncio.get_running_loop().create_future()
        await self.queue.put((job, fut))
        self.metrics.pool_queue_size_set(self.queue.qsize())
        return fut

    async def map(self, jobs: Iterable[Job]) -> list[WorkResult]:
        """Run ``jobs`` and return their results in submission order."""
        futures = [await self.submit(job) for job in jobs]
        return list(await asyncio.gather(*futures))

    async def _worker_loop(self, wid: int):
        log.debug("worker_started", extra={"worker": wid})

        while True:
            item = await self.queue.get()

            if item is _STOP:
                self.queue.task_done()
                break

            job, fut = item
            self.metrics.pool_queue_size_set(self.queue.qsize())
            self.metrics.pool_busy_inc()
            try:
                result = await job.execute()
                if not fut.done():
                    fut.set_result(result)
            except asyncio.CancelledError:
                if not fut.done():
                    fut.cancel()
                raise
            finally:
                self.metrics.pool_busy_dec()
                self.queue.task_done()

        log.debug("worker_stopped", extra={"worker": wid})

    async def close(self):
        if self._closed:
            return

        self._closed = True

        # 等待所有 submit 的任务被 worker 消化
        await self.queue.join()

        for _ in self.workers:
            await self.queue.put(_STOP)

        await asyncio.gather(*self.workers, return_exceptions=True)

    async def cancel(self):
        """Stop immediately; queued and running jobs are cancelled."""
        self._closed = True
        for task in self.workers:
            task.cancel()
        await asyncio.gather(*self.workers, return_exceptions=True)

        while not self.queue.empty():
            item = self.queue.get_nowait()
            if item is not _STOP:
                _, fut = item
                if not fut.done():
                    fut.cancel()
            self.queue.task_done()
