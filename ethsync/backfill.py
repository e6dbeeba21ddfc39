import asyncio
from dataclasses import dataclass, field

from ethsync.config import Settings
from ethsync.decoding import RecordDecoder
from ethsync.execution import Job, JobResult, OrderedResultBuffer, SyncJob, WorkerPool
from ethsync.loading import RangeLoader
from ethsync.logging import log
from ethsync.metrics import MetricsContext
from ethsync.planning import BlockRange, BoundedRangePlanner
from ethsync.rpc import BatchFetcher, BatchTransport, RetryPolicy
from ethsync.sinks import ResultSink


@dataclass
class BackfillSummary:
    committed: list[BlockRange] = field(default_factory=list)
    failed: list[tuple[BlockRange, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Backfill:
    """
    Sync ``[start_block, end_block]`` range by range through a WorkerPool
    and hand every successful JobResult to the sink in ascending range order.
    Failed ranges are reported, never retried here.
    """

    def __init__(
        self,
        settings: Settings,
        client: BatchTransport,
        sink: ResultSink,
        metrics: MetricsContext | None = None,
    ):
        self.settings = settings
        self.sink = sink
        self.metrics = metrics or MetricsContext(chain=settings.chain, job=settings.job_name)

        fetcher = BatchFetcher(
            client,
            chunk_size=settings.step,
            timeout=settings.rpc_timeout,
            retry=RetryPolicy(
                max_attempts=settings.rpc_max_attempts,
                backoff=settings.rpc_retry_backoff,
            ),
            metrics=self.metrics,
        )
        self.loader = RangeLoader(fetcher)
        self.decoder = RecordDecoder(sync_logs=settings.sync_logs, metrics=self.metrics)

        # window over inflight plus buffered ranges
        self.max_inflight = settings.workers_count * 2

    async def sync_range(self, block_range: BlockRange) -> JobResult:
        return await SyncJob(self.loader, self.decoder, self.metrics).run(block_range)

    async def run(self) -> BackfillSummary:
        s = self.settings
        log.info(
            "🚀 backfill_start",
            extra={
                "chain": s.chain,
                "job": s.job_name,
                "start_block": s.start_block,
                "end_block": s.end_block,
                "range_size": s.range_size,
                "workers": s.workers_count,
                "step": s.step,
                "sync_logs": s.sync_logs,
            },
        )

        planner = BoundedRangePlanner(s.start_block, s.end_block, s.range_size)
        buffer = OrderedResultBuffer()
        summary = BackfillSummary()
        inflight: dict[asyncio.Future, BlockRange] = {}

        async with WorkerPool(s.workers_count, metrics=self.metrics) as pool:
            await self._refill(pool, planner, inflight, buffer)

            while inflight:
                done, _ = await asyncio.wait(
                    inflight,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for fut in done:
                    r = inflight.pop(fut)
                    buffer.add(r.range_id, (r, fut.result()))

                await self._commit_ready(buffer, summary)
                await self._refill(pool, planner, inflight, buffer)

        log.info(
            "🏁 backfill_done",
            extra={
                "committed_ranges": len(summary.committed),
                "failed_ranges": len(summary.failed),
            },
        )
        return summary

    async def _refill(
        self,
        pool: WorkerPool,
        planner: BoundedRangePlanner,
        inflight: dict,
        buffer: OrderedResultBuffer,
    ):
        # finished results still waiting on an earlier range count against the window
        while len(inflight) + len(buffer) < self.max_inflight:
            r = planner.next_range()
            if r is None:
                return
            fut = await pool.submit(
                Job(fn=self.sync_range, args=r, name=f"range-{r.range_id}")
            )
            inflight[fut] = r
            self.metrics.range_submitted_inc()

    async def _commit_ready(self, buffer: OrderedResultBuffer, summary: BackfillSummary):
        for _, (r, result) in buffer.pop_ready():
            if not result.ok:
                self._mark_failed(r, result.error, summary)
                continue

            try:
                await asyncio.to_thread(self.sink.write, result.value)
            except Exception as e:
                log.exception(
                    "❌range_commit_failed",
                    extra={"range_start": r.start_block, "range_end": r.end_block},
                )
                self._mark_failed(r, e, summary)
                continue

            summary.committed.append(r)
            self.metrics.range_committed_inc()
            log.info(
                "✅ range_committed",
                extra={
                    "range_id": r.range_id,
                    "start": r.start_block,
                    "end": r.end_block,
                    "decode_errors": result.value.decode_errors,
                    **result.value.counts(),
                },
            )

    def _mark_failed(self, r: BlockRange, error: Exception, summary: BackfillSummary):
        summary.failed.append((r, error))
        self.metrics.range_failed_inc()
        log.error(
            "❌range_failed",
            extra={
                "range_id": r.range_id,
                "start": r.start_block,
                "end": r.end_block,
                "error_type": type(error).__name__,
                "error": str(error)[:200],
            },
        )
