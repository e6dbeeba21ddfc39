# ethsync/metrics/context.py
from dataclasses import dataclass
from . import definitions as m


@dataclass(frozen=True)
class MetricsContext:
    chain: str = "unknown"
    job: str = "unknown"

    @property
    def _base(self) -> dict:
        return dict(chain=self.chain, job=self.job)

    # ===== RPC helpers =====
    def rpc_batch_inc(self, calls: int):
        m.RPC_BATCHES.labels(**self._base).inc()
        m.RPC_CALLS.labels(**self._base).inc(calls)

    def rpc_batch_failed_inc(self, kind: str):
        m.RPC_BATCH_FAILED.labels(kind=kind, **self._base).inc()

    def rpc_batch_retry_inc(self):
        m.RPC_BATCH_RETRIES.labels(**self._base).inc()

    def rpc_batch_latency_observe(self, seconds: float):
        m.RPC_BATCH_LATENCY.labels(**self._base).observe(seconds)

    # ===== Range helpers =====
    def range_submitted_inc(self):
        m.RANGE_SUBMITTED.labels(**self._base).inc()

    def range_committed_inc(self):
        m.RANGE_COMMITTED.labels(**self._base).inc()

    def range_failed_inc(self):
        m.RANGE_FAILED.labels(**self._base).inc()

    def range_duration_observe(self, seconds: float):
        m.RANGE_DURATION.labels(**self._base).observe(seconds)

    # ===== Record helpers =====
    def records_inc(self, kind: str, count: int):
        if count:
            m.RECORDS_DECODED.labels(kind=kind, **self._base).inc(count)

    def nft_decode_failed_inc(self):
        m.NFT_DECODE_FAILED.labels(**self._base).inc()

    # ===== Pool helpers =====
    def pool_queue_size_set(self, value: int):
        m.POOL_QUEUE_SIZE.labels(**self._base).set(value)

    def pool_busy_inc(self):
        m.POOL_BUSY_WORKERS.labels(**self._base).inc()

    def pool_busy_dec(self):
        m.POOL_BUSY_WORKERS.labels(**self._base).dec()
