import time
from dataclasses import dataclass, field

from ethsync.control import JobStatus
from ethsync.decoding import (
    BlockRecord,
    ContractRecord,
    LogRecord,
    NftTransferRecord,
    RecordDecoder,
    TransactionRecord,
)
from ethsync.errors import ArgumentError
from ethsync.loading import RangeLoader
from ethsync.logging import log
from ethsync.metrics import MetricsContext
from ethsync.planning import BlockRange


# Range 数据面/执行结果（RPC → sink 的单位）
@dataclass
class JobResult:
    block_range: BlockRange
    blocks: list[BlockRecord] = field(default_factory=list)
    transactions: list[TransactionRecord] = field(default_factory=list)
    logs: list[LogRecord] = field(default_factory=list)
    nft_transfers: list[NftTransferRecord] = field(default_factory=list)
    contracts: list[ContractRecord] = field(default_factory=list)
    decode_errors: int = 0

    def record_sets(self) -> dict[str, list]:
        return {
            "blocks": self.blocks,
            "transactions": self.transactions,
            "logs": self.logs,
            "nft_transfers": self.nft_transfers,
            "contracts": self.contracts,
        }

    def counts(self) -> dict[str, int]:
        return {kind: len(records) for kind, records in self.record_sets().items()}


class SyncJob:
    """
    Fetch and decode one block range.

    FETCHING -> DECODING -> DONE, or FAILED from either stage. Failure is
    terminal and the underlying error is re-raised; no partial JobResult is
    ever returned. One instance runs once.
    """

    def __init__(
        self,
        loader: RangeLoader,
        decoder: RecordDecoder,
        metrics: MetricsContext | None = None,
    ):
        self.loader = loader
        self.decoder = decoder
        self.metrics = metrics or MetricsContext()

        self.status = JobStatus.FETCHING
        self.error: Exception | None = None
        self._started = False

    async def run(self, block_range: BlockRange) -> JobResult:
        if self._started:
            raise ArgumentError("SyncJob instances cannot be re-run")
        self._started = True

        if not isinstance(block_range, BlockRange) or block_range.start_block < 0 \
                or block_range.start_block > block_range.end_block:
            self._fail(ArgumentError(f"invalid block range: {block_range!r}"), block_range)
            raise self.error

        start = time.perf_counter()

        try:
            loaded = await self.loader.load(block_range.block_numbers)
        except Exception as e:
            self._fail(e, block_range)
            raise

        self.status = JobStatus.DECODING
        try:
            decoded = self.decoder.decode(loaded)
        except Exception as e:
            self._fail(e, block_range)
            raise

        self.status = JobStatus.DONE
        self.metrics.range_duration_observe(time.perf_counter() - start)

        return JobResult(
            block_range=block_range,
            blocks=decoded.blocks,
            transactions=decoded.transactions,
            logs=decoded.logs,
            nft_transfers=decoded.nft_transfers,
            contracts=decoded.contracts,
            decode_errors=decoded.decode_errors,
        )

    def _fail(self, error: Exception, block_range):
        stage = self.status
        self.status = JobStatus.FAILED
        self.error = error
        log.error(
            "❌sync_job_failed",
            extra={
                "stage": stage.value,
                "range_start": getattr(block_range, "start_block", None),
                "range_end": getattr(block_range, "end_block", None),
                "error_type": type(error).__name__,
                "error": str(error)[:200],
            },
        )
