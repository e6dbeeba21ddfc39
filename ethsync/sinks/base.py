from abc import ABC, abstractmethod

from ethsync.execution import JobResult
from ethsync.logging import log


class ResultSink(ABC):
    @abstractmethod
    def write(self, result: JobResult) -> None:
        """
        Persist all five record sets of ``result`` or raise.

        Implementations must not leave a partial write visible on failure.
        """
        raise NotImplementedError

    def close(self) -> None:
        pass


class DryRunSink(ResultSink):
    """Logs what would be written."""

    def write(self, result: JobResult) -> None:
        log.info(
            "dry_run_write",
            extra={
                "range_start": result.block_range.start_block,
                "range_end": result.block_range.end_block,
                **result.counts(),
            },
        )
