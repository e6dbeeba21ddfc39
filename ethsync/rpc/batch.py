import asyncio
import time
from dataclasses import dataclass
from typing import Any

from ethsync.errors import RPCError, TransportError
from ethsync.logging import log
from ethsync.metrics import MetricsContext
from ethsync.rpc.client import BatchTransport, RpcCall


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry of a failed chunk.

    Only TransportError is retried; a node-side RPCError is final.
    ``max_attempts=1`` disables retry.
    """
    max_attempts: int = 1
    backoff: float = 0.5
    max_backoff: float = 10.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff must be >= 0")

    def delay(self, attempt: int) -> float:
        return min(self.backoff * (2 ** (attempt - 1)), self.max_backoff)


def chunked(items: list, size: int) -> list[list]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchFetcher:
    """
    Issues RPC calls as sequential, time-bounded batches of at most
    ``chunk_size`` calls and returns one result per call, in order.
    """

    def __init__(
        self,
        client: BatchTransport,
        chunk_size: int,
        timeout: float,
        retry: RetryPolicy | None = None,
        metrics: MetricsContext | None = None,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")

        self.client = client
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.metrics = metrics or MetricsContext()

    async def fetch(self, calls: list[RpcCall]) -> list[Any]:
        results: list[Any] = []
        for chunk in chunked(calls, self.chunk_size):
            results.extend(await self._fetch_chunk(chunk))
        return results

    async def _fetch_chunk(self, chunk: list[RpcCall]) -> list[Any]:
        attempt = 1
        while True:
            try:
                return await self._call_once(chunk)
            except TransportError as e:
                if attempt >= self.retry.max_attempts:
                    raise
                backoff = self.retry.delay(attempt)
                log.warning(
                    "⚠️ batch_call_retry",
                    extra={
                        "attempt": attempt,
                        "max_attempts": self.retry.max_attempts,
                        "backoff_seconds": backoff,
                        "calls": len(chunk),
                        "error": str(e)[:200],
                    },
                )
                self.metrics.rpc_batch_retry_inc()
                attempt += 1
                await asyncio.sleep(backoff)

    async def _call_once(self, chunk: list[RpcCall]) -> list[Any]:
        self.metrics.rpc_batch_inc(len(chunk))
        start = time.perf_counter()

        try:
            responses = await asyncio.wait_for(
                self.client.batch_call(chunk), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            self.metrics.rpc_batch_failed_inc("timeout")
            log.warning(
                "batch_call_timeout",
                extra={"calls": len(chunk), "timeout_seconds": self.timeout},
            )
            raise TransportError(
                f"batch of {len(chunk)} calls timed out after {self.timeout}s"
            ) from e
        except TransportError as e:
            self.metrics.rpc_batch_failed_inc("transport")
            log.warning(
                "batch_call_failed",
                extra={"calls": len(chunk), "error": str(e)[:200]},
            )
            raise
        finally:
            self.metrics.rpc_batch_latency_observe(time.perf_counter() - start)

        if len(responses) != len(chunk):
            self.metrics.rpc_batch_failed_inc("transport")
            raise TransportError(
                f"batch returned {len(responses)} responses for {len(chunk)} calls"
            )

        results = []
        for call, resp in zip(chunk, responses):
            if resp.error is not None:
                self.metrics.rpc_batch_failed_inc("rpc")
                err = resp.error if isinstance(resp.error, dict) else {"message": str(resp.error)}
                raise RPCError(
                    str(err.get("message", "unknown rpc error")),
                    code=err.get("code"),
                    method=call.method,
                )
            results.append(resp.result)
        return results
