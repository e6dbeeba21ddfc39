from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from ethsync.logging import log

InT = TypeVar("InT")
OutT = TypeVar("OutT")

ExecutionFn = Callable[[InT], Awaitable[OutT]]


@dataclass(frozen=True)
class WorkResult(Generic[OutT]):
    """Outcome of one Job: exactly one of ``value`` / ``error`` is meaningful."""
    value: Optional[OutT] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> OutT:
        if self.error is not None:
            raise self.error
        return self.value


@dataclass(frozen=True)
class Job(Generic[InT, OutT]):
    """Smallest schedulable unit: an async function and the argument it runs on."""
    fn: ExecutionFn
    args: InT
    name: str = ""

    async def execute(self) -> WorkResult[OutT]:
        try:
            value = await self.fn(self.args)
        except Exception as e:
            log.warning(
                "job_execute_error",
                extra={
                    "job": self.name,
                    "error_type": type(e).__name__,
                    "error": str(e)[:200],
                },
            )
            return WorkResult(error=e)

        return WorkResult(value=value)
