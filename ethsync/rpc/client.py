import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from ethsync.errors import TransportError
from ethsync.logging import log

# 禁用 brotli，避免 aiohttp / brotli 兼容问题
RPC_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Accept-Encoding": "gzip, deflate",
}


@dataclass(frozen=True)
class RpcCall:
    method: str
    params: list = field(default_factory=list)


@dataclass(frozen=True)
class RpcResponse:
    """Outcome of one call inside a batch: either ``result`` or ``error``."""
    result: Any = None
    error: dict | None = None


class BatchTransport(ABC):
    @abstractmethod
    async def batch_call(self, calls: list[RpcCall]) -> list[RpcResponse]:
        """
        Send ``calls`` as one JSON-RPC batch.

        Returns one RpcResponse per call, in the same order as ``calls``.
        Raises TransportError when the batch as a whole could not be
        delivered or answered.
        """
        raise NotImplementedError


# -----------------------------
# AsyncRpcClient
# 发送 JSON-RPC batch，按 id 还原顺序
# -----------------------------
class AsyncRpcClient(BatchTransport):
    def __init__(self, url: str, timeout: float | None = None):
        self.url = url
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=RPC_HEADERS,
            )
        return self._session

    async def batch_call(self, calls: list[RpcCall]) -> list[RpcResponse]:
        if not calls:
            return []

        payload = [
            {
                "jsonrpc": "2.0",
                "id": i,
                "method": c.method,
                "params": list(c.params),
            }
            for i, c in enumerate(calls)
        ]

        try:
            async with self._get_session().post(self.url, json=payload) as resp:
                if resp.status == 429:
                    raise TransportError("HTTP 429 rate limited")
                if resp.status >= 400:
                    raise TransportError(f"HTTP {resp.status} from {self.url}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        return self._match_responses(calls, data)

    @staticmethod
    def _match_responses(calls: list[RpcCall], data) -> list[RpcResponse]:
        # some nodes answer an invalid batch with a single error object
        if isinstance(data, dict) and "error" in data:
            err = data["error"] or {}
            return [RpcResponse(error=err) for _ in calls]

        if not isinstance(data, list):
            raise TransportError(f"unexpected batch response type: {type(data).__name__}")

        by_id = {}
        for item in data:
            if isinstance(item, dict) and "id" in item:
                by_id[item["id"]] = item

        responses = []
        for i, _ in enumerate(calls):
            item = by_id.get(i)
            if item is None:
                responses.append(
                    RpcResponse(error={"code": None, "message": "missing response in batch"})
                )
            elif item.get("error") is not None:
                responses.append(RpcResponse(error=item["error"]))
            else:
                responses.append(RpcResponse(result=item.get("result")))
        return responses

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
            log.info("rpc_client_closed")
