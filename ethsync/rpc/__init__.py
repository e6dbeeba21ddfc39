from .client import AsyncRpcClient, BatchTransport, RpcCall, RpcResponse
from .batch import BatchFetcher, RetryPolicy

__all__ = [
    "AsyncRpcClient",
    "BatchTransport",
    "RpcCall",
    "RpcResponse",
    "BatchFetcher",
    "RetryPolicy",
]
