from ethsync.errors import (
    ArgumentError,
    DecodeError,
    MalformedDataError,
    RPCError,
    SyncError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "DecodeError",
    "MalformedDataError",
    "RPCError",
    "SyncError",
    "TransportError",
]
