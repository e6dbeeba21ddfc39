# -----------------------------
# Exceptions
# -----------------------------
class SyncError(Exception):
    """Base class for every error raised by the sync pipeline."""


class TransportError(SyncError):
    """Network failure or timeout of a whole batch call."""


class RPCError(SyncError):
    """Node-side failure reported for a single call inside a batch."""

    def __init__(self, message: str, *, code: int | None = None, method: str | None = None):
        super().__init__(message)
        self.code = code
        self.method = method

    def __str__(self):
        parts = [super().__str__()]
        if self.method:
            parts.append(f"method={self.method}")
        if self.code is not None:
            parts.append(f"code={self.code}")
        return " ".join(parts)


class DecodeError(SyncError):
    """A log could not be parsed as the expected event layout. Never job-fatal."""


class MalformedDataError(SyncError):
    """Raw block/transaction/receipt data cannot be parsed at all. Job-fatal."""


class ArgumentError(SyncError):
    """A work unit was invoked with a malformed argument."""
