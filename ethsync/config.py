import os
from dataclasses import dataclass

DEFAULT_WORKERS_COUNT = 32
DEFAULT_STEP = 1000
DEFAULT_RANGE_SIZE = 100

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}
SINKS = ("dry_run", "kafka")


def _env_int(name: str, default: int | None = None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    start_block: int
    end_block: int

    chain: str = "eth"
    job_name: str = "eth_backfill"

    workers_count: int = DEFAULT_WORKERS_COUNT
    step: int = DEFAULT_STEP                # calls per batch chunk
    range_size: int = DEFAULT_RANGE_SIZE    # blocks per sync job

    rpc_timeout: float = 30.0
    rpc_max_attempts: int = 1
    rpc_retry_backoff: float = 0.5

    sync_logs: bool = True

    sink: str = "dry_run"
    kafka_broker: str | None = None
    kafka_topic_prefix: str = "blockchain.eth"

    metrics_port: int = 0

    def __post_init__(self):
        if not self.rpc_url:
            raise ValueError("RPC_URL is required")
        if self.start_block < 0:
            raise ValueError("START_BLOCK must be >= 0")
        if self.start_block > self.end_block:
            raise ValueError(
                f"START_BLOCK {self.start_block} > END_BLOCK {self.end_block}"
            )
        if self.workers_count < 1:
            raise ValueError("WORKERS_COUNT must be >= 1")
        if self.step < 1:
            raise ValueError("STEP must be >= 1")
        if self.range_size < 1:
            raise ValueError("RANGE_SIZE must be >= 1")
        if self.rpc_timeout <= 0:
            raise ValueError("RPC_TIMEOUT must be > 0")
        if self.rpc_max_attempts < 1:
            raise ValueError("RPC_MAX_ATTEMPTS must be >= 1")
        if self.sink not in SINKS:
            raise ValueError(f"SINK must be one of {SINKS}, got {self.sink!r}")
        if self.sink == "kafka" and not self.kafka_broker:
            raise ValueError("KAFKA_BROKER is required when SINK=kafka")

    @classmethod
    def from_env(cls) -> "Settings":
        chain = os.getenv("CHAIN", "eth").lower()

        start_block = _env_int("START_BLOCK")
        end_block = _env_int("END_BLOCK")
        if start_block is None or end_block is None:
            raise ValueError("START_BLOCK and END_BLOCK are required")

        # zero means "use the default", same as an unset variable
        workers_count = _env_int("WORKERS_COUNT", 0) or DEFAULT_WORKERS_COUNT
        step = _env_int("STEP", 0) or DEFAULT_STEP

        return cls(
            rpc_url=os.getenv("RPC_URL", ""),
            start_block=start_block,
            end_block=end_block,
            chain=chain,
            job_name=os.getenv("JOB_NAME", f"{chain}_backfill"),
            workers_count=workers_count,
            step=step,
            range_size=_env_int("RANGE_SIZE", DEFAULT_RANGE_SIZE),
            rpc_timeout=_env_float("RPC_TIMEOUT", 30.0),
            rpc_max_attempts=_env_int("RPC_MAX_ATTEMPTS", 1),
            rpc_retry_backoff=_env_float("RPC_RETRY_BACKOFF", 0.5),
            sync_logs=_env_bool("SYNC_LOGS", True),
            sink=os.getenv("SINK", "dry_run").lower(),
            kafka_broker=os.getenv("KAFKA_BROKER") or None,
            kafka_topic_prefix=os.getenv("KAFKA_TOPIC_PREFIX", f"blockchain.{chain}"),
            metrics_port=_env_int("METRICS_PORT", 0),
        )
