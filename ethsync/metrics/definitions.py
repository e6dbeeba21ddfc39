from prometheus_client import Counter, Gauge, Histogram

# -----------------------------
# RPC
# -----------------------------
RPC_BATCHES = Counter(
    "rpc_batches_total",
    "Batched RPC requests issued",
    ["chain", "job"],
)
RPC_CALLS = Counter(
    "rpc_calls_total",
    "Individual RPC calls issued inside batches",
    ["chain", "job"],
)
RPC_BATCH_FAILED = Counter(
    "rpc_batch_failed_total",
    "Batched RPC requests that failed",
    ["chain", "job", "kind"],
)
RPC_BATCH_RETRIES = Counter(
    "rpc_batch_retries_total",
    "Batched RPC requests retried after a transport failure",
    ["chain", "job"],
)
RPC_BATCH_LATENCY = Histogram(
    "rpc_batch_latency_seconds",
    "Batched RPC call latency",
    ["chain", "job"],
    buckets=(0.1, 0.2, 0.5, 1, 2, 5, 10, 20, 30, 60),
)

# -----------------------------
# Ranges
# -----------------------------
RANGE_SUBMITTED = Counter(
    "ingestion_range_submitted_total",
    "Ranges submitted to the worker pool",
    ["chain", "job"],
)
RANGE_COMMITTED = Counter(
    "ingestion_range_committed_total",
    "Ranges decoded and committed to the sink",
    ["chain", "job"],
)
RANGE_FAILED = Counter(
    "ingestion_range_failed_total",
    "Ranges abandoned after a job failure",
    ["chain", "job"],
)
RANGE_DURATION = Histogram(
    "ingestion_range_duration_seconds",
    "Time to fetch and decode one range",
    ["chain", "job"],
    buckets=(1, 2, 3, 5, 8, 13, 21, 34, 55, 89),
)

# -----------------------------
# Records
# -----------------------------
RECORDS_DECODED = Counter(
    "ingestion_records_total",
    "Records decoded by kind",
    ["chain", "job", "kind"],
)
NFT_DECODE_FAILED = Counter(
    "ingestion_nft_decode_failed_total",
    "Transfer logs whose NFT payload could not be decoded",
    ["chain", "job"],
)

# -----------------------------
# Worker pool
# -----------------------------
POOL_QUEUE_SIZE = Gauge(
    "worker_pool_queue_size",
    "Jobs waiting for a free worker",
    ["chain", "job"],
)
POOL_BUSY_WORKERS = Gauge(
    "worker_pool_busy",
    "Workers currently running a job",
    ["chain", "job"],
)
