from .job import Job, WorkResult
from .worker_pool import WorkerPool
from .ordered_buffer import OrderedResultBuffer
from .sync_job import JobResult, SyncJob

__all__ = [
    "Job",
    "WorkResult",
    "WorkerPool",
    "OrderedResultBuffer",
    "JobResult",
    "SyncJob",
]
