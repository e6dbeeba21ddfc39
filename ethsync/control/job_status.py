from enum import Enum


# SyncJob 状态机
class JobStatus(str, Enum):
    FETCHING = "FETCHING"
    DECODING = "DECODING"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)
