from .job_status import JobStatus

__all__ = ["JobStatus"]
