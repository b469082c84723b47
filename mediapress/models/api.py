from datetime import datetime
from typing import Any, Dict, List, Optional

from .base import CamelModel
from .job import Job, JobResult, JobStatus, MediaKind


class CompressionResponse(CamelModel):
    job_id: str
    status: JobStatus
    estimated_time: str
    message: str


class JobStatusResponse(CamelModel):
    job_id: str
    status: JobStatus
    type: MediaKind
    created_at: datetime
    completed_at: Optional[datetime] = None
    progress: int = 0
    error: Optional[str] = None
    results: Optional[JobResult] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusResponse":
        return cls(
            job_id=job.id,
            status=job.status,
            type=job.type,
            created_at=job.created_at,
            completed_at=job.completed_at,
            progress=job.progress,
            error=job.error,
            results=job.results,
        )


class JobListResponse(CamelModel):
    jobs: List[JobStatusResponse]
    total: int
    limit: int
    offset: int


class DeleteJobResponse(CamelModel):
    job_id: str
    message: str
    artifacts_deleted: int = 0
    artifacts_failed: int = 0


class ProcessResponse(CamelModel):
    success: bool
    job_id: Optional[str] = None
    state: str
    status: Optional[JobStatus] = None
    message: str


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    version: str
    services: Dict[str, bool]
    queues: Dict[str, int]
    config: Dict[str, Any]
