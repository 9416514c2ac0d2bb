"""Job queue service for documentation indexing jobs."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from functools import lru_cache
from typing import Any

from redis import Redis
from rq import Queue
from rq.job import Job

from worker.redis import (
    JOB_RESULT_TTL,
    QUEUE_DEFAULT,
    QUEUE_HIGH,
    QUEUE_LOW,
    get_redis_connection_bytes,
)

# Large sites with headless rendering can take a while
INDEX_JOB_TIMEOUT = 2 * 60 * 60


class JobStatus(StrEnum):
    """RQ job status values."""

    QUEUED = "queued"
    STARTED = "started"
    DEFERRED = "deferred"
    FINISHED = "finished"
    STOPPED = "stopped"
    SCHEDULED = "scheduled"
    FAILED = "failed"
    CANCELED = "canceled"


class QueuePriority(StrEnum):
    """Queue priority levels."""

    HIGH = "high"
    DEFAULT = "default"
    LOW = "low"


QUEUE_NAMES = {
    QueuePriority.HIGH: QUEUE_HIGH,
    QueuePriority.DEFAULT: QUEUE_DEFAULT,
    QueuePriority.LOW: QUEUE_LOW,
}


@dataclass
class JobInfo:
    """Job information wrapper."""

    id: str
    status: JobStatus
    created_at: datetime | None
    started_at: datetime | None
    ended_at: datetime | None
    result: Any | None
    error: str | None
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "result": self.result,
            "error": self.error,
            "meta": self.meta,
        }


def index_job_id(source_id: str) -> str:
    """Deterministic job ID so a source is indexed by one job at a time."""
    return f"index-source-{source_id}"


class JobQueue:
    """Service for enqueuing and inspecting indexing jobs."""

    def __init__(self, connection: Redis | None = None) -> None:
        self._conn = connection or get_redis_connection_bytes()
        self._queues = {
            priority: Queue(name, connection=self._conn) for priority, name in QUEUE_NAMES.items()
        }

    def get_queue(self, priority: QueuePriority = QueuePriority.DEFAULT) -> Queue:
        return self._queues[priority]

    def enqueue_index_source(
        self,
        source_id: str,
        priority: QueuePriority = QueuePriority.DEFAULT,
        job_timeout: int = INDEX_JOB_TIMEOUT,
    ) -> Job:
        """
        Enqueue indexing of a documentation source.

        Returns the existing job when one for the same source is still
        queued or running.
        """
        job_id = index_job_id(source_id)
        existing = self.get_job(job_id)
        if existing is not None and existing.get_status() in (
            JobStatus.QUEUED,
            JobStatus.STARTED,
            JobStatus.DEFERRED,
            JobStatus.SCHEDULED,
        ):
            return existing

        return self.get_queue(priority).enqueue(
            "worker.tasks.index_source.index_source_job",
            source_id,
            job_id=job_id,
            job_timeout=job_timeout,
            result_ttl=JOB_RESULT_TTL,
            meta={"source_id": source_id},
        )

    def get_job(self, job_id: str) -> Job | None:
        try:
            return Job.fetch(job_id, connection=self._conn)
        except Exception:
            return None

    def get_job_info(self, job_id: str) -> JobInfo | None:
        """Get job information by ID."""
        job = self.get_job(job_id)
        if not job:
            return None

        status = JobStatus(job.get_status() or "queued")
        error = None

        if status == JobStatus.FAILED and job.exc_info:
            error = str(job.exc_info)

        return JobInfo(
            id=job.id,
            status=status,
            created_at=job.created_at,
            started_at=job.started_at,
            ended_at=job.ended_at,
            result=job.result if status == JobStatus.FINISHED else None,
            error=error,
            meta=job.meta or {},
        )

    def cancel_job(self, job_id: str) -> bool:
        """Cancel a job that has not started yet."""
        job = self.get_job(job_id)
        if not job:
            return False

        if job.get_status() in (JobStatus.QUEUED, JobStatus.DEFERRED, JobStatus.SCHEDULED):
            job.cancel()
            return True
        return False

    def get_queue_stats(self) -> dict[str, Any]:
        return {
            priority.value: {
                "name": queue.name,
                "count": len(queue),
                "started_jobs": queue.started_job_registry.count,
                "finished_jobs": queue.finished_job_registry.count,
                "failed_jobs": queue.failed_job_registry.count,
            }
            for priority, queue in self._queues.items()
        }


@lru_cache
def get_job_queue() -> JobQueue:
    """Get the shared job queue."""
    return JobQueue()
