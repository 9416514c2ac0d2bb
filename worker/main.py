"""RQ worker entrypoint."""

import os
import platform

import structlog
from rq import SimpleWorker, Worker
from rq.job import Job

from docindex.config import get_settings
from docindex.logging import setup_logging
from worker.redis import (
    QUEUE_DEFAULT,
    QUEUE_HIGH,
    QUEUE_LOW,
    get_redis_connection_bytes,
)

logger = structlog.get_logger(__name__)

QUEUES = [QUEUE_HIGH, QUEUE_DEFAULT, QUEUE_LOW]


def log_job_failure(job: Job, _exc_type: type, exc_value: BaseException, _traceback: object) -> bool:
    """RQ exception handler that records the failure and defers to the next handler."""
    logger.error(
        "job_failed",
        job_id=job.id,
        func=job.func_name,
        source_id=(job.meta or {}).get("source_id"),
        error=str(exc_value),
    )
    return True


def run_worker() -> None:
    """Start the RQ worker on all indexing queues."""
    settings = get_settings()
    setup_logging()

    logger.info("worker_starting", env=settings.env, queues=QUEUES)

    # No os.fork() on Windows
    worker_class = SimpleWorker if platform.system() == "Windows" else Worker

    worker = worker_class(
        QUEUES,
        connection=get_redis_connection_bytes(),
        name=f"docindex-worker-{os.getpid()}",
        exception_handlers=[log_job_failure],
    )
    worker.work(logging_level=settings.log_level)


if __name__ == "__main__":
    run_worker()
