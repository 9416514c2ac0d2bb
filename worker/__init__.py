"""Documentation indexing worker package."""

# Submodules pull in rq, playwright and redis; import them explicitly:
# from worker.queue import JobQueue, QueuePriority
# from worker.tasks.index_source import run_index_job

from typing import Any

__all__ = [
    "JobQueue",
    "JobInfo",
    "JobStatus",
    "QueuePriority",
    "get_job_queue",
]


def __getattr__(name: str) -> Any:
    """Lazy import for the queue service."""
    if name in __all__:
        from worker import queue

        return getattr(queue, name)
    raise AttributeError(f"module 'worker' has no attribute '{name}'")
