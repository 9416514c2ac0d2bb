"""Tests for job queue functionality."""

from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

from worker.queue import (
    INDEX_JOB_TIMEOUT,
    QUEUE_NAMES,
    JobInfo,
    JobQueue,
    JobStatus,
    QueuePriority,
    index_job_id,
)


class TestJobStatus:
    """Tests for JobStatus enum."""

    def test_job_status_values(self) -> None:
        """Test all job status values exist."""
        assert JobStatus.QUEUED.value == "queued"
        assert JobStatus.STARTED.value == "started"
        assert JobStatus.FINISHED.value == "finished"
        assert JobStatus.FAILED.value == "failed"
        assert JobStatus.CANCELED.value == "canceled"

    def test_job_status_from_string(self) -> None:
        """Test creating status from string."""
        assert JobStatus("queued") == JobStatus.QUEUED


class TestQueueNames:
    """Tests for queue name constants."""

    def test_queue_names(self) -> None:
        """Priorities map onto the docindex queues."""
        assert QUEUE_NAMES == {
            QueuePriority.HIGH: "docindex-high",
            QueuePriority.DEFAULT: "docindex-default",
            QueuePriority.LOW: "docindex-low",
        }

    def test_job_result_ttl(self) -> None:
        """Job results are kept for 7 days."""
        from worker.redis import JOB_RESULT_TTL

        assert JOB_RESULT_TTL == 60 * 60 * 24 * 7


class TestJobInfo:
    """Tests for JobInfo dataclass."""

    def test_job_info_to_dict(self) -> None:
        """Test converting JobInfo to dict."""
        now = datetime.now(UTC)
        info = JobInfo(
            id="index-source-1",
            status=JobStatus.FINISHED,
            created_at=now,
            started_at=now,
            ended_at=None,
            result={"success": True, "document_count": 12},
            error=None,
            meta={"source_id": "1"},
        )

        result = info.to_dict()

        assert result["status"] == "finished"
        assert result["created_at"] == now.isoformat()
        assert result["ended_at"] is None
        assert result["result"]["document_count"] == 12
        assert result["meta"] == {"source_id": "1"}


class TestJobQueue:
    """Tests for JobQueue with a mocked Redis connection."""

    def test_index_job_id_is_deterministic(self) -> None:
        """One job ID per source."""
        assert index_job_id("abc") == "index-source-abc" == index_job_id("abc")

    def test_enqueue_new_job(self) -> None:
        """A source without an active job is enqueued on the chosen queue."""
        queue = JobQueue(connection=MagicMock())
        target = MagicMock()
        queue._queues[QueuePriority.HIGH] = target

        with patch.object(queue, "get_job", return_value=None):
            queue.enqueue_index_source("abc", priority=QueuePriority.HIGH)

        target.enqueue.assert_called_once()
        args, kwargs = target.enqueue.call_args
        assert args == ("worker.tasks.index_source.index_source_job", "abc")
        assert kwargs["job_id"] == "index-source-abc"
        assert kwargs["job_timeout"] == INDEX_JOB_TIMEOUT
        assert kwargs["meta"] == {"source_id": "abc"}

    def test_active_job_is_reused(self) -> None:
        """A queued or running job for the same source is returned as is."""
        queue = JobQueue(connection=MagicMock())
        existing = MagicMock()
        existing.get_status.return_value = "started"
        target = MagicMock()
        queue._queues[QueuePriority.DEFAULT] = target

        with patch.object(queue, "get_job", return_value=existing):
            job = queue.enqueue_index_source("abc")

        assert job is existing
        target.enqueue.assert_not_called()

    def test_finished_job_is_replaced(self) -> None:
        """Finished jobs do not block re-indexing."""
        queue = JobQueue(connection=MagicMock())
        existing = MagicMock()
        existing.get_status.return_value = "finished"
        target = MagicMock()
        queue._queues[QueuePriority.DEFAULT] = target

        with patch.object(queue, "get_job", return_value=existing):
            queue.enqueue_index_source("abc")

        target.enqueue.assert_called_once()

    def test_cancel_only_pending_jobs(self) -> None:
        """Running jobs cannot be canceled."""
        queue = JobQueue(connection=MagicMock())
        pending = MagicMock()
        pending.get_status.return_value = "queued"
        running = MagicMock()
        running.get_status.return_value = "started"

        with patch.object(queue, "get_job", return_value=pending):
            assert queue.cancel_job("index-source-1") is True
        pending.cancel.assert_called_once()

        with patch.object(queue, "get_job", return_value=running):
            assert queue.cancel_job("index-source-2") is False

        with patch.object(queue, "get_job", return_value=None):
            assert queue.cancel_job("missing") is False

    def test_failed_job_info_carries_error(self) -> None:
        """Failed jobs expose their exception text."""
        queue = JobQueue(connection=MagicMock())
        job = MagicMock()
        job.id = "index-source-1"
        job.get_status.return_value = "failed"
        job.exc_info = "RuntimeError: boom"
        job.meta = {"source_id": "1"}

        with patch.object(queue, "get_job", return_value=job):
            info = queue.get_job_info("index-source-1")

        assert info is not None
        assert info.status == JobStatus.FAILED
        assert info.error == "RuntimeError: boom"
        assert info.result is None
