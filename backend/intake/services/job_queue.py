"""intake/services/job_queue.py

Single-worker FIFO job queue owned by whoever creates it (one per app, one
per test). Jobs run strictly one at a time, which also keeps batch-level
work ordered per submission.

Cancellation:
- pending job: marked cancelled, never started
- running job: its cancel_event is set; the handler stops at the next
  checkpoint and raises JOB_CANCELLED

Shutdown cancels whatever is still pending and lets the running job finish.
Finished jobs are kept for polling up to `retain_finished`, oldest evicted
first.
"""

from __future__ import annotations

import logging
import queue
import threading
import traceback
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from intake.constants.statuses import JobStatus
from intake.core import AppError, ErrorCode, ErrorReason
from intake.core.request_context import clear_context, set_context

logger = logging.getLogger("intake.jobs")

_STOP = object()

FINISHED_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Job:
    id: str
    payload: Any = field(repr=False)
    status: JobStatus = JobStatus.PENDING
    created_at: str = field(default_factory=_now_iso)
    started_at: str | None = None
    completed_at: str | None = None
    progress: float = 0.0
    validation: list[Any] = field(default_factory=list)
    result: Any = None
    error: str | None = None
    error_details: dict[str, Any] | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def set_progress(self, value: float) -> None:
        self.progress = max(self.progress, min(1.0, value))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "progress": self.progress,
            "validation": self.validation,
            "result": self.result,
            "error": self.error,
            "error_details": self.error_details,
        }


JobHandler = Callable[[Job], Any]


class JobQueue:
    def __init__(
        self,
        handler: JobHandler,
        *,
        maxsize: int = 0,
        retain_finished: int = 200,
        name: str = "intake-jobs",
    ):
        self._handler = handler
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._jobs: dict[str, Job] = {}
        # finished job ids, oldest first
        self._finished: OrderedDict[str, None] = OrderedDict()
        self._retain_finished = max(0, retain_finished)
        self._lock = threading.Lock()
        self._name = name
        self._worker: threading.Thread | None = None
        self._stopped = False
        self._stop_event = threading.Event()

    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._worker.start()

    def enqueue(self, payload: Any, *, validation: list[Any] | None = None) -> str:
        if self._stopped:
            raise AppError(
                code=ErrorCode.QUEUE_FULL,
                reason=ErrorReason.QUEUE_FULL,
                message="Job queue is shut down",
                status_code=503,
            )

        job = Job(id=str(uuid.uuid4()), payload=payload, validation=list(validation or []))
        with self._lock:
            self._jobs[job.id] = job
            self._ensure_worker()
        try:
            self._queue.put_nowait(job)
        except queue.Full as e:
            with self._lock:
                self._jobs.pop(job.id, None)
            raise AppError(
                code=ErrorCode.QUEUE_FULL,
                reason=ErrorReason.QUEUE_FULL,
                message="Too many ingestion jobs are waiting; try again later",
                status_code=503,
            ) from e

        logger.info("job.enqueued", extra={"job_id": job.id, "queued": self._queue.qsize()})
        return job.id

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def cancel(self, job_id: str) -> bool:
        """Returns False if the job is unknown or already finished."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status in FINISHED_STATUSES:
                return False
            job.cancel_event.set()
            if job.status == JobStatus.PENDING:
                self._cancel_pending(job)

        logger.info("job.cancel_requested", extra={"job_id": job_id})
        return True

    def join(self) -> None:
        """Blocks until every queued job has been handled."""
        self._queue.join()

    def shutdown(self, *, wait: bool = True, timeout: float | None = None) -> None:
        """Never blocks unless `wait` is set, even when the queue is full."""
        self._stopped = True
        self._stop_event.set()
        dropped = self._drain()
        if dropped:
            logger.warning("job_queue.shutdown_cancelled", extra={"cancelled": dropped})
        if self._worker is None:
            return
        try:
            self._queue.put_nowait(_STOP)
        except queue.Full:
            pass  # the worker checks _stop_event after its current job
        if wait:
            self._worker.join(timeout)

    def _drain(self) -> int:
        dropped = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return dropped
            try:
                if item is _STOP:
                    continue
                with self._lock:
                    if item.status == JobStatus.PENDING:
                        self._cancel_pending(item, error="Job queue was shut down")
                        dropped += 1
            finally:
                self._queue.task_done()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._run_job(item)
            finally:
                self._queue.task_done()

    def _run_job(self, job: Job) -> None:
        with self._lock:
            if job.status == JobStatus.CANCELLED:
                return
            job.status = JobStatus.PROCESSING
            job.started_at = _now_iso()
            job.progress = 0.05

        set_context(job_id=job.id)
        logger.info("job.started", extra={"job_id": job.id})
        try:
            result = self._handler(job)
        except AppError as e:
            cancelled = e.code == ErrorCode.JOB_CANCELLED
            self._finish(
                job,
                JobStatus.CANCELLED if cancelled else JobStatus.FAILED,
                error=str(e),
                error_details={"code": e.code.value, **(e.details or {})},
            )
            logger.warning("job.cancelled" if cancelled else "job.failed", extra={"job_id": job.id, "error_code": e.code.value})
        except Exception as e:
            self._finish(
                job,
                JobStatus.FAILED,
                error=str(e) or "Unknown error",
                error_details={"code": ErrorCode.INTERNAL_ERROR.value, "traceback": traceback.format_exc()},
            )
            logger.exception("job.failed", extra={"job_id": job.id})
        else:
            self._finish(job, JobStatus.COMPLETED, result=result)
            logger.info("job.completed", extra={"job_id": job.id})
        finally:
            clear_context()

    def _finish(self, job: Job, status: JobStatus, *, result=None, error=None, error_details=None) -> None:
        with self._lock:
            job.status = status
            job.completed_at = _now_iso()
            job.progress = 1.0
            job.result = result
            job.error = error
            job.error_details = error_details
            job.payload = None
            self._retire(job)

    def _cancel_pending(self, job: Job, *, error: str | None = None) -> None:
        """Caller holds the lock."""
        job.cancel_event.set()
        job.status = JobStatus.CANCELLED
        job.completed_at = _now_iso()
        job.error = error
        job.payload = None
        self._retire(job)

    def _retire(self, job: Job) -> None:
        """Caller holds the lock."""
        self._finished[job.id] = None
        while len(self._finished) > self._retain_finished:
            evicted, _ = self._finished.popitem(last=False)
            self._jobs.pop(evicted, None)
