"""Bounded job queue with a single worker thread.

Exactly one worker processes jobs, one at a time, across the whole
service. A slow or stuck encode delays every job queued behind it until it
exits or is cancelled.

Shutdown drains: no new jobs are accepted, but the in-flight job and
every job already queued are processed before the worker exits.
"""

import queue
import threading
import time
from typing import Callable

from aws_lambda_powertools import Logger

from ..converter.pipeline import process_job
from ..shared.exceptions import QueueClosedError
from ..shared.job import ConversionJob

logger = Logger(service="job-queue")

DEFAULT_CAPACITY = 100

JobProcessor = Callable[[ConversionJob], None]


def _remaining(deadline: float) -> float:
    return max(0.0, deadline - time.monotonic())


class JobQueue:
    """Admits jobs, tracks active ones and feeds a single worker."""

    def __init__(
        self,
        processor: JobProcessor | None = None,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self._processor = processor or process_job
        self._jobs: queue.Queue[ConversionJob | None] = queue.Queue(maxsize=capacity)
        self._active: dict[str, ConversionJob] = {}
        self._active_lock = threading.Lock()
        # Serializes admission against shutdown so nothing lands behind the sentinel
        self._admission_lock = threading.Lock()
        self._closed = False
        self._stop_queued = False

        self._worker = threading.Thread(target=self._run, name="conversion-worker", daemon=True)
        self._worker.start()

    def enqueue(self, job: ConversionJob) -> None:
        """Admit a job. Blocks while the queue is full.

        Raises:
            QueueClosedError: If shutdown has begun
        """
        with self._admission_lock:
            if self._closed:
                raise QueueClosedError(job.id)
            with self._active_lock:
                self._active[job.id] = job
            self._jobs.put(job)

        logger.info(
            "Job enqueued",
            extra={
                "job_id": job.id,
                "media_file_id": job.request.media_file_id,
                "qualities": job.request.qualities,
                "queue_size": self._jobs.qsize(),
            },
        )

    def cancel(self, job_id: str) -> bool:
        """Signal cancellation to an active job.

        Returns:
            True if the job was queued or running
        """
        job = self.get(job_id)
        if job is None:
            return False
        job.cancel()
        logger.info("Job cancelled", extra={"job_id": job_id})
        return True

    def get(self, job_id: str) -> ConversionJob | None:
        with self._active_lock:
            return self._active.get(job_id)

    def active_count(self) -> int:
        with self._active_lock:
            return len(self._active)

    @property
    def closed(self) -> bool:
        return self._closed

    def shutdown(self, timeout: float | None = None) -> bool:
        """Stop accepting jobs, drain the queue and wait for the worker.

        The timeout covers the whole call: waiting for a blocked enqueue to
        release admission, placing the stop marker on a full queue and
        joining the worker. If the marker could not be placed in time a
        later call places it.

        Args:
            timeout: Maximum seconds to wait, None waits forever

        Returns:
            True if the worker has exited
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        if not self._admission_lock.acquire(timeout=-1 if deadline is None else _remaining(deadline)):
            logger.warning("Timed out waiting for admission to close")
            return False
        try:
            self._closed = True
            if not self._stop_queued:
                try:
                    self._jobs.put(None, timeout=None if deadline is None else _remaining(deadline))
                except queue.Full:
                    logger.warning(
                        "Timed out queueing stop marker, queue still full",
                        extra={"pending": self._jobs.qsize()},
                    )
                    return False
                self._stop_queued = True
        finally:
            self._admission_lock.release()

        logger.info("Shutting down job queue", extra={"pending": self._jobs.qsize()})
        self._worker.join(None if deadline is None else _remaining(deadline))
        return not self._worker.is_alive()

    def _remove(self, job_id: str) -> None:
        with self._active_lock:
            self._active.pop(job_id, None)

    def _run(self) -> None:
        while True:
            job = self._jobs.get()
            if job is None:
                logger.info("Worker exiting")
                return

            try:
                if job.cancelled:
                    logger.info("Skipping job cancelled while queued", extra={"job_id": job.id})
                    continue

                logger.info("Processing job", extra={"job_id": job.id})
                self._processor(job)
                logger.info("Job finished", extra={"job_id": job.id})
            except Exception:
                logger.exception("Job processor raised", extra={"job_id": job.id})
            finally:
                self._remove(job.id)
