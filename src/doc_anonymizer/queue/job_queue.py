"""
In-memory job queue with a single background scheduler task.

Control operations (enqueue/start/stop/clear) are plain synchronous methods
called from request handlers on the same event loop; the scheduler observes
them between jobs. No locks: every mutation happens on the loop thread.

Scheduling:
    - At most one job PROCESSING at a time, picked FIFO among PENDING jobs
    - JOB_DELAY_SECONDS pause before each job, cut short by stop()
    - A stop during the pause leaves the job PENDING
    - A stop during processing lets the job finish, then no new job starts
    - Any exception from the processor fails that job only
    - Returns to IDLE on its own once nothing is left to do
"""

import asyncio
from typing import Optional, Sequence

import structlog

from doc_anonymizer.models.enums import ProcessingStatus, QueueState
from doc_anonymizer.models.job import Job, QueueStats
from doc_anonymizer.monitoring.metrics import jobs_finished_total, queue_pending_jobs
from doc_anonymizer.pipeline.document_processor import DocumentProcessor
from doc_anonymizer.queue.exceptions import QueueCapacityError, QueueStateError

logger = structlog.get_logger(__name__)


class JobQueue:
    """
    FIFO queue of documents awaiting anonymization.

    Attributes:
        processor: Runs one job's document end to end
        capacity: Maximum number of jobs held at once
        job_delay: Seconds to wait before starting each job
    """

    def __init__(
        self,
        processor: DocumentProcessor,
        capacity: int = 100,
        job_delay: float = 1.0,
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self.processor = processor
        self.capacity = capacity
        self.job_delay = job_delay

        self._jobs: list[Job] = []
        self._state = QueueState.IDLE
        self._current: Optional[Job] = None
        self._task: Optional[asyncio.Task] = None
        self._stop_requested = asyncio.Event()

    # === Queries ===

    @property
    def state(self) -> QueueState:
        return self._state

    @property
    def jobs(self) -> list[Job]:
        """Snapshot of all jobs in enqueue order."""
        return list(self._jobs)

    @property
    def current(self) -> Optional[Job]:
        """Job in flight, if any."""
        return self._current

    def get(self, job_id: str) -> Optional[Job]:
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def stats(self) -> QueueStats:
        return QueueStats.from_jobs(self._jobs)

    def completed_results(self) -> list[tuple[str, bytes]]:
        """(filename, rendered document) for every COMPLETED job, in order."""
        return [
            (job.filename, job.result_document)
            for job in self._jobs
            if job.status is ProcessingStatus.COMPLETED and job.result_document is not None
        ]

    async def wait_until_idle(self) -> None:
        """Block until the scheduler task (if any) has finished."""
        task = self._task
        if task is not None:
            # Shielded so a cancelled waiter does not take the scheduler down
            await asyncio.shield(task)

    # === Control ===

    def enqueue(self, documents: Sequence[tuple[str, bytes]]) -> list[Job]:
        """
        Add documents as PENDING jobs.

        Args:
            documents: (filename, content) pairs

        Returns:
            Created jobs, in the given order

        Raises:
            ValueError: No documents given
            QueueStateError: Scheduler is not IDLE
            QueueCapacityError: Total would exceed capacity
        """
        if not documents:
            raise ValueError("No documents to enqueue")

        if self._state is not QueueState.IDLE:
            raise QueueStateError(
                "Cannot add documents while the queue is processing",
                details={"state": self._state.value},
            )

        requested_total = len(self._jobs) + len(documents)
        if requested_total > self.capacity:
            raise QueueCapacityError(
                f"Queue capacity exceeded: at most {self.capacity} documents allowed",
                details={
                    "capacity": self.capacity,
                    "queued": len(self._jobs),
                    "requested": len(documents),
                },
            )

        # Build every job first so a validation failure leaves the queue untouched
        new_jobs = [Job(filename=filename, content=content) for filename, content in documents]
        self._jobs.extend(new_jobs)
        self._update_pending_gauge()

        logger.info("Documents enqueued", added=len(new_jobs), total=len(self._jobs))
        return new_jobs

    def start(self) -> QueueState:
        """
        Begin (or resume) processing PENDING jobs.

        Must be called from within the running event loop.
        """
        if self._state is QueueState.RUNNING:
            return self._state

        if self._state is QueueState.STOPPING:
            # Scheduler task is still alive; withdraw the stop request
            self._stop_requested.clear()
            self._state = QueueState.RUNNING
            logger.info("Stop request withdrawn, queue running")
            return self._state

        self._stop_requested.clear()
        self._state = QueueState.RUNNING
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Queue started", pending=self.stats().pending)
        return self._state

    def stop(self) -> QueueState:
        """Request a stop; the in-flight job (if any) still finishes."""
        if self._state is QueueState.RUNNING:
            self._state = QueueState.STOPPING
            self._stop_requested.set()
            logger.info(
                "Queue stop requested",
                current_job=self._current.id if self._current else None,
            )
        return self._state

    def clear(self) -> int:
        """
        Remove all jobs.

        Returns:
            Number of jobs removed

        Raises:
            QueueStateError: Scheduler active or a job in flight
        """
        if self._state is not QueueState.IDLE or self._current is not None:
            raise QueueStateError(
                "Cannot clear the queue while it is processing",
                details={"state": self._state.value},
            )

        removed = len(self._jobs)
        self._jobs.clear()
        self._update_pending_gauge()
        logger.info("Queue cleared", removed=removed)
        return removed

    async def shutdown(self) -> None:
        """Cancel the scheduler task (application shutdown)."""
        task = self._task
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # A task cancelled before its first step never ran its own cleanup
        self._state = QueueState.IDLE
        self._task = None
        logger.info("Queue scheduler cancelled")

    # === Scheduler ===

    async def _run(self) -> None:
        # The task inherited the context of the request that started it
        structlog.contextvars.clear_contextvars()
        processed = 0
        try:
            while self._state is QueueState.RUNNING:
                job = self._next_pending()
                if job is None:
                    break

                if not await self._pace():
                    logger.info("Queue stopped before next job", next_job=job.id)
                    break

                await self._process(job)
                processed += 1
        finally:
            self._state = QueueState.IDLE
            self._stop_requested.clear()
            self._current = None
            self._task = None
            self._update_pending_gauge()
            logger.info("Queue idle", processed=processed, **self.stats().model_dump())

    def _next_pending(self) -> Optional[Job]:
        for job in self._jobs:
            if job.status is ProcessingStatus.PENDING:
                return job
        return None

    async def _pace(self) -> bool:
        """Wait job_delay unless a stop arrives first. True if still RUNNING."""
        if self.job_delay > 0:
            try:
                await asyncio.wait_for(self._stop_requested.wait(), timeout=self.job_delay)
            except asyncio.TimeoutError:
                pass
        return self._state is QueueState.RUNNING

    async def _process(self, job: Job) -> None:
        with structlog.contextvars.bound_contextvars(job_id=job.id, filename=job.filename):
            await self._process_bound(job)

    async def _process_bound(self, job: Job) -> None:
        self._current = job
        job.mark_processing()
        self._update_pending_gauge()
        logger.info("Job started", size_bytes=job.size_bytes)

        try:
            result = await self.processor.process(job)
        except Exception as e:
            job.mark_failed(str(e))
            logger.error(
                "Job failed",
                error=job.error,
                error_type=type(e).__name__,
            )
        else:
            job.set_preview(result.source_text)
            job.mark_completed(result.text, result.document)
            logger.info(
                "Job completed",
                input_chars=len(result.source_text),
                output_chars=len(result.text),
            )
        finally:
            self._current = None
            # Not terminal only when the scheduler itself was cancelled
            if job.status.is_terminal:
                jobs_finished_total.labels(status=job.status.value).inc()

    def _update_pending_gauge(self) -> None:
        queue_pending_jobs.set(sum(1 for job in self._jobs if job.status is ProcessingStatus.PENDING))
