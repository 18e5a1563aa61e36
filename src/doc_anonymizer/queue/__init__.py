"""
Job queue and scheduler.

The queue owns every Job; a single background task drains it FIFO, one
document at a time.
"""

from doc_anonymizer.queue.exceptions import QueueCapacityError, QueueError, QueueStateError
from doc_anonymizer.queue.job_queue import JobQueue

__all__ = [
    "JobQueue",
    "QueueError",
    "QueueCapacityError",
    "QueueStateError",
]
