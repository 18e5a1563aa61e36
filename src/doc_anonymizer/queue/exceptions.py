"""
Job queue exceptions.

Both are raised before any mutation: a rejected enqueue/clear leaves the
queue exactly as it was.
"""


class QueueError(Exception):
    """Base exception for rejected queue operations."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class QueueCapacityError(QueueError):
    """Raised when an enqueue would push the queue past its capacity."""
    pass


class QueueStateError(QueueError):
    """
    Raised when an operation is not allowed in the current control state.

    e.g. adding documents while the scheduler is RUNNING, or clearing while
    a job is in flight.
    """
    pass
