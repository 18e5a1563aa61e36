"""
Enumerations for Document Anonymizer data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class ProcessingStatus(str, Enum):
    """
    Lifecycle of a single job.

    Transitions are monotonic: PENDING -> PROCESSING -> COMPLETED | ERROR.
    COMPLETED and ERROR are terminal.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.ERROR)


class QueueState(str, Enum):
    """
    Control state of the job queue scheduler.

    STOPPING means a stop was requested while a job is in flight: the job
    finishes, no new job starts, then the queue drops back to IDLE.
    """

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"


class PassName(str, Enum):
    """Rewrite pass identifiers (used as log fields and metric labels)."""

    REDACTION = "redaction"
    VERIFICATION = "verification"


class PiiCategory(str, Enum):
    """
    Categories of personal data replaced by the rewriting service.

    Each category is substituted with a fixed tag, e.g. NAME -> [NAME].
    """

    NAME = "NAME"
    PHONE = "PHONE"
    EMAIL = "EMAIL"
    ADDRESS = "ADDRESS"
    DOCUMENT = "DOCUMENT"
    BIRTH_DATE = "BIRTH_DATE"
    FINANCIAL = "FINANCIAL"

    @property
    def tag(self) -> str:
        """Replacement tag written into the anonymized text."""
        return f"[{self.value}]"
