"""
Job model: one document's unit of work tracked by the JobQueue.

Status transitions are funneled through the mark_* methods so the lifecycle
invariants hold no matter who drives the job:
- PENDING -> PROCESSING -> COMPLETED | ERROR, never backwards
- COMPLETED carries result_text/result_document and no error
- ERROR carries error and no result
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from doc_anonymizer.models.enums import ProcessingStatus


PREVIEW_LENGTH = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job(BaseModel):
    """A single document moving through the redaction pipeline."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()), description="Stable job identifier")
    filename: str = Field(..., min_length=1, description="Original document filename")
    content: bytes = Field(..., repr=False, description="Raw source document bytes")
    status: ProcessingStatus = Field(default=ProcessingStatus.PENDING)

    result_text: Optional[str] = Field(default=None, repr=False, description="Anonymized text (COMPLETED only)")
    result_document: Optional[bytes] = Field(default=None, repr=False, description="Rendered document (COMPLETED only)")
    error: Optional[str] = Field(default=None, description="Error message (ERROR only)")
    original_preview: Optional[str] = Field(default=None, repr=False, description="Start of the extracted text")

    created_at: datetime = Field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    def mark_processing(self) -> None:
        """PENDING -> PROCESSING."""
        self._require(ProcessingStatus.PENDING, ProcessingStatus.PROCESSING)
        self.status = ProcessingStatus.PROCESSING
        self.started_at = _utcnow()

    def mark_completed(self, result_text: str, result_document: bytes) -> None:
        """PROCESSING -> COMPLETED with results attached."""
        self._require(ProcessingStatus.PROCESSING, ProcessingStatus.COMPLETED)
        self.result_text = result_text
        self.result_document = result_document
        self.error = None
        self.status = ProcessingStatus.COMPLETED
        self.finished_at = _utcnow()

    def mark_failed(self, error: str) -> None:
        """PROCESSING -> ERROR with the failure message attached."""
        self._require(ProcessingStatus.PROCESSING, ProcessingStatus.ERROR)
        self.error = error or "Processing failed"
        self.result_text = None
        self.result_document = None
        self.status = ProcessingStatus.ERROR
        self.finished_at = _utcnow()

    def set_preview(self, text: str) -> None:
        """Keep a short preview of the extracted source text for display."""
        if len(text) > PREVIEW_LENGTH:
            self.original_preview = text[:PREVIEW_LENGTH] + "..."
        else:
            self.original_preview = text

    def _require(self, expected: ProcessingStatus, target: ProcessingStatus) -> None:
        if self.status is not expected:
            raise ValueError(
                f"Invalid job transition {self.status.value} -> {target.value} "
                f"for job {self.id}"
            )


class QueueStats(BaseModel):
    """Per-status job counts for a queue snapshot."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    pending: int = Field(default=0, ge=0)
    processing: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)

    @classmethod
    def from_jobs(cls, jobs: list[Job]) -> "QueueStats":
        counts = {status: 0 for status in ProcessingStatus}
        for job in jobs:
            counts[job.status] += 1
        return cls(
            total=len(jobs),
            pending=counts[ProcessingStatus.PENDING],
            processing=counts[ProcessingStatus.PROCESSING],
            completed=counts[ProcessingStatus.COMPLETED],
            failed=counts[ProcessingStatus.ERROR],
        )
