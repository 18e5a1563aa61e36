"""
API-specific response models for FastAPI endpoints.

These models project the core Job/QueueStats models for the wire: raw
document bytes never appear in JSON, only whether a result is available.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from doc_anonymizer.models.enums import ProcessingStatus, QueueState
from doc_anonymizer.models.job import Job, QueueStats


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobSummary(BaseModel):
    """One job as listed in the queue view."""

    id: str
    filename: str
    status: ProcessingStatus
    size_bytes: int = Field(ge=0)
    error: Optional[str] = Field(
        default=None,
        description="Error message (present only if status=ERROR)"
    )
    original_preview: Optional[str] = Field(
        default=None,
        description="First 100 characters of the extracted source text"
    )
    has_document: bool = Field(
        default=False,
        description="Whether GET /jobs/{id}/document will return a file"
    )
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobSummary":
        return cls(
            id=job.id,
            filename=job.filename,
            status=job.status,
            size_bytes=job.size_bytes,
            error=job.error,
            original_preview=job.original_preview,
            has_document=job.result_document is not None,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )


class JobDetail(JobSummary):
    """Single job including the anonymized text."""

    result_text: Optional[str] = Field(
        default=None,
        description="Anonymized text (present only if status=COMPLETED)"
    )

    @classmethod
    def from_job(cls, job: Job) -> "JobDetail":
        return cls(**JobSummary.from_job(job).model_dump(), result_text=job.result_text)


class EnqueueResponse(BaseModel):
    """Response for document upload."""

    job_ids: list[str] = Field(description="Created job identifiers, in upload order")
    jobs: list[JobSummary]
    queue_size: int = Field(ge=0, description="Total jobs held after the upload")


class QueueStatusResponse(BaseModel):
    """Full queue view: control state, counters and every job."""

    state: QueueState
    stats: QueueStats
    current_job_id: Optional[str] = None
    jobs: list[JobSummary]


class QueueControlResponse(BaseModel):
    """Response for start/stop."""

    state: QueueState
    stats: QueueStats


class ClearResponse(BaseModel):
    removed: int = Field(ge=0)


class PingResponse(BaseModel):
    """Result of the remote service connectivity probe."""

    reachable: bool
    model: str
    base_url: str
    checked_at: datetime = Field(default_factory=_utcnow)


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy"]
    )
    version: str
    queue_state: QueueState
    pending_jobs: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(
        description="Error code",
        examples=["queue_capacity_exceeded", "queue_busy", "internal_error"]
    )
    message: str = Field(description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)
