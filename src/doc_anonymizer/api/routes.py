"""
API routes: document upload, queue control, results and probes.

All handlers run on the same event loop as the queue scheduler, so control
operations take effect immediately and are observed between jobs.
"""

from pathlib import PurePath
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from doc_anonymizer.api.dependencies import get_job_queue, get_llm_client, get_settings
from doc_anonymizer.api.models import (
    ClearResponse,
    EnqueueResponse,
    ErrorResponse,
    HealthResponse,
    JobDetail,
    JobSummary,
    PingResponse,
    QueueControlResponse,
    QueueStatusResponse,
)
from doc_anonymizer.config import Settings
from doc_anonymizer.documents.archive import build_archive, result_filename
from doc_anonymizer.documents.exceptions import ExtractionError
from doc_anonymizer.documents.extractor import SUPPORTED_EXTENSIONS, is_supported
from doc_anonymizer.llm.base_client import BaseLLMClient
from doc_anonymizer.models.enums import ProcessingStatus
from doc_anonymizer.models.job import Job
from doc_anonymizer.queue.job_queue import JobQueue

logger = structlog.get_logger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

router = APIRouter()


def _attachment(filename: str) -> dict[str, str]:
    # RFC 5987 form, upload names are frequently non-ASCII
    return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"}


def _get_job_or_404(queue: JobQueue, job_id: str) -> Job:
    job = queue.get(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Job not found: {job_id}")
    return job


# === Jobs ===

@router.post(
    "/jobs",
    response_model=EnqueueResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Upload documents for anonymization",
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported or oversized file, or queue capacity exceeded"},
        409: {"model": ErrorResponse, "description": "Queue is processing"},
    },
)
async def upload_documents(
    files: list[UploadFile] = File(..., description="DOCX or TXT documents"),
    queue: JobQueue = Depends(get_job_queue),
    settings: Settings = Depends(get_settings),
) -> EnqueueResponse:
    """
    Enqueue uploaded documents as PENDING jobs.

    Processing starts only on POST /queue/start.
    """
    documents: list[tuple[str, bytes]] = []
    for upload in files:
        filename = PurePath(upload.filename or "").name
        if not filename or not is_supported(filename):
            raise ExtractionError(
                f"Unsupported document: {filename or '<unnamed>'}",
                details={"filename": filename, "supported": sorted(SUPPORTED_EXTENSIONS)},
            )
        # Read one byte past the limit so oversized files are never held whole
        content = await upload.read(settings.UPLOAD_MAX_BYTES + 1)
        if len(content) > settings.UPLOAD_MAX_BYTES:
            raise ExtractionError(
                f"Document too large: {filename}",
                details={"filename": filename, "max_bytes": settings.UPLOAD_MAX_BYTES},
            )
        documents.append((filename, content))

    jobs = queue.enqueue(documents)
    return EnqueueResponse(
        job_ids=[job.id for job in jobs],
        jobs=[JobSummary.from_job(job) for job in jobs],
        queue_size=len(queue.jobs),
    )


@router.get("/jobs", response_model=QueueStatusResponse, summary="Queue state, stats and jobs")
async def list_jobs(queue: JobQueue = Depends(get_job_queue)) -> QueueStatusResponse:
    current = queue.current
    return QueueStatusResponse(
        state=queue.state,
        stats=queue.stats(),
        current_job_id=current.id if current else None,
        jobs=[JobSummary.from_job(job) for job in queue.jobs],
    )


@router.get(
    "/jobs/{job_id}",
    response_model=JobDetail,
    responses={404: {"model": ErrorResponse}},
)
async def get_job(job_id: str, queue: JobQueue = Depends(get_job_queue)) -> JobDetail:
    return JobDetail.from_job(_get_job_or_404(queue, job_id))


@router.get(
    "/jobs/{job_id}/document",
    response_class=Response,
    summary="Download the anonymized document",
    responses={
        200: {"content": {DOCX_MEDIA_TYPE: {}}},
        404: {"model": ErrorResponse, "description": "Unknown job"},
        409: {"model": ErrorResponse, "description": "Job not completed"},
    },
)
async def download_document(
    job_id: str,
    queue: JobQueue = Depends(get_job_queue),
    settings: Settings = Depends(get_settings),
) -> Response:
    job = _get_job_or_404(queue, job_id)
    if job.status is not ProcessingStatus.COMPLETED or job.result_document is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Job {job_id} is {job.status.value}, no document available",
        )

    return Response(
        content=job.result_document,
        media_type=DOCX_MEDIA_TYPE,
        headers=_attachment(result_filename(job.filename, settings.RESULT_FILENAME_PREFIX)),
    )


@router.delete(
    "/jobs",
    response_model=ClearResponse,
    summary="Remove all jobs",
    responses={409: {"model": ErrorResponse, "description": "Queue is processing"}},
)
async def clear_jobs(queue: JobQueue = Depends(get_job_queue)) -> ClearResponse:
    return ClearResponse(removed=queue.clear())


# === Queue control ===

@router.post("/queue/start", response_model=QueueControlResponse, summary="Start processing")
async def start_queue(queue: JobQueue = Depends(get_job_queue)) -> QueueControlResponse:
    state = queue.start()
    return QueueControlResponse(state=state, stats=queue.stats())


@router.post(
    "/queue/stop",
    response_model=QueueControlResponse,
    summary="Stop after the current job",
)
async def stop_queue(queue: JobQueue = Depends(get_job_queue)) -> QueueControlResponse:
    state = queue.stop()
    return QueueControlResponse(state=state, stats=queue.stats())


# === Results ===

@router.get(
    "/archive",
    response_class=Response,
    summary="Download all completed documents as ZIP",
    responses={
        200: {"content": {"application/zip": {}}},
        404: {"model": ErrorResponse, "description": "No completed documents"},
    },
)
async def download_archive(
    queue: JobQueue = Depends(get_job_queue),
    settings: Settings = Depends(get_settings),
) -> Response:
    results = queue.completed_results()
    if not results:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No completed documents")

    archive = build_archive(results, prefix=settings.RESULT_FILENAME_PREFIX)
    logger.info("Archive built", documents=len(results), size_bytes=len(archive))
    return Response(
        content=archive,
        media_type="application/zip",
        headers=_attachment(settings.ARCHIVE_FILENAME),
    )


# === Probes ===

@router.get("/ping", response_model=PingResponse, summary="Remote service connectivity probe")
async def ping_remote(llm_client: BaseLLMClient = Depends(get_llm_client)) -> PingResponse:
    """One tiny generation, no retry; never touches the queue."""
    reachable = await llm_client.ping()
    return PingResponse(reachable=reachable, model=llm_client.model, base_url=llm_client.base_url)


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(
    queue: JobQueue = Depends(get_job_queue),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        queue_state=queue.state,
        pending_jobs=queue.stats().pending,
    )
