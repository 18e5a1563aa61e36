"""
FastAPI exception handlers for structured error responses.

Maps domain exceptions to HTTP status codes. Every error body has the same
shape: {error, message, details, timestamp}.
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from doc_anonymizer.documents.exceptions import ExtractionError
from doc_anonymizer.llm.exceptions import (
    RemoteConnectionError,
    RemoteServiceError,
    RemoteTimeoutError,
)
from doc_anonymizer.queue.exceptions import QueueCapacityError, QueueStateError

logger = structlog.get_logger(__name__)

HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
}


def error_response(status_code: int, error: str, message: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def queue_capacity_error_handler(request: Request, exc: QueueCapacityError) -> JSONResponse:
    """
    Handle uploads that would overflow the queue.

    Maps to 400 Bad Request; nothing was enqueued.
    """
    logger.warning("Queue capacity exceeded", details=exc.details)
    return error_response(
        status.HTTP_400_BAD_REQUEST, "queue_capacity_exceeded", exc.message, exc.details
    )


async def queue_state_error_handler(request: Request, exc: QueueStateError) -> JSONResponse:
    """
    Handle operations rejected because the queue is processing.

    Maps to 409 Conflict.
    """
    logger.warning("Queue operation rejected", message=exc.message, details=exc.details)
    return error_response(status.HTTP_409_CONFLICT, "queue_busy", exc.message, exc.details)


async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    """Handle uploads rejected before enqueue (unsupported or oversized document)."""
    logger.warning("Document rejected", message=exc.message, details=exc.details)
    return error_response(status.HTTP_400_BAD_REQUEST, "invalid_document", exc.message, exc.details)


async def remote_connection_error_handler(request: Request, exc: RemoteConnectionError) -> JSONResponse:
    """
    Handle remote service connection errors.

    Maps to 502 Bad Gateway (upstream service unavailable).
    """
    logger.error("Remote service connection error", error=exc.message)
    return error_response(
        status.HTTP_502_BAD_GATEWAY,
        "remote_connection_failed",
        "Unable to connect to the rewriting service",
        exc.details,
    )


async def remote_timeout_error_handler(request: Request, exc: RemoteTimeoutError) -> JSONResponse:
    """
    Handle remote service timeouts.

    Maps to 504 Gateway Timeout.
    """
    logger.error("Remote service timeout", error=exc.message)
    return error_response(
        status.HTTP_504_GATEWAY_TIMEOUT,
        "remote_timeout",
        "Rewriting service request timed out",
        exc.details,
    )


async def remote_service_error_handler(request: Request, exc: RemoteServiceError) -> JSONResponse:
    logger.error("Remote service error", error=exc.message, error_type=type(exc).__name__)
    return error_response(status.HTTP_502_BAD_GATEWAY, "remote_service_error", exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (404/409 from routes) in the standard error shape."""
    return error_response(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
        str(exc.detail),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle invalid request format (e.g. upload without files).

    Maps to 400 Bad Request (client error).
    """
    logger.warning("Invalid request format", errors=exc.errors())
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "invalid_request",
        "Request validation failed",
        {"errors": [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]},
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception("Unexpected error", error_type=type(exc).__name__)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
# Lookup walks the MRO, so subclasses resolve to their own handler first
EXCEPTION_HANDLERS = {
    QueueCapacityError: queue_capacity_error_handler,
    QueueStateError: queue_state_error_handler,
    ExtractionError: extraction_error_handler,
    RemoteTimeoutError: remote_timeout_error_handler,
    RemoteConnectionError: remote_connection_error_handler,
    RemoteServiceError: remote_service_error_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: request_validation_error_handler,
    Exception: generic_error_handler,
}
