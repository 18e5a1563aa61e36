"""FastAPI middleware for request tracing and logging."""

import time
import uuid
from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Scraped/polled constantly, not worth an event per hit
QUIET_PATHS = frozenset({"/metrics", "/health"})


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Bind a request_id to every log event emitted while serving a request.

    A client-supplied X-Request-ID is reused, otherwise a UUID4 is generated.
    The id is echoed back in the response headers.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        path = request.url.path
        quiet = path in QUIET_PATHS

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed",
                exc_info=exc,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise
        else:
            if not quiet:
                logger.info(
                    "Request completed",
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # Prevent leakage into the next request handled by this worker
            structlog.contextvars.clear_contextvars()
