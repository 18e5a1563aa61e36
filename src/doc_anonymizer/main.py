"""
FastAPI application entry point for the Document Anonymizer.
"""

from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from doc_anonymizer.api.dependencies import get_job_queue, get_llm_client
from doc_anonymizer.api.error_handlers import EXCEPTION_HANDLERS
from doc_anonymizer.api.middleware import RequestTracingMiddleware
from doc_anonymizer.api.routes import router
from doc_anonymizer.config import settings
from doc_anonymizer.logging_config import configure_logging

# Configure structured logging before anything logs
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Two-pass LLM redaction of personal data in documents",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing middleware (must be first for request_id in all logs)
app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router)


@app.on_event("startup")
async def startup():
    """Application startup - verify resources and build the queue."""
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        llm_base_url=settings.LLM_BASE_URL,
        model=settings.LLM_MODEL,
    )

    templates_dir = Path(settings.PROMPT_TEMPLATES_DIR)
    if templates_dir.exists():
        logger.info("Prompt templates directory found", path=str(templates_dir))
    else:
        logger.error("Prompt templates directory not found", path=str(templates_dir))

    # Fail fast on broken templates instead of on the first upload
    queue = get_job_queue()
    logger.info(
        "Application startup complete",
        queue_capacity=queue.capacity,
        job_delay=queue.job_delay,
    )


@app.on_event("shutdown")
async def shutdown():
    """Application shutdown - stop the scheduler, release connections."""
    logger.info("Application shutdown")
    await get_job_queue().shutdown()
    await get_llm_client().close()
    logger.info("Application shutdown complete")


if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "jobs": "/jobs",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


def run():
    """Console entry point (doc-anonymizer)."""
    import uvicorn

    uvicorn.run(
        "doc_anonymizer.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
