"""
FastAPI control surface.

- routes.py: Upload, queue control, downloads, ping and health endpoints
- dependencies.py: Singleton wiring (LLM client, prompt builder, job queue)
- models.py: API-specific response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request tracing (request_id in every log event)
"""

from doc_anonymizer.api import dependencies, error_handlers, models
from doc_anonymizer.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
