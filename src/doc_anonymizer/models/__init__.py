"""
Pydantic data models for the Document Anonymizer.

Includes:
- Enums (ProcessingStatus, QueueState, PassName, PiiCategory)
- Job (one document's unit of work, with lifecycle transitions)
- QueueStats (per-status job counts)
- LLM models (LLMGenerationRequest, LLMGenerationResponse)
"""

from doc_anonymizer.models.enums import PassName, PiiCategory, ProcessingStatus, QueueState
from doc_anonymizer.models.job import Job, QueueStats
from doc_anonymizer.models.llm_models import (
    LLMGenerationRequest,
    LLMGenerationResponse,
)

__all__ = [
    # Enums
    "ProcessingStatus",
    "QueueState",
    "PassName",
    "PiiCategory",
    # Job
    "Job",
    "QueueStats",
    # LLM models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]
