"""
FastAPI dependency injection for the Document Anonymizer.

Every collaborator is a process-wide singleton: the LLM client holds the
connection pool, the prompt builder holds the rendered instruction sets and
the job queue holds all jobs. Tests swap any of them through
app.dependency_overrides.
"""

from functools import lru_cache
from pathlib import Path

from doc_anonymizer.config import Settings, settings
from doc_anonymizer.llm.base_client import BaseLLMClient
from doc_anonymizer.llm.ollama_client import OllamaClient
from doc_anonymizer.llm.prompt_builder import PromptBuilder
from doc_anonymizer.pipeline.document_processor import DocumentProcessor
from doc_anonymizer.pipeline.redaction import RedactionPipeline
from doc_anonymizer.queue.job_queue import JobQueue


def get_settings() -> Settings:
    return settings


@lru_cache()
def get_llm_client() -> BaseLLMClient:
    """
    Get singleton LLM client with connection pooling.

    The client performs exactly one HTTP round trip per call; retries are
    layered on top by the pipeline.
    """
    return OllamaClient(
        base_url=settings.LLM_BASE_URL,
        model=settings.LLM_MODEL,
        timeout=settings.LLM_TIMEOUT,
    )


@lru_cache()
def get_prompt_builder() -> PromptBuilder:
    """Get singleton prompt builder (templates rendered once)."""
    return PromptBuilder(
        templates_dir=Path(settings.PROMPT_TEMPLATES_DIR),
        default_model=settings.LLM_MODEL,
        default_temperature=settings.LLM_TEMPERATURE,
        default_max_tokens=settings.LLM_MAX_TOKENS,
        default_num_ctx=settings.LLM_NUM_CTX,
    )


@lru_cache()
def get_job_queue() -> JobQueue:
    """
    Get the singleton job queue, wired to the full redaction stack.

    Returns:
        JobQueue instance
    """
    pipeline = RedactionPipeline(
        llm_client=get_llm_client(),
        prompt_builder=get_prompt_builder(),
        settings=settings,
    )
    return JobQueue(
        processor=DocumentProcessor(pipeline),
        capacity=settings.QUEUE_CAPACITY,
        job_delay=settings.JOB_DELAY_SECONDS,
    )
