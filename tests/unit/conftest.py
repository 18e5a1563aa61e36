"""Unit test fixtures: pipeline and queue wired to the in-memory client."""

from typing import Callable, Optional

import pytest

from doc_anonymizer.config import Settings
from doc_anonymizer.llm.base_client import BaseLLMClient
from doc_anonymizer.llm.prompt_builder import PromptBuilder
from doc_anonymizer.pipeline.document_processor import DocumentProcessor
from doc_anonymizer.pipeline.redaction import RedactionPipeline
from doc_anonymizer.queue.job_queue import JobQueue


@pytest.fixture
def make_pipeline(
    test_settings: Settings, prompt_builder: PromptBuilder, recording_sleep
) -> Callable[[BaseLLMClient], RedactionPipeline]:
    """Build a RedactionPipeline around a client; sleeps go to recording_sleep."""

    def _make(client: BaseLLMClient) -> RedactionPipeline:
        return RedactionPipeline(
            llm_client=client,
            prompt_builder=prompt_builder,
            settings=test_settings,
            sleep=recording_sleep,
        )

    return _make


@pytest.fixture
def make_queue(make_pipeline, echo_client) -> Callable[..., JobQueue]:
    """Build a JobQueue with no pacing; defaults to an echoing client."""

    def _make(
        client: Optional[BaseLLMClient] = None,
        capacity: int = 100,
        job_delay: float = 0.0,
        **processor_kwargs,
    ) -> JobQueue:
        processor = DocumentProcessor(make_pipeline(client or echo_client), **processor_kwargs)
        return JobQueue(processor, capacity=capacity, job_delay=job_delay)

    return _make
