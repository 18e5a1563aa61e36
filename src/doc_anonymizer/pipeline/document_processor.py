"""
One document, end to end: extract -> anonymize -> render.

The processor never touches job state; it returns a ProcessedDocument or
raises, and the JobQueue records the outcome on the job.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable

import structlog

from doc_anonymizer.documents.exceptions import ExtractionError
from doc_anonymizer.documents.extractor import extract_text
from doc_anonymizer.documents.renderer import render_document
from doc_anonymizer.models.job import Job
from doc_anonymizer.pipeline.redaction import RedactionPipeline

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProcessedDocument:
    source_text: str
    text: str
    document: bytes


class DocumentProcessor:
    """
    Runs a job's document through the redaction pipeline.

    Args:
        pipeline: Two-pass redaction pipeline
        extract: (bytes, filename) -> text, raises ExtractionError
        render: text -> document bytes
    """

    def __init__(
        self,
        pipeline: RedactionPipeline,
        extract: Callable[[bytes, str], str] = extract_text,
        render: Callable[[str], bytes] = render_document,
    ):
        self.pipeline = pipeline
        self._extract = extract
        self._render = render

    async def process(self, job: Job) -> ProcessedDocument:
        """
        Raises:
            ExtractionError: Source unreadable or empty; pipeline not invoked
            RemoteServiceError: Pipeline aborted on a remote failure
        """
        # python-docx parsing is blocking, keep it off the event loop
        source_text = await asyncio.to_thread(self._extract, job.content, job.filename)
        if not source_text.strip():
            raise ExtractionError("Document contains no text", details={"filename": job.filename})
        logger.info("Document text extracted", chars=len(source_text))

        anonymized = await self.pipeline.run(source_text)
        document = await asyncio.to_thread(self._render, anonymized)

        return ProcessedDocument(source_text=source_text, text=anonymized, document=document)
