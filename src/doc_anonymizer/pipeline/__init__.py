"""
Redaction orchestration.

- chunker.py: Paragraph-aware chunking
- redaction.py: Two-pass RedactionPipeline with degenerate-output fallback
- document_processor.py: Extract -> anonymize -> render for one job
"""

from doc_anonymizer.pipeline.chunker import chunk_by_paragraphs
from doc_anonymizer.pipeline.document_processor import DocumentProcessor, ProcessedDocument
from doc_anonymizer.pipeline.redaction import PassOutcome, RedactionPipeline, is_degenerate

__all__ = [
    "chunk_by_paragraphs",
    "RedactionPipeline",
    "PassOutcome",
    "is_degenerate",
    "DocumentProcessor",
    "ProcessedDocument",
]
