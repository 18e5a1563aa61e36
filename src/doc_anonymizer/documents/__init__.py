"""
Document I/O adapters around the redaction core.

- extractor.py: DOCX/TXT -> plain text (ExtractionError on unreadable/empty input)
- renderer.py: plain text -> DOCX, one paragraph per line
- archive.py: completed results -> ZIP
"""

from doc_anonymizer.documents.archive import build_archive, result_filename
from doc_anonymizer.documents.exceptions import ExtractionError
from doc_anonymizer.documents.extractor import extract_text, is_supported
from doc_anonymizer.documents.renderer import render_document

__all__ = [
    "extract_text",
    "is_supported",
    "render_document",
    "build_archive",
    "result_filename",
    "ExtractionError",
]
