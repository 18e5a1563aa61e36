"""
Plain-text extraction from uploaded documents.

- .docx: paragraph texts via python-docx, one line per paragraph
- .txt:  UTF-8 decode (BOM tolerated)
"""

import io
from pathlib import PurePath
import zipfile

import docx
from docx.opc.exceptions import PackageNotFoundError
import structlog

from doc_anonymizer.documents.exceptions import ExtractionError

logger = structlog.get_logger(__name__)

SUPPORTED_EXTENSIONS = {".docx", ".txt"}


def is_supported(filename: str) -> bool:
    return PurePath(filename).suffix.lower() in SUPPORTED_EXTENSIONS


def extract_text(document_bytes: bytes, filename: str) -> str:
    """
    Extract plain text from a document.

    Args:
        document_bytes: Raw file content
        filename: Original filename (its extension selects the parser)

    Returns:
        Text with one paragraph per line

    Raises:
        ExtractionError: Unsupported type, unreadable file, or no text
    """
    suffix = PurePath(filename).suffix.lower()

    if suffix == ".docx":
        text = _extract_docx(document_bytes, filename)
    elif suffix == ".txt":
        text = _extract_txt(document_bytes, filename)
    else:
        raise ExtractionError(
            f"Unsupported file type: {suffix or '(none)'}",
            details={"filename": filename, "supported": sorted(SUPPORTED_EXTENSIONS)},
        )

    if not text.strip():
        raise ExtractionError("Document contains no text", details={"filename": filename})

    logger.debug("Extracted document text", filename=filename, chars=len(text))
    return text


def _extract_docx(document_bytes: bytes, filename: str) -> str:
    try:
        document = docx.Document(io.BytesIO(document_bytes))
    except (zipfile.BadZipFile, PackageNotFoundError, KeyError, ValueError) as e:
        logger.warning("DOCX extraction failed", filename=filename, error=str(e))
        raise ExtractionError(
            f"Cannot read DOCX document: {e}",
            details={"filename": filename, "error_type": type(e).__name__},
        ) from e
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def _extract_txt(document_bytes: bytes, filename: str) -> str:
    try:
        return document_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ExtractionError(
            "Text file is not valid UTF-8",
            details={"filename": filename, "position": e.start},
        ) from e
