"""
ZIP export of completed results.
"""

import io
from pathlib import PurePath
from typing import Iterable
import zipfile

RESULT_EXTENSION = ".docx"


def result_filename(filename: str, prefix: str = "anonymized_") -> str:
    """Download name of an anonymized document (always rendered as DOCX)."""
    return f"{prefix}{PurePath(filename).stem}{RESULT_EXTENSION}"


def build_archive(results: Iterable[tuple[str, bytes]], prefix: str = "anonymized_") -> bytes:
    """
    Bundle (filename, document bytes) pairs into one ZIP archive.

    Duplicate filenames get a numeric suffix so no result overwrites another.
    """
    buffer = io.BytesIO()
    seen: dict[str, int] = {}
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for filename, content in results:
            name = result_filename(filename, prefix)
            count = seen.get(name, 0)
            seen[name] = count + 1
            if count:
                stem, dot, ext = name.rpartition(".")
                name = f"{stem} ({count}).{ext}" if dot else f"{name} ({count})"
            archive.writestr(name, content)
    return buffer.getvalue()
