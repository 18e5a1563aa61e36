"""
Render anonymized plain text back into a DOCX document.

The output is rebuilt from scratch rather than patched in place, so no
original run or field can survive with un-redacted text in it. Each
newline-delimited line becomes one paragraph.
"""

import io
import re

from docx import Document
from docx.shared import Pt

LINE_SPLIT = re.compile(r"\r?\n")

FONT_NAME = "Times New Roman"
FONT_SIZE = Pt(12)
SPACE_AFTER = Pt(10)


def render_document(text: str) -> bytes:
    """
    Build a DOCX file from plain text.

    Args:
        text: Anonymized text

    Returns:
        DOCX file content
    """
    document = Document()
    for line in LINE_SPLIT.split(text):
        paragraph = document.add_paragraph()
        paragraph.paragraph_format.space_after = SPACE_AFTER
        run = paragraph.add_run(line)
        run.font.name = FONT_NAME
        run.font.size = FONT_SIZE

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()
