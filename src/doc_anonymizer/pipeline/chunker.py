"""
Paragraph-aware text chunking.

Splits extracted document text into ordered segments of roughly
`target_size` characters without ever cutting a paragraph in half, so each
rewrite request sees whole sentences with their surrounding context.
"""

import re


PARAGRAPH_SPLIT = re.compile(r"\r?\n")


def chunk_by_paragraphs(text: str, target_size: int) -> list[str]:
    """
    Group newline-delimited paragraphs into segments of about target_size chars.

    A segment is closed before a paragraph that would push it past
    `target_size`, unless the segment is still empty. The bound is soft: a
    single paragraph longer than `target_size` becomes one oversized segment.
    Empty paragraphs are kept as blank lines inside a segment; segments are
    stripped and never empty.

    Args:
        text: Text to split
        target_size: Soft upper bound on segment length in characters

    Returns:
        Ordered list of non-empty segments ([] for empty/blank input)

    Examples:
        >>> chunk_by_paragraphs("aaa\\nbbb\\nccc", 7)
        ['aaa\\nbbb', 'ccc']
        >>> chunk_by_paragraphs("a very long paragraph", 5)
        ['a very long paragraph']
    """
    if target_size <= 0:
        raise ValueError("target_size must be > 0")
    if not text:
        return []

    chunks: list[str] = []
    current = ""

    for paragraph in PARAGRAPH_SPLIT.split(text):
        if len(current) + len(paragraph) > target_size and current:
            _close(current, chunks)
            current = ""
        current += paragraph + "\n"

    _close(current, chunks)
    return chunks


def _close(segment: str, chunks: list[str]) -> None:
    stripped = segment.strip()
    if stripped:
        chunks.append(stripped)
