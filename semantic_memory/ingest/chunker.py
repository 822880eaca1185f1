from __future__ import annotations
from typing import List
import re


PARAGRAPH_BREAK = re.compile(r"\n[ \t]*(?:\n[ \t]*)+")
CHUNK_SEPARATOR = "\n\n"


def paragraphs(text: str) -> List[str]:
    """
    Split text into stripped, non-empty paragraphs.

    Args:
        text: Input text

    Returns:
        Paragraphs in input order
    """
    if not text:
        return []

    return [p.strip() for p in PARAGRAPH_BREAK.split(text) if p.strip()]


def chunk_text(text: str, max_chars: int = 500) -> List[str]:
    """
    Greedily pack paragraphs into chunks of at most ``max_chars``.

    A paragraph is never split: one longer than the limit becomes its own
    oversized chunk. Joining the output with a blank line reproduces the
    input paragraphs in order.

    Args:
        text: Input text to chunk
        max_chars: Maximum characters per chunk

    Returns:
        List of text chunks
    """
    chunks: List[str] = []
    current = ""

    for para in paragraphs(text):
        if not current:
            current = para
        elif len(current) + len(CHUNK_SEPARATOR) + len(para) > max_chars:
            chunks.append(current)
            current = para
        else:
            current = current + CHUNK_SEPARATOR + para

    if current:
        chunks.append(current)

    return chunks
