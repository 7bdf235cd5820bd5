# processing/chunker.py
"""Split long notes into paragraph-aligned chunks for section-by-section review.

Chunks are packed greedily from whole paragraphs. A paragraph is never cut:
a single paragraph longer than the limit becomes its own oversized chunk.
"""

from __future__ import annotations

import structlog

import config
from models import Chunk
from utils.text_processing import split_paragraphs

logger = structlog.get_logger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"


def split(content: str, max_chunk_size: int) -> list[Chunk]:
    """Greedily pack paragraphs into chunks of at most `max_chunk_size` characters.

    Args:
        content: Full note text.
        max_chunk_size: Character limit per chunk, separators included.

    Returns:
        Ordered chunks. Joining their texts with a blank line reproduces the
        note's normalized paragraph content. Empty content yields ``[]``.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunks: list[Chunk] = []
    current: list[str] = []
    current_len = 0

    def _flush() -> None:
        nonlocal current, current_len
        if current:
            chunks.append(Chunk(index=len(chunks), text=PARAGRAPH_SEPARATOR.join(current)))
        current = []
        current_len = 0

    for paragraph in split_paragraphs(content):
        added_len = len(paragraph) + (len(PARAGRAPH_SEPARATOR) if current else 0)
        if current and current_len + added_len > max_chunk_size:
            _flush()
            added_len = len(paragraph)
        if not current and len(paragraph) > max_chunk_size:
            logger.warning(
                "Paragraph exceeds chunk size; emitting it whole",
                paragraph_length=len(paragraph),
                max_chunk_size=max_chunk_size,
            )
        current.append(paragraph)
        current_len += added_len

    _flush()
    return chunks


def plan_chunks(
    content: str,
    threshold: int | None = None,
    max_chunk_size: int | None = None,
) -> list[Chunk]:
    """Choose between the single-response path and the chunked path.

    Notes at or below `threshold` characters are reviewed as one chunk holding
    the untouched text, so the oracle can return a full corrected document.
    Longer notes are split with `split`.
    """
    effective_threshold = threshold if threshold is not None else config.CHUNKING_THRESHOLD_CHARS
    effective_size = max_chunk_size if max_chunk_size is not None else config.MAX_CHUNK_SIZE_CHARS

    if not content or not content.strip():
        return []
    if len(content) <= effective_threshold:
        return [Chunk(index=0, text=content)]

    chunks = split(content, effective_size)
    if len(chunks) <= 1:
        # One oversized paragraph: keep the original text for the full-document path.
        return [Chunk(index=0, text=content)]
    logger.info(
        "Planned chunked review",
        content_length=len(content),
        chunk_count=len(chunks),
        max_chunk_size=effective_size,
    )
    return chunks
