# utils/text_processing.py
"""Text segmentation helpers shared by the chunker and the diff engine."""

from __future__ import annotations

import re

# A paragraph break is a newline followed by at least one whitespace-only line.
_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t\r]*\n\s*")

# Word-diff separators: whitespace runs and common punctuation, kept as tokens.
_WORD_SPLIT_RE = re.compile(r"(\s+|[.,!?;:-])")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank-line boundaries.

    Paragraphs are stripped of surrounding whitespace and empty paragraphs are
    dropped, so ``"\\n\\n".join(split_paragraphs(t))`` is the normalized form
    of ``t``.
    """
    if not text or not text.strip():
        return []
    return [p.strip() for p in _PARAGRAPH_BREAK_RE.split(text) if p.strip()]


def normalize_paragraphs(text: str) -> str:
    """Return text with each paragraph stripped and separated by one blank line."""
    return "\n\n".join(split_paragraphs(text))


def tokenize_words(line: str) -> list[str]:
    """Split a line into word, whitespace and punctuation tokens.

    Separators are preserved so that joining the tokens reproduces the line.
    """
    return [token for token in _WORD_SPLIT_RE.split(line) if token]
