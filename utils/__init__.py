"""General utility functions for the Proofline pipeline."""

from __future__ import annotations

from .json_utils import (
    extract_fenced_block,
    extract_json_object_span,
    safe_json_loads,
    strip_code_fences,
    truncate_for_log,
)
from .text_processing import normalize_paragraphs, split_paragraphs, tokenize_words

__all__ = [
    "extract_fenced_block",
    "extract_json_object_span",
    "normalize_paragraphs",
    "safe_json_loads",
    "split_paragraphs",
    "strip_code_fences",
    "tokenize_words",
    "truncate_for_log",
]
