# processing/diff_engine.py
"""
Line-level diff with word-level refinement for previewing corrections.

This is a linear two-cursor walk, not an LCS/Myers diff. Grammar edits are
small and local, so pairing lines positionally is usually right and costs
O(n). An inserted or deleted line shifts every following pair; those pairs
then show up as `removed` + `added` instead of being realigned.
"""

from __future__ import annotations

import re
from collections import Counter

import structlog

import config
from models import DiffKind, DiffLine, WordSpan
from utils.text_processing import tokenize_words

logger = structlog.get_logger(__name__)

_LINE_BREAK_RE = re.compile(r"\r?\n")


def similarity(a: str, b: str) -> float:
    """Fraction of positions holding the same character in both strings.

    Computed as matching positions divided by the longer length. Two empty
    strings are identical (1.0).
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    matching = sum(1 for ca, cb in zip(a, b) if ca == cb)
    return matching / longest


def _append_span(spans: list[WordSpan], kind: DiffKind, text: str, replacement: str | None = None) -> None:
    if kind is DiffKind.SAME and spans and spans[-1].kind is DiffKind.SAME:
        spans[-1] = WordSpan(kind=DiffKind.SAME, text=spans[-1].text + text)
        return
    spans.append(WordSpan(kind=kind, text=text, replacement=replacement))


def word_diff(original_line: str, corrected_line: str) -> list[WordSpan]:
    """Token-level two-cursor diff of a pair of similar lines.

    Adjacent unchanged tokens are merged into one `same` span, so the
    remaining spans mark only the altered tokens.
    """
    original_tokens = tokenize_words(original_line)
    corrected_tokens = tokenize_words(corrected_line)
    spans: list[WordSpan] = []

    i = j = 0
    while i < len(original_tokens) or j < len(corrected_tokens):
        original_token = original_tokens[i] if i < len(original_tokens) else None
        corrected_token = corrected_tokens[j] if j < len(corrected_tokens) else None

        if original_token is not None and original_token == corrected_token:
            _append_span(spans, DiffKind.SAME, original_token)
            i += 1
            j += 1
        elif original_token is None:
            _append_span(spans, DiffKind.ADDED, corrected_token or "")
            j += 1
        elif corrected_token is None:
            _append_span(spans, DiffKind.REMOVED, original_token)
            i += 1
        else:
            _append_span(spans, DiffKind.CHANGED, original_token, corrected_token)
            i += 1
            j += 1

    return spans


def diff(original: str, corrected: str, threshold: float | None = None) -> list[DiffLine]:
    """Diff two texts line by line.

    Args:
        original: Text before corrections.
        corrected: Text after corrections.
        threshold: Similarity above which two differing lines are shown as one
            `changed` line with word spans. Defaults to the configured value.

    Returns:
        Diff entries in display order.
    """
    cutoff = threshold if threshold is not None else config.DIFF_SIMILARITY_THRESHOLD
    original_lines = _LINE_BREAK_RE.split(original)
    corrected_lines = _LINE_BREAK_RE.split(corrected)
    lines: list[DiffLine] = []

    i = j = 0
    while i < len(original_lines) or j < len(corrected_lines):
        if i >= len(original_lines):
            lines.extend(DiffLine(kind=DiffKind.ADDED, corrected_text=line) for line in corrected_lines[j:])
            break
        if j >= len(corrected_lines):
            lines.extend(DiffLine(kind=DiffKind.REMOVED, original_text=line) for line in original_lines[i:])
            break

        original_line = original_lines[i]
        corrected_line = corrected_lines[j]
        if original_line == corrected_line:
            lines.append(DiffLine(kind=DiffKind.SAME, original_text=original_line, corrected_text=corrected_line))
        elif similarity(original_line, corrected_line) > cutoff:
            lines.append(
                DiffLine(
                    kind=DiffKind.CHANGED,
                    original_text=original_line,
                    corrected_text=corrected_line,
                    word_spans=word_diff(original_line, corrected_line),
                )
            )
        else:
            lines.append(DiffLine(kind=DiffKind.REMOVED, original_text=original_line))
            lines.append(DiffLine(kind=DiffKind.ADDED, corrected_text=corrected_line))
        i += 1
        j += 1

    logger.debug("Computed diff", **diff_stats(lines))
    return lines


def diff_stats(lines: list[DiffLine]) -> dict[str, int]:
    """Count diff entries by kind."""
    counts = Counter(line.kind.value for line in lines)
    return {kind.value: counts.get(kind.value, 0) for kind in DiffKind}


def render_unified(lines: list[DiffLine]) -> str:
    """Render a diff as plain text with two-character ``"  "``, ``"- "``, ``"+ "`` prefixes."""
    out: list[str] = []
    for line in lines:
        if line.kind is DiffKind.SAME:
            out.append(f"  {line.original_text}")
        elif line.kind is DiffKind.REMOVED:
            out.append(f"- {line.original_text}")
        elif line.kind is DiffKind.ADDED:
            out.append(f"+ {line.corrected_text}")
        else:
            out.append(f"- {line.original_text}")
            out.append(f"+ {line.corrected_text}")
    return "\n".join(out)
